"""
Test suite for the command-line interface
"""

import pytest

from signed_urls.cli import create_parser, main


URL = "https://shop.example.com/download"
SIGN_ARGS = ['sign', URL, '--param', 'eddfile=42:7:3', '--param', 'ttl=1700000000', '--secret', 'S']


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep host SIGNED_URLS_* variables out of the tests"""
    for name in ('SIGNED_URLS_SECRET', 'SIGNED_URLS_DIGEST_ALGORITHM', 'SIGNED_URLS_CANONICAL_ORDER',
                 'SIGNED_URLS_SECRET_ENV_VAR', 'SIGNED_URLS_SECRET_ENCODING', 'SIGNED_URLS_LOG_LEVEL'):
        monkeypatch.delenv(name, raising=False)


def sign(capsys, *extra):
    assert main(SIGN_ARGS + list(extra)) == 0
    return capsys.readouterr().out.strip()


class TestParser:
    """Test argument parsing"""

    def test_sign_arguments(self):
        """Test sign subcommand parsing"""
        args = create_parser().parse_args(SIGN_ARGS + ['--option', 'ip', '--client-ip', '203.0.113.9'])

        assert args.command == 'sign'
        assert args.param == ['eddfile=42:7:3', 'ttl=1700000000']
        assert args.option == ['ip']
        assert args.client_ip == '203.0.113.9'

    def test_version(self, capsys):
        """Test --version exits cleanly"""
        with pytest.raises(SystemExit) as exc_info:
            main(['--version'])
        assert exc_info.value.code == 0
        assert 'signed-urls' in capsys.readouterr().out

    def test_no_command(self, capsys):
        """Test running without a command prints help"""
        assert main([]) == 1
        assert 'usage' in capsys.readouterr().out


class TestSignAndVerify:
    """Test sign and verify commands"""

    def test_sign_then_verify(self, capsys):
        """Test a signed URL verifies"""
        url = sign(capsys)
        assert url.startswith(f"{URL}?eddfile=42%3A7%3A3&ttl=1700000000&token=")

        assert main(['verify', url, '--secret', 'S']) == 0
        assert '✓ VALID' in capsys.readouterr().out

    def test_tampered_url(self, capsys):
        """Test a modified URL fails verification"""
        url = sign(capsys).replace("42%3A7%3A3", "42%3A7%3A4")

        assert main(['verify', url, '--secret', 'S']) == 1
        assert '✗ INVALID' in capsys.readouterr().out

    def test_token_only(self, capsys):
        """Test printing only the token"""
        token = sign(capsys, '--token-only')

        assert len(token) == 64
        assert '?' not in token

    def test_secret_from_environment(self, capsys, monkeypatch):
        """Test the secret is read from SIGNED_URLS_SECRET by default"""
        expected = sign(capsys, '--token-only')
        monkeypatch.setenv('SIGNED_URLS_SECRET', 'S')

        assert main(['sign', URL, '--param', 'eddfile=42:7:3', '--param', 'ttl=1700000000', '--token-only']) == 0
        assert capsys.readouterr().out.strip() == expected

    def test_missing_secret(self, capsys):
        """Test signing without any secret fails"""
        assert main(['sign', URL, '--param', 'eddfile=42:7:3']) == 1
        assert 'SIGNED_URLS_SECRET' in capsys.readouterr().err

    def test_algorithm_override(self, capsys):
        """Test --algorithm selects the digest"""
        token = sign(capsys, '--token-only')
        assert main(['--algorithm', 'hmac-sha512'] + SIGN_ARGS + ['--token-only']) == 0
        assert len(capsys.readouterr().out.strip()) == 128
        assert len(token) == 64

    def test_client_binding(self, capsys):
        """Test ip-bound URLs verify only for the same address"""
        url = sign(capsys, '--option', 'ip', '--client-ip', '203.0.113.9')
        assert 'o=ip' in url

        assert main(['verify', url, '--secret', 'S', '--client-ip', '203.0.113.9']) == 0
        capsys.readouterr()
        assert main(['verify', url, '--secret', 'S', '--client-ip', '198.51.100.1']) == 1

    def test_missing_client_ip(self, capsys):
        """Test binding an address without providing one fails"""
        assert main(SIGN_ARGS + ['--option', 'ip']) == 1
        assert 'MISSING_CONTEXT' in capsys.readouterr().err

    def test_invalid_param(self, capsys):
        """Test --param must be NAME=VALUE"""
        assert main(['sign', URL, '--param', 'novalue', '--secret', 'S']) == 1
        assert 'Configuration error' in capsys.readouterr().err

    def test_config_file(self, capsys, tmp_path):
        """Test --config loads settings from a file"""
        path = tmp_path / "config.json"
        path.write_text('{"digest_algorithm": "md5", "canonical_order": "preserve"}', encoding='utf-8')

        assert main(['--config', str(path)] + SIGN_ARGS + ['--token-only']) == 0
        assert len(capsys.readouterr().out.strip()) == 32

    def test_missing_config_file(self, capsys, tmp_path):
        """Test a missing --config file"""
        assert main(['--config', str(tmp_path / "missing.json")] + SIGN_ARGS) == 1
        assert 'Configuration error' in capsys.readouterr().err


class TestDescriptorCommands:
    """Test descriptor commands"""

    def test_encode(self, capsys):
        """Test encoding a descriptor"""
        assert main(['descriptor', 'encode', '42', '7', '3']) == 0
        assert capsys.readouterr().out.strip() == "42%3A7%3A3"

    def test_decode(self, capsys):
        """Test decoding a descriptor"""
        assert main(['descriptor', 'decode', '42%3A7%3A3']) == 0
        output = capsys.readouterr().out

        assert "Payment ID: 42" in output
        assert "Download ID: 7" in output
        assert "File Key: 3" in output

    def test_decode_invalid(self, capsys):
        """Test decoding an invalid descriptor"""
        assert main(['descriptor', 'decode', '42:7']) == 1
        assert 'Invalid descriptor' in capsys.readouterr().err

    def test_encode_invalid_file_key(self, capsys):
        """Test encoding a file key containing the delimiter"""
        assert main(['descriptor', 'encode', '42', '7', 'a:b']) == 1

    def test_no_subcommand(self, capsys):
        """Test descriptor without an operation"""
        assert main(['descriptor']) == 1
