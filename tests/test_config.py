"""
Test suite for configuration loading
"""

import json
import logging
import pytest
from unittest.mock import patch

from signed_urls.config import (
    DebugConfig,
    LoggingConfig,
    SignedUrlConfig,
    configure_logging,
    load_config_from_env,
    load_config_from_file,
    load_config_from_json,
    load_default_config,
)
from signed_urls.dispatch import (
    DownloadRequestProcessor,
    DownloadRequestStatus,
    DownloadUrlBuilder,
    InMemoryPaymentStore,
)
from signed_urls.exceptions import ConfigurationError
from signed_urls.signing import (
    CanonicalOrder,
    DigestAlgorithm,
    EnvironmentSecretProvider,
    SigningRequest,
    UrlSigner,
)
from signed_urls.verification import UrlVerifier


class TestSignedUrlConfig:
    """Test the configuration dataclass"""

    def test_defaults(self):
        """Test default values"""
        config = SignedUrlConfig()

        assert config.digest_algorithm == DigestAlgorithm.HMAC_SHA256
        assert config.canonical_order == CanonicalOrder.SORTED
        assert config.secret_env_var == "SIGNED_URLS_SECRET"
        assert config.secret_encoding == "raw"
        assert config.default_options == []
        assert config.trust_proxy_headers is False
        assert config.logging.level == "WARNING"
        assert config.debug.log_canonical_strings is False

    def test_string_enums_coerced(self):
        """Test enum fields accept their string values"""
        config = SignedUrlConfig(digest_algorithm="md5", canonical_order="preserve")

        assert config.digest_algorithm is DigestAlgorithm.LEGACY_MD5
        assert config.canonical_order is CanonicalOrder.PRESERVE

    @pytest.mark.parametrize("kwargs,code", [
        ({'digest_algorithm': 'sha1'}, "INVALID_ALGORITHM"),
        ({'canonical_order': 'random'}, "INVALID_CANONICAL_ORDER"),
        ({'home_url': ''}, "INVALID_HOME_URL"),
        ({'secret_encoding': 'rot13'}, "INVALID_SECRET_ENCODING"),
        ({'default_options': ['ip:ua']}, "INVALID_OPTIONS"),
        ({'logging': LoggingConfig(level='LOUD')}, "INVALID_LOG_LEVEL"),
    ])
    def test_invalid_values(self, kwargs, code):
        """Test validation error codes"""
        with pytest.raises(ConfigurationError) as exc_info:
            SignedUrlConfig(**kwargs)
        assert exc_info.value.error_code == code

    def test_secret_provider(self):
        """Test the configured secret provider"""
        config = SignedUrlConfig(secret_env_var="SHOP_SECRET", secret_encoding="hex")
        provider = config.secret_provider({"SHOP_SECRET": "736563726574"})

        assert isinstance(provider, EnvironmentSecretProvider)
        assert provider.get_secret() == b"secret"

    def test_create_signer_and_verifier(self):
        """Test signer and verifier share the configured settings"""
        config = SignedUrlConfig(digest_algorithm="hmac-sha512", canonical_order="preserve")
        provider = config.secret_provider({"SIGNED_URLS_SECRET": "S"})

        signer = config.create_signer(provider)
        verifier = config.create_verifier(provider)

        assert isinstance(signer, UrlSigner)
        assert isinstance(verifier, UrlVerifier)
        assert signer.algorithm == DigestAlgorithm.HMAC_SHA512
        assert signer.order == CanonicalOrder.PRESERVE

        signed = signer.sign(SigningRequest("https://shop.example.com/download", {"eddfile": "42:7:3"}))
        assert len(signed.token) == 128
        assert verifier.verify(signed.url)

    def test_request_context_untrusted(self):
        """Test proxy headers are ignored by default"""
        environ = {'REMOTE_ADDR': '10.0.0.1', 'HTTP_X_FORWARDED_FOR': '203.0.113.5', 'HTTP_USER_AGENT': 'Agent/1.0'}
        context = SignedUrlConfig().request_context(environ)

        assert context.current_client_address() == '10.0.0.1'
        assert context.current_user_agent() == 'Agent/1.0'

    def test_request_context_trusted(self):
        """Test trust_proxy_headers from the environment takes effect"""
        config = load_config_from_env({'SIGNED_URLS_TRUST_PROXY_HEADERS': '1'})
        environ = {'REMOTE_ADDR': '10.0.0.1', 'HTTP_X_FORWARDED_FOR': '203.0.113.5, 10.0.0.1'}

        assert config.request_context(environ).current_client_address() == '203.0.113.5'

    def test_create_dispatch_hooks(self):
        """Test the hooks use home_url and the default options"""
        payments = InMemoryPaymentStore()
        payments.add_payment(42, "buyer@example.com", "abc123")
        config = SignedUrlConfig(home_url="https://shop.example.com/download", default_options=["ip"])
        provider = config.secret_provider({"SIGNED_URLS_SECRET": "S"})
        context = config.request_context({'REMOTE_ADDR': '203.0.113.9'})

        builder = config.create_url_builder(payments, provider, context)
        processor = config.create_request_processor(payments, provider, context)

        assert isinstance(builder, DownloadUrlBuilder)
        assert isinstance(processor, DownloadRequestProcessor)
        assert builder.home_url == config.home_url
        assert processor.home_url == config.home_url

        url = builder.build_url({'download_key': 'abc123', 'download': 7, 'file': 3, 'expire': 'MTcwMDAwMDAwMA%3D%3D'})
        assert url.startswith("https://shop.example.com/download?eddfile=42%3A7%3A3&ttl=1700000000&o=ip&token=")

        query = url.split('?', 1)[1]
        assert processor.process({}, query).status == DownloadRequestStatus.VALID
        other = config.request_context({'REMOTE_ADDR': '198.51.100.1'})
        assert processor.process({}, query, other).is_invalid

    def test_to_dict_round_trip(self):
        """Test to_dict output loads back into an equal configuration"""
        config = SignedUrlConfig(
            home_url="https://shop.example.com/",
            default_options=["ip"],
            logging=LoggingConfig(level="DEBUG", structured=True),
            debug=DebugConfig(log_canonical_strings=True)
        )

        assert load_config_from_json(json.dumps(config.to_dict())) == config


class TestConfigLoaders:
    """Test configuration loaders"""

    def test_load_from_json(self):
        """Test loading from a JSON string"""
        config = load_config_from_json(json.dumps({
            'home_url': 'https://shop.example.com/',
            'digest_algorithm': 'md5',
            'default_options': ['ip', 'ua'],
            'logging': {'level': 'INFO'},
        }))

        assert config.home_url == 'https://shop.example.com/'
        assert config.digest_algorithm == DigestAlgorithm.LEGACY_MD5
        assert config.default_options == ['ip', 'ua']
        assert config.logging.level == 'INFO'
        assert config.logging.structured is False

    def test_load_from_json_errors(self):
        """Test malformed JSON input"""
        with pytest.raises(ConfigurationError) as exc_info:
            load_config_from_json("{not json")
        assert exc_info.value.error_code == "PARSE_ERROR"

        with pytest.raises(ConfigurationError) as exc_info:
            load_config_from_json("[1, 2]")
        assert exc_info.value.error_code == "INVALID_FORMAT"

        with pytest.raises(ConfigurationError) as exc_info:
            load_config_from_json('{"unknown_field": 1}')
        assert exc_info.value.error_code == "INVALID_FORMAT"

    def test_load_from_file(self, tmp_path):
        """Test loading from a file"""
        path = tmp_path / "signed-urls.json"
        path.write_text(json.dumps({'canonical_order': 'preserve'}), encoding='utf-8')

        assert load_config_from_file(path).canonical_order == CanonicalOrder.PRESERVE
        assert load_config_from_file(str(path)).canonical_order == CanonicalOrder.PRESERVE

    def test_load_from_missing_file(self, tmp_path):
        """Test a missing file"""
        with pytest.raises(ConfigurationError) as exc_info:
            load_config_from_file(tmp_path / "missing.json")
        assert exc_info.value.error_code == "FILE_ERROR"

    def test_load_from_env(self):
        """Test environment overrides"""
        config = load_config_from_env({
            'SIGNED_URLS_HOME_URL': 'https://shop.example.com/',
            'SIGNED_URLS_DIGEST_ALGORITHM': 'hmac-sha512',
            'SIGNED_URLS_CANONICAL_ORDER': 'preserve',
            'SIGNED_URLS_SECRET_ENV_VAR': 'SHOP_SECRET',
            'SIGNED_URLS_SECRET_ENCODING': 'base64',
            'SIGNED_URLS_DEFAULT_OPTIONS': 'ip:ua',
            'SIGNED_URLS_TRUST_PROXY_HEADERS': 'yes',
            'SIGNED_URLS_LOG_LEVEL': 'debug',
            'SIGNED_URLS_LOG_STRUCTURED': 'true',
            'SIGNED_URLS_LOG_CANONICAL_STRINGS': '1',
        })

        assert config.home_url == 'https://shop.example.com/'
        assert config.digest_algorithm == DigestAlgorithm.HMAC_SHA512
        assert config.canonical_order == CanonicalOrder.PRESERVE
        assert config.secret_env_var == 'SHOP_SECRET'
        assert config.secret_encoding == 'base64'
        assert config.default_options == ['ip', 'ua']
        assert config.trust_proxy_headers is True
        assert config.logging.level == 'DEBUG'
        assert config.logging.structured is True
        assert config.debug.log_canonical_strings is True

    def test_load_from_env_keeps_base(self):
        """Test unset variables keep the base values"""
        base = SignedUrlConfig(digest_algorithm='md5', home_url='https://shop.example.com/')
        config = load_config_from_env({'SIGNED_URLS_CANONICAL_ORDER': 'preserve'}, base)

        assert config.digest_algorithm == DigestAlgorithm.LEGACY_MD5
        assert config.home_url == 'https://shop.example.com/'
        assert config.canonical_order == CanonicalOrder.PRESERVE

    def test_load_from_env_invalid_bool(self):
        """Test invalid boolean values"""
        with pytest.raises(ConfigurationError):
            load_config_from_env({'SIGNED_URLS_TRUST_PROXY_HEADERS': 'maybe'})

    def test_load_default_config(self, tmp_path, monkeypatch):
        """Test the default loader without a config file"""
        monkeypatch.chdir(tmp_path)
        assert load_default_config({}) == SignedUrlConfig()

    def test_load_default_config_from_named_file(self, tmp_path):
        """Test SIGNED_URLS_CONFIG selects the file and env still overrides"""
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({'digest_algorithm': 'md5', 'home_url': 'https://a.example/'}), encoding='utf-8')

        config = load_default_config({
            'SIGNED_URLS_CONFIG': str(path),
            'SIGNED_URLS_HOME_URL': 'https://b.example/',
        })

        assert config.digest_algorithm == DigestAlgorithm.LEGACY_MD5
        assert config.home_url == 'https://b.example/'

    def test_load_default_config_from_working_directory(self, tmp_path, monkeypatch):
        """Test config/signed-urls.json is picked up"""
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "signed-urls.json").write_text('{"canonical_order": "preserve"}', encoding='utf-8')
        monkeypatch.chdir(tmp_path)

        assert load_default_config({}).canonical_order == CanonicalOrder.PRESERVE

    def test_load_default_config_missing_named_file(self, tmp_path):
        """Test a named file that does not exist"""
        with pytest.raises(ConfigurationError) as exc_info:
            load_default_config({'SIGNED_URLS_CONFIG': str(tmp_path / "missing.json")})
        assert exc_info.value.error_code == "FILE_NOT_FOUND"


class TestConfigureLogging:
    """Test logging setup"""

    def test_plain_format(self):
        """Test the plain log format"""
        with patch('signed_urls.config.settings.logging.basicConfig') as mock_basic:
            configure_logging(LoggingConfig(level='info'))

        kwargs = mock_basic.call_args.kwargs
        assert kwargs['level'] == 'INFO'
        assert '%(name)s' in kwargs['format']

    def test_structured_format(self):
        """Test the structured log format"""
        with patch('signed_urls.config.settings.logging.basicConfig') as mock_basic:
            configure_logging(LoggingConfig(level='DEBUG', structured=True))

        assert mock_basic.call_args.kwargs['format'].startswith('{')

    def test_levels_are_valid(self):
        """Test configured levels are recognized by logging"""
        for level in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            assert isinstance(logging.getLevelName(level), int)
