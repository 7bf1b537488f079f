"""
Configuration management for signed URLs
"""

from .settings import (
    SignedUrlConfig,
    LoggingConfig,
    DebugConfig,
    load_config_from_json,
    load_config_from_file,
    load_config_from_env,
    load_default_config,
    configure_logging,
)

__all__ = [
    'SignedUrlConfig',
    'LoggingConfig',
    'DebugConfig',
    'load_config_from_json',
    'load_config_from_file',
    'load_config_from_env',
    'load_default_config',
    'configure_logging',
]
