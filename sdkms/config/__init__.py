"""
Configuration management for the SDKMS client.

Handles loading and validation of configuration files.
"""

from sdkms.config.settings import (
    ApiConfig,
    ApprovalConfig,
    LoggingConfig,
    SdkmsConfig,
    TransportConfig,
    get_default_config,
    get_default_config_path,
    load_config,
)

__all__ = [
    "ApiConfig",
    "ApprovalConfig",
    "LoggingConfig",
    "SdkmsConfig",
    "TransportConfig",
    "get_default_config",
    "get_default_config_path",
    "load_config",
]
