"""
Configuration management for the SDKMS client.

Loads YAML configuration from file with sensible defaults and validation.
Supports environment variable substitution using ${ENV_VAR} syntax.
"""

import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from sdkms.exceptions import APPROVAL_REQUIRED_MESSAGE, InvalidConfigurationError
from sdkms.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_API_ENDPOINT = "https://sdkms.fortanix.com"
CONFIG_PATH_ENV_VAR = "SDKMS_CONFIG"


def _expand_env_vars(value: Any) -> Any:
    """
    Recursively expand environment variables in configuration values.

    Supports ${ENV_VAR} syntax with optional default values: ${ENV_VAR:default}

    Args:
        value: Configuration value (string, dict, list, or other)

    Returns:
        Value with environment variables expanded

    Examples:
        "${SDKMS_API_KEY}" -> value of SDKMS_API_KEY env var
        "${SDKMS_ENDPOINT:https://sdkms.fortanix.com}" -> env value or the default
    """
    if isinstance(value, str):
        # Pattern matches ${VAR} or ${VAR:default}
        pattern = r'\$\{([^}:]+)(?::([^}]*))?\}'

        def replace_env_var(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else ""
            return os.environ.get(var_name, default_value)

        return re.sub(pattern, replace_env_var, value)
    elif isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    else:
        return value


def _as_bool(value: Any) -> bool:
    # Env-expanded values arrive as strings
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _optional(value: Any, cast):
    if value is None or value == "":
        return None
    return cast(value)


@dataclass
class ApiConfig:
    """Service endpoint and static credentials."""

    endpoint: str = DEFAULT_API_ENDPOINT
    api_key: Optional[str] = None
    access_token: Optional[str] = None


@dataclass
class TransportConfig:
    """HTTP transport configuration."""

    timeout_seconds: float = 30.0
    verify_tls: bool = True
    ca_file: Optional[str] = None
    client_cert_file: Optional[str] = None  # For certificate authentication
    client_key_file: Optional[str] = None
    pool_connections: int = 10
    pool_maxsize: int = 20


@dataclass
class ApprovalConfig:
    """Approval polling configuration."""

    poll_interval_seconds: float = 10.0
    max_attempts: Optional[int] = None
    timeout_seconds: Optional[float] = None
    required_message: str = APPROVAL_REQUIRED_MESSAGE


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    file: str = ""
    json_format: bool = True


@dataclass
class SdkmsConfig:
    """Main SDKMS client configuration."""

    api: ApiConfig = field(default_factory=ApiConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
    approval: ApprovalConfig = field(default_factory=ApprovalConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_default_config_path() -> str:
    """Get the default configuration file path, honouring SDKMS_CONFIG."""
    return os.path.expanduser(
        os.environ.get(CONFIG_PATH_ENV_VAR, "~/.sdkms/config.yaml")
    )


def get_default_config() -> SdkmsConfig:
    """
    Get default configuration with sensible defaults.

    Returns:
        SdkmsConfig: Default configuration object
    """
    return SdkmsConfig()


def load_config(config_path: Optional[str] = None) -> SdkmsConfig:
    """
    Load configuration from YAML file with validation.

    If config file is not found, returns default configuration.
    If config file is malformed or invalid, raises InvalidConfigurationError.

    Args:
        config_path: Path to configuration file. If None, uses default path.

    Returns:
        SdkmsConfig: Loaded and validated configuration

    Raises:
        InvalidConfigurationError: If configuration is invalid or malformed
    """
    if config_path is None:
        config_path = get_default_config_path()

    # Expand user home directory
    config_path = os.path.expanduser(str(config_path))

    # If config file doesn't exist, return defaults
    if not os.path.exists(config_path):
        logger.info(f"Configuration file not found at {config_path}, using defaults")
        return get_default_config()

    # Load YAML file
    try:
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f)
        logger.debug(f"Loaded configuration from {config_path}")
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML configuration file '{config_path}': {e}")
        raise InvalidConfigurationError(
            f"Failed to parse YAML configuration file '{config_path}': {e}"
        )
    except OSError as e:
        logger.error(f"Failed to read configuration file '{config_path}': {e}")
        raise InvalidConfigurationError(
            f"Failed to read configuration file '{config_path}': {e}"
        )

    # If file is empty, return defaults
    if config_data is None:
        logger.info(f"Configuration file {config_path} is empty, using defaults")
        return get_default_config()

    if not isinstance(config_data, dict):
        raise InvalidConfigurationError(
            f"Configuration file '{config_path}' must contain a mapping at the top level"
        )

    config_data = _expand_env_vars(config_data)

    try:
        config = _build_config_from_dict(config_data)
        _validate_config(config)
    except InvalidConfigurationError:
        raise
    except (TypeError, ValueError, AttributeError) as e:
        logger.error(f"Invalid configuration in '{config_path}': {e}")
        raise InvalidConfigurationError(
            f"Invalid configuration in '{config_path}': {e}"
        )

    logger.info(f"Successfully loaded and validated configuration from {config_path}")
    return config


def _section(config_data: Dict[str, Any], name: str) -> Dict[str, Any]:
    data = config_data.get(name) or {}
    if not isinstance(data, dict):
        raise InvalidConfigurationError(f"'{name}' section must be a mapping")
    return data


def _build_config_from_dict(config_data: Dict[str, Any]) -> SdkmsConfig:
    """
    Build SdkmsConfig from dictionary loaded from YAML.

    Merges user configuration with defaults. Every section is optional.

    Args:
        config_data: Dictionary loaded from YAML file

    Returns:
        SdkmsConfig: Configuration object
    """
    default_config = get_default_config()

    api_data = _section(config_data, 'api')
    api = ApiConfig(
        endpoint=api_data.get('endpoint') or default_config.api.endpoint,
        api_key=_optional(api_data.get('api_key'), str),
        access_token=_optional(api_data.get('access_token'), str),
    )

    transport_data = _section(config_data, 'transport')
    transport = TransportConfig(
        timeout_seconds=float(
            transport_data.get('timeout_seconds', default_config.transport.timeout_seconds)
        ),
        verify_tls=_as_bool(
            transport_data.get('verify_tls', default_config.transport.verify_tls)
        ),
        ca_file=_optional(transport_data.get('ca_file'), os.path.expanduser),
        client_cert_file=_optional(transport_data.get('client_cert_file'), os.path.expanduser),
        client_key_file=_optional(transport_data.get('client_key_file'), os.path.expanduser),
        pool_connections=int(
            transport_data.get('pool_connections', default_config.transport.pool_connections)
        ),
        pool_maxsize=int(
            transport_data.get('pool_maxsize', default_config.transport.pool_maxsize)
        ),
    )

    approval_data = _section(config_data, 'approval')
    approval = ApprovalConfig(
        poll_interval_seconds=float(
            approval_data.get(
                'poll_interval_seconds', default_config.approval.poll_interval_seconds
            )
        ),
        max_attempts=_optional(approval_data.get('max_attempts'), int),
        timeout_seconds=_optional(approval_data.get('timeout_seconds'), float),
        required_message=approval_data.get(
            'required_message', default_config.approval.required_message
        ),
    )

    logging_data = _section(config_data, 'logging')
    logging = LoggingConfig(
        level=logging_data.get('level', default_config.logging.level),
        file=os.path.expanduser(logging_data.get('file', default_config.logging.file) or ""),
        json_format=_as_bool(
            logging_data.get('json_format', default_config.logging.json_format)
        ),
    )

    return SdkmsConfig(
        api=api,
        transport=transport,
        approval=approval,
        logging=logging,
    )


def _validate_config(config: SdkmsConfig) -> None:
    """
    Validate configuration values.

    Args:
        config: Configuration to validate

    Raises:
        InvalidConfigurationError: If configuration is invalid
    """
    if not config.api.endpoint.startswith(("https://", "http://")):
        raise InvalidConfigurationError(
            f"api endpoint must be an http(s) URL, got '{config.api.endpoint}'"
        )

    if config.api.api_key and config.api.access_token:
        raise InvalidConfigurationError(
            "api_key and access_token are mutually exclusive"
        )

    if config.transport.timeout_seconds <= 0:
        raise InvalidConfigurationError(
            f"timeout_seconds must be positive, got {config.transport.timeout_seconds}"
        )
    if config.transport.pool_connections < 1:
        raise InvalidConfigurationError(
            f"pool_connections must be at least 1, got {config.transport.pool_connections}"
        )
    if config.transport.pool_maxsize < 1:
        raise InvalidConfigurationError(
            f"pool_maxsize must be at least 1, got {config.transport.pool_maxsize}"
        )
    # A cert file alone may hold both certificate and key
    if config.transport.client_key_file and not config.transport.client_cert_file:
        raise InvalidConfigurationError(
            "client_key_file requires client_cert_file"
        )

    if config.approval.poll_interval_seconds < 0:
        raise InvalidConfigurationError(
            f"poll_interval_seconds must not be negative, "
            f"got {config.approval.poll_interval_seconds}"
        )
    if config.approval.max_attempts is not None and config.approval.max_attempts < 1:
        raise InvalidConfigurationError(
            f"max_attempts must be at least 1, got {config.approval.max_attempts}"
        )
    if config.approval.timeout_seconds is not None and config.approval.timeout_seconds <= 0:
        raise InvalidConfigurationError(
            f"approval timeout_seconds must be positive, got {config.approval.timeout_seconds}"
        )
    if not config.approval.required_message:
        raise InvalidConfigurationError("required_message cannot be empty")

    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if config.logging.level.upper() not in valid_log_levels:
        raise InvalidConfigurationError(
            f"logging level must be one of {valid_log_levels}, "
            f"got '{config.logging.level}'"
        )
