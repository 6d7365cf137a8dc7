"""Configuration loader for the OKX client.

Supports YAML format with environment variable interpolation.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import yaml

from .canonical import DEFAULT_BASE_URL
from .errors import ConfigurationError
from .secrets import OkxCredentials


@dataclass
class ExchangeConfig:
    """OKX endpoint settings."""
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 10.0


@dataclass
class LoggingConfig:
    log_file: Optional[str] = "okx_rest.log"
    log_level: str = "INFO"
    enable_console: bool = True


@dataclass
class ClientConfig:
    """Complete client configuration.

    `credentials` is the flat mapping consumed by `OkxCredentials.from_mapping`
    and is never written back out by `to_yaml`.
    """
    exchange: ExchangeConfig = field(default_factory=ExchangeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    credentials: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_yaml(cls, config_path: str) -> "ClientConfig":
        """Load configuration from YAML file with env var interpolation.

        Args:
            config_path: Path to YAML config file

        Returns:
            ClientConfig instance

        Example YAML:
            exchange:
              timeout: 5
            logging:
              log_level: DEBUG
            credentials:
              key: "${OKX_API_KEY}"
              secret: "${OKX_API_SECRET}"
              passphrase: "${OKX_PASSPHRASE}"
              is_demo: "true"
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with config_file.open("r") as f:
            raw = f.read()

        # Interpolate environment variables: ${VAR_NAME}
        for key, value in os.environ.items():
            raw = raw.replace(f"${{{key}}}", value)

        try:
            data = yaml.safe_load(raw) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")

        try:
            exchange = ExchangeConfig(**data.get("exchange", {}))
            logging_cfg = LoggingConfig(**data.get("logging", {}))
        except TypeError as e:
            raise ConfigurationError(f"Invalid config in {config_path}: {e}") from e

        credentials = {k: str(v) for k, v in (data.get("credentials") or {}).items() if v is not None}

        return cls(exchange=exchange, logging=logging_cfg, credentials=credentials)

    def build_credentials(self) -> OkxCredentials:
        return OkxCredentials.from_mapping(self.credentials)

    def to_yaml(self, output_path: str) -> None:
        """Save configuration (without credentials) to YAML file."""
        data = {
            "exchange": {
                "base_url": self.exchange.base_url,
                "timeout": self.exchange.timeout,
            },
            "logging": {
                "log_file": self.logging.log_file,
                "log_level": self.logging.log_level,
                "enable_console": self.logging.enable_console,
            },
        }

        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with output_file.open("w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
