"""Secrets management: build OKX API credentials from a config mapping,
the environment, or a JSON config file.

Priority order for `load_credentials`:
1. Environment variables: OKX_API_KEY, OKX_API_SECRET, OKX_PASSPHRASE (+ OKX_IS_DEMO)
2. Config file: ~/.okx_config.json or custom path via ENV OKX_CONFIG_PATH
"""
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import SecretStr

from .errors import ConfigurationError
from .logging_setup import logger, register_secret

REQUIRED_KEYS = ("key", "secret", "passphrase")


def parse_bool(value: Any) -> bool:
    """Read a textual "true"/"false" flag; anything else counts as false."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


@dataclass(frozen=True)
class OkxCredentials:
    """Immutable credential context shared read-only by every request.

    `api_secret` and `passphrase` are `SecretStr`, so they render as
    asterisks in repr/str and in tracebacks.
    """
    api_key: str
    api_secret: SecretStr
    passphrase: SecretStr
    is_demo: bool = False

    def __post_init__(self):
        register_secret(self.api_secret.get_secret_value())
        register_secret(self.passphrase.get_secret_value())

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "OkxCredentials":
        """Create credentials from a flat mapping with keys
        `key`, `secret`, `passphrase` and optional `is_demo`.

        Raises:
            ConfigurationError: If any required key is absent or empty
        """
        missing = [k for k in REQUIRED_KEYS if not config.get(k)]
        if missing:
            raise ConfigurationError(f"Missing OKX credential(s): {', '.join(missing)}")
        return cls(
            api_key=str(config["key"]),
            api_secret=SecretStr(str(config["secret"])),
            passphrase=SecretStr(str(config["passphrase"])),
            is_demo=parse_bool(config.get("is_demo")),
        )

    def secret_value(self) -> str:
        return self.api_secret.get_secret_value()

    def passphrase_value(self) -> str:
        return self.passphrase.get_secret_value()


def load_credentials(
    config_path: Optional[str] = None,
) -> OkxCredentials:
    """Load OKX credentials from env or config file.

    Args:
        config_path: Optional override path to config file. If not provided,
                     checks OKX_CONFIG_PATH env var, then ~/.okx_config.json

    Returns:
        OkxCredentials

    Raises:
        ConfigurationError: If credentials are not found or incomplete
    """
    env = {
        "key": os.getenv("OKX_API_KEY"),
        "secret": os.getenv("OKX_API_SECRET"),
        "passphrase": os.getenv("OKX_PASSPHRASE"),
        "is_demo": os.getenv("OKX_IS_DEMO"),
    }
    if all(env[k] for k in REQUIRED_KEYS):
        logger.debug("Loaded OKX credentials from environment")
        return OkxCredentials.from_mapping(env)

    if config_path is None:
        config_path = os.getenv("OKX_CONFIG_PATH")
    if config_path is None:
        config_path = str(Path.home() / ".okx_config.json")

    merged = dict(env)
    config_file = Path(config_path)
    if config_file.exists():
        try:
            with config_file.open("r") as f:
                cfg = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Failed to load config from {config_path}: {e}") from e
        for k in ("key", "secret", "passphrase", "is_demo"):
            if cfg.get(k) is not None:
                merged[k] = cfg[k]

    if not all(merged[k] for k in REQUIRED_KEYS):
        raise ConfigurationError(
            "Missing OKX credentials. Provide via:\n"
            "  - Environment: OKX_API_KEY, OKX_API_SECRET, OKX_PASSPHRASE\n"
            f"  - Config file: {config_path}\n"
            "  - OKX_CONFIG_PATH env var to override config location"
        )

    logger.debug(f"Loaded OKX credentials from {config_path}")
    return OkxCredentials.from_mapping(merged)


def save_config(
    config_path: str,
    key: str,
    secret: str,
    passphrase: str,
    is_demo: bool = False,
) -> None:
    """Save credentials to a config file for later use.

    WARNING: Stores secrets in plaintext. The file is restricted to mode 600
    where the platform supports it.
    """
    config = {
        "key": key,
        "secret": secret,
        "passphrase": passphrase,
        "is_demo": "true" if is_demo else "false",
    }
    cfg_file = Path(config_path)
    cfg_file.parent.mkdir(parents=True, exist_ok=True)

    with cfg_file.open("w") as f:
        json.dump(config, f, indent=2)

    try:
        cfg_file.chmod(0o600)
    except OSError:
        logger.warning(f"Could not restrict permissions on {config_path}")
