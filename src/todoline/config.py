"""Configuration management for todoline."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from todoline.core.grouping import GroupBy

logger = logging.getLogger(__name__)

TODOLINE_HOME = Path(os.environ.get("TODOLINE_HOME", Path.home() / ".config" / "todoline"))
CONFIG_FILE = TODOLINE_HOME / "todoline.conf"
DEFAULT_URL = "https://api.todoist.com/"


@dataclass
class Config:
    """todoline configuration."""

    token: str = ""
    url: str = DEFAULT_URL
    default_filter: str = "(today | overdue)"
    group_by: str = "none"
    max_retries: int = 3
    timeout: float = 30.0
    backoff_base: float = 0.5


def _parse_value(value: str) -> str:
    """Strip quotes, or inline comments from unquoted values."""
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        if end_quote != -1:
            return value[1:end_quote]
        return value[1:]
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from todoline.conf, then apply environment overrides."""
    path = path or CONFIG_FILE
    config = Config()

    if path.exists():
        for line in path.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip().lower()
            value = _parse_value(value.strip())

            try:
                match key:
                    case "token":
                        config.token = value
                    case "url":
                        config.url = value
                    case "default_filter":
                        config.default_filter = value
                    case "group_by":
                        config.group_by = GroupBy(value.lower()).value
                    case "max_retries":
                        config.max_retries = int(value)
                    case "timeout":
                        config.timeout = float(value)
                    case "backoff_base":
                        config.backoff_base = float(value)
                    case _:
                        logger.debug(f"Ignoring unknown config key: {key}")
            except ValueError as e:
                logger.warning(f"Invalid value for {key.upper()}: {e}")

    env_token = os.environ.get("TODOIST_API_TOKEN")
    if env_token:
        config.token = env_token

    return config


def save_token(token: str, path: Path | None = None) -> None:
    """Write the API token into the config file, keeping other settings."""
    path = path or CONFIG_FILE
    lines = path.read_text().splitlines() if path.exists() else []
    kept = [line for line in lines if line.partition("=")[0].strip().lower() != "token"]
    kept.append(f'token = "{token}"')

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(kept) + "\n")
    path.chmod(0o600)
