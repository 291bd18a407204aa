"""Central environment variable loading utilities."""

import json
import os
from pathlib import Path

from dotenv import load_dotenv

TRUTHY = ("true", "1", "yes", "on", "enabled")
FALSY = ("false", "0", "no", "off", "disabled")


def load_environment(env_file: str | Path | None = None) -> bool:
    """Load environment variables from .env file if it exists.

    Variables already present in the process environment are not overridden,
    so explicit exports keep precedence over the file.

    Args:
        env_file: Path to .env file. If None, looks for .env in current directory.

    Returns:
        True if a file was found and loaded
    """
    if env_file is None:
        env_file = Path.cwd() / ".env"

    if isinstance(env_file, str):
        env_file = Path(env_file)

    if env_file.exists():
        load_dotenv(env_file, override=False)
        return True
    return False


def parse_list(value: str | list | None) -> list[str]:
    """Parse a list from a JSON array or a comma-separated string.

    Examples:
        '["10.0.0.1:2379","10.0.0.2:2379"]' -> ["10.0.0.1:2379", "10.0.0.2:2379"]
        "10.0.0.1:2379, 10.0.0.2:2379" -> ["10.0.0.1:2379", "10.0.0.2:2379"]
    """
    if value is None:
        return []
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]

    value = value.strip()
    if value.startswith("["):
        try:
            parsed = json.loads(value)
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        except (json.JSONDecodeError, ValueError):
            pass

    return [item.strip() for item in value.split(",") if item.strip()]


def parse_bool(value: str | bool) -> bool:
    """Parse a boolean flag value.

    Raises:
        ValueError: If the value is not a recognised boolean spelling
    """
    if isinstance(value, bool):
        return value
    lowered = value.strip().lower()
    if lowered in TRUTHY:
        return True
    if lowered in FALSY:
        return False
    raise ValueError(f"invalid boolean value: {value!r}")


def get_env_list(key: str, default: list[str] | None = None) -> list[str]:
    """Get environment variable as a list, parsing JSON array or CSV format.

    Examples:
        ETCDCTL_ENDPOINTS=["10.0.0.1:2379","10.0.0.2:2379"]
        ETCDCTL_ENDPOINTS=10.0.0.1:2379,10.0.0.2:2379
    """
    value = os.getenv(key)
    if not value:
        return default or []
    return parse_list(value)

