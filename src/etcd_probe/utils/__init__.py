"""Utilities package."""

from .env import (
    get_env_list,
    load_environment,
    parse_bool,
    parse_list,
)

__all__ = [
    "load_environment",
    "get_env_list",
    "parse_bool",
    "parse_list",
]
