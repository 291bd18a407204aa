"""Probe configuration using Pydantic Settings.

Precedence for every connection field is explicit flag > ``ETCDCTL_*``
environment variable > hard-coded default. Explicit values are passed as init
kwargs, which pydantic-settings ranks above the environment source.
"""

import math
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from ..errors import ThresholdConfigError
from ..utils.env import get_env_list, parse_list

DEFAULT_ENDPOINT = "127.0.0.1:2379"
DEFAULT_WARNING = 0.1
DEFAULT_CRITICAL = 1.0


class ConnectionConfig(BaseSettings):
    """Connection parameters for the etcd cluster, named after etcdctl's."""

    model_config = SettingsConfigDict(
        env_prefix="ETCDCTL_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    endpoints: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [DEFAULT_ENDPOINT]
    )
    cacert: Optional[str] = None
    cert: Optional[str] = None
    key: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    insecure_transport: bool = True  # plaintext allowed
    insecure_skip_tls_verify: bool = False
    dial_timeout: float = Field(default=2.0, gt=0)
    command_timeout: float = Field(default=5.0, gt=0)

    @model_validator(mode="before")
    @classmethod
    def apply_compat_values(cls, data: Any) -> Any:
        """Handle etcdctl's legacy ETCDCTL_ENDPOINT and ``--user name:password``."""
        if not isinstance(data, dict):
            return data

        if not data.get("endpoints"):
            legacy = get_env_list("ETCDCTL_ENDPOINT")
            if legacy:
                data["endpoints"] = legacy

        user = data.get("user")
        if isinstance(user, str) and ":" in user and not data.get("password"):
            name, password = user.split(":", 1)
            data["user"] = name
            data["password"] = password

        return data

    @field_validator("endpoints", mode="before")
    @classmethod
    def validate_endpoints(cls, v):
        """Accept a comma-separated string or JSON array of endpoints."""
        endpoints = parse_list(v)
        return endpoints or [DEFAULT_ENDPOINT]

    @property
    def tls_requested(self) -> bool:
        """Transport security is on or TLS material is given."""
        return not self.insecure_transport or any((self.cacert, self.cert, self.key))

    @property
    def uses_tls(self) -> bool:
        """At least one endpoint URL is https, explicit or defaulted."""
        return any(url.startswith("https://") for url in self.endpoint_urls())

    def endpoint_urls(self) -> list[str]:
        """Base URLs for every endpoint; an explicit scheme is kept as given."""
        scheme = "https" if self.tls_requested else "http"
        urls = []
        for endpoint in self.endpoints:
            if "://" in endpoint:
                urls.append(endpoint.rstrip("/"))
            else:
                urls.append(f"{scheme}://{endpoint.rstrip('/')}")
        return urls


class ProbeSettings(BaseSettings):
    """Probe-level settings that are not part of the cluster connection."""

    model_config = SettingsConfigDict(
        env_prefix="ETCD_PROBE_",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = "WARNING"
    log_file: Optional[str] = None
    api_prefix: str = "/v3"
    health_key: str = "health"
    alpr_key: str = "dummy"


class Thresholds(BaseModel):
    """Warning/critical latency boundaries in seconds."""

    model_config = ConfigDict(frozen=True)

    warning: float = DEFAULT_WARNING
    critical: float = DEFAULT_CRITICAL

    @classmethod
    def from_values(cls, warning: Any = None, critical: Any = None) -> "Thresholds":
        """Build thresholds from raw flag values, using defaults for unset ones.

        Raises:
            ThresholdConfigError: If a value is not a finite, non-negative number
                or the warning boundary is above the critical one
        """
        w = _parse_threshold("warning", warning, DEFAULT_WARNING)
        c = _parse_threshold("critical", critical, DEFAULT_CRITICAL)
        if w > c:
            raise ThresholdConfigError(
                f"warning threshold {w} is greater than critical threshold {c}"
            )
        return cls(warning=w, critical=c)


def _parse_threshold(name: str, value: Any, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        raise ThresholdConfigError(f"invalid {name} threshold {value!r}: not a number") from None
    if not math.isfinite(parsed) or parsed < 0:
        raise ThresholdConfigError(f"invalid {name} threshold {value!r}: must be a non-negative number")
    return parsed


def load_connection_config(**overrides: Any) -> ConnectionConfig:
    """Build the connection configuration.

    Args:
        **overrides: Explicit values (usually from CLI flags). ``None`` means
            "not given" and falls through to the environment and defaults.
    """
    explicit = {name: value for name, value in overrides.items() if value is not None}

    # A flag-given "name:password" outranks ETCDCTL_PASSWORD
    user = explicit.get("user")
    if isinstance(user, str) and ":" in user and "password" not in explicit:
        explicit["user"], explicit["password"] = user.split(":", 1)

    return ConnectionConfig(**explicit)


def load_settings() -> ProbeSettings:
    """Load probe settings from the environment."""
    return ProbeSettings()
