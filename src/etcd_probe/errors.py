"""Probe error taxonomy.

Each error maps onto the status level the probe reports when it is raised.
"""

from .models import StatusLevel


class ProbeError(Exception):
    """Base class for probe failures."""

    status = StatusLevel.UNKNOWN


class EtcdConnectionError(ProbeError):
    """Endpoint unreachable, timed out, TLS or authentication failure."""

    status = StatusLevel.CRITICAL


class ResponseParseError(ProbeError):
    """The cluster answered with an unexpected response shape."""

    status = StatusLevel.UNKNOWN


class ThresholdConfigError(ProbeError):
    """A warning/critical threshold could not be used."""

    status = StatusLevel.UNKNOWN


class PermissionDeniedError(EtcdConnectionError):
    """The member answered but refused the request for the supplied user."""
