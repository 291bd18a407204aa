"""Models for probe results."""

from enum import Enum, IntEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StatusLevel(IntEnum):
    """Monitoring-plugin status level; the value is the process exit code."""

    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3


class ProbeState(str, Enum):
    """Lifecycle of a single probe run."""

    INIT = "init"
    CONNECTING = "connecting"
    MEASURING = "measuring"
    CLASSIFIED = "classified"
    REPORTED = "reported"


class EndpointHealth(BaseModel):
    """Health of a single cluster member as seen from one endpoint."""

    model_config = ConfigDict(frozen=True)

    endpoint: str = Field(..., description="Endpoint URL that was queried")
    healthy: bool = Field(..., description="Member answered the consensus read")
    took: float = Field(0.0, description="Round-trip time in seconds")
    error: Optional[str] = Field(None, description="Client error, if any")


class DiagnosticResult(BaseModel):
    """Terminal value of a probe run: a status level and its message."""

    model_config = ConfigDict(frozen=True)

    status: StatusLevel = Field(..., description="Classified status level")
    message: str = Field(..., description="Human-readable status message")
    latency: Optional[float] = Field(None, description="Measured latency in seconds")
    metadata: dict = Field(default_factory=dict, description="Additional diagnostic detail")

    @property
    def exit_code(self) -> int:
        """Process exit code for this status (0-3)."""
        return int(self.status)

    @property
    def output(self) -> str:
        """Single status line in the monitoring-plugin format."""
        return f"{self.status.name} - {self.message}"
