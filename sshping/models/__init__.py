"""Data models for sshping."""

from sshping.models.results import (
    EchoTestSummary,
    LatencyStats,
    SpeedTestSummary,
    Summary,
    ThroughputResult,
)
from sshping.models.target import DEFAULT_PORT, HostParams, Target

__all__ = [
    "DEFAULT_PORT",
    "EchoTestSummary",
    "HostParams",
    "LatencyStats",
    "SpeedTestSummary",
    "Summary",
    "Target",
    "ThroughputResult",
]
