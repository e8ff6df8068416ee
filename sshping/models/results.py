"""Benchmark result data models."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class LatencyStats:
    """Reduction of a sorted latency sample (all values in nanoseconds)."""

    count: int
    mean: float
    stddev: float
    median: float
    minimum: int
    maximum: int
    p1: int
    p5: int
    p10: int

    def to_dict(self) -> dict[str, float | int]:
        """Convert to dictionary."""
        return {
            "count": self.count,
            "mean_ns": round(self.mean, 1),
            "stddev_ns": round(self.stddev, 1),
            "median_ns": round(self.median, 1),
            "min_ns": self.minimum,
            "max_ns": self.maximum,
            "p1_high_ns": self.p1,
            "p5_high_ns": self.p5,
            "p10_high_ns": self.p10,
        }


@dataclass(frozen=True)
class EchoTestSummary:
    """Result of the echo latency test."""

    char_count: int
    char_sent: int
    stats: LatencyStats

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "char_count": self.char_count,
            "char_sent": self.char_sent,
            "latency": self.stats.to_dict(),
        }


@dataclass(frozen=True)
class ThroughputResult:
    """Bytes moved in one direction and the time it took."""

    size: int
    elapsed: float  # seconds

    @property
    def speed(self) -> float:
        """Throughput in bytes per second."""
        from sshping.services.stats import throughput

        return throughput(self.size, self.elapsed)

    def to_dict(self) -> dict[str, float | int]:
        """Convert to dictionary."""
        return {
            "bytes": self.size,
            "elapsed_s": round(self.elapsed, 6),
            "bytes_per_second": round(self.speed, 1),
        }


@dataclass(frozen=True)
class SpeedTestSummary:
    """Upload and download results of the throughput test."""

    upload: ThroughputResult | None = None
    download: ThroughputResult | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {}
        if self.upload is not None:
            result["upload"] = self.upload.to_dict()
        if self.download is not None:
            result["download"] = self.download.to_dict()
        return result


@dataclass(frozen=True)
class Summary:
    """Everything one benchmark run produced, handed to the output layer."""

    target: str
    connect_time: float  # seconds
    echo: EchoTestSummary | None = None
    speed: SpeedTestSummary | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "target": self.target,
            "ssh_connect_time_s": round(self.connect_time, 6),
        }
        if self.echo is not None:
            result["echo_test"] = self.echo.to_dict()
        if self.speed is not None:
            result["speed_test"] = self.speed.to_dict()
        return result
