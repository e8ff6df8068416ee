"""Latency and throughput statistics.

Pure functions with no I/O or hidden state: the same input always yields the
same output.
"""

import math
from collections.abc import Sequence

from sshping.models import LatencyStats


def mean(sample: Sequence[int]) -> float:
    """Arithmetic mean of a non-empty sample."""
    return sum(sample) / len(sample)


def population_stddev(sample: Sequence[int], center: float | None = None) -> float:
    """Population standard deviation (divides by N, not N-1)."""
    if center is None:
        center = mean(sample)
    return math.sqrt(sum((value - center) ** 2 for value in sample) / len(sample))


def median(sorted_sample: Sequence[int]) -> float:
    """Median of an ascending sample.

    Even-sized samples average the two middle values.
    """
    n = len(sorted_sample)
    middle = n // 2
    if n % 2 == 0:
        return (sorted_sample[middle - 1] + sorted_sample[middle]) / 2
    return float(sorted_sample[middle])


def percentile_from_top(sorted_sample: Sequence[int], divisor: int) -> int:
    """Value ``len // divisor`` positions in from the slowest end.

    ``divisor=100`` gives the 1% high, ``20`` the 5% high, ``10`` the 10% high.
    The index is clamped so tiny samples resolve to their only element.
    """
    n = len(sorted_sample)
    offset = min(n // divisor, n - 1)
    return sorted_sample[n - 1 - offset]


def summarize_latencies(sorted_sample: Sequence[int]) -> LatencyStats:
    """Reduce an ascending latency sample to summary metrics.

    Args:
        sorted_sample: Round-trip times in nanoseconds, sorted ascending

    Returns:
        LatencyStats for the sample

    Raises:
        ValueError: If the sample is empty
    """
    if not sorted_sample:
        raise ValueError("Cannot summarize an empty latency sample")

    avg = mean(sorted_sample)
    return LatencyStats(
        count=len(sorted_sample),
        mean=avg,
        stddev=population_stddev(sorted_sample, avg),
        median=median(sorted_sample),
        minimum=sorted_sample[0],
        maximum=sorted_sample[-1],
        p1=percentile_from_top(sorted_sample, 100),
        p5=percentile_from_top(sorted_sample, 20),
        p10=percentile_from_top(sorted_sample, 10),
    )


def throughput(size: int, elapsed: float) -> float:
    """Bytes per second for ``size`` bytes moved in ``elapsed`` seconds.

    Raises:
        ValueError: If elapsed is not positive
    """
    if elapsed <= 0:
        raise ValueError(f"elapsed must be > 0, got {elapsed}")
    return size / elapsed
