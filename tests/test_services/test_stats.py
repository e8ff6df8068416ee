"""Tests for latency and throughput statistics."""

import math
import random

import pytest

from sshping.services.stats import (
    median,
    percentile_from_top,
    population_stddev,
    summarize_latencies,
    throughput,
)

# Twenty synthetic round trips in nanoseconds, already sorted
REFERENCE_SAMPLE = [
    110_000, 120_000, 125_000, 130_000, 140_000,
    150_000, 150_000, 160_000, 170_000, 180_000,
    190_000, 200_000, 210_000, 220_000, 240_000,
    260_000, 300_000, 350_000, 500_000, 900_000,
]


class TestSummarizeLatencies:
    """Tests for summarize_latencies()."""

    def test_reference_sample(self) -> None:
        stats = summarize_latencies(REFERENCE_SAMPLE)

        expected_mean = sum(REFERENCE_SAMPLE) / 20
        assert stats.count == 20
        assert stats.mean == 240_250.0
        assert stats.mean == expected_mean
        assert stats.median == 185_000.0
        assert stats.minimum == 110_000
        assert stats.maximum == 900_000
        # 20 // 100 = 0, 20 // 20 = 1, 20 // 10 = 2 positions from the top
        assert stats.p1 == 900_000
        assert stats.p5 == 500_000
        assert stats.p10 == 350_000
        variance = sum((v - expected_mean) ** 2 for v in REFERENCE_SAMPLE) / 20
        assert stats.stddev == pytest.approx(math.sqrt(variance))
        assert stats.stddev == pytest.approx(176_411.98, abs=0.05)

    def test_single_sample(self) -> None:
        stats = summarize_latencies([42_000])

        assert stats.stddev == 0.0
        assert stats.mean == stats.median == 42_000
        assert stats.minimum == stats.maximum == stats.p1 == stats.p5 == stats.p10 == 42_000

    def test_empty_sample_rejected(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            summarize_latencies([])

    def test_idempotent(self) -> None:
        assert summarize_latencies(REFERENCE_SAMPLE) == summarize_latencies(REFERENCE_SAMPLE)

    def test_ordering_invariants(self) -> None:
        rng = random.Random(1234)
        for size in (1, 2, 5, 99, 100, 1000):
            sample = sorted(rng.randint(50_000, 5_000_000) for _ in range(size))
            stats = summarize_latencies(sample)

            assert stats.minimum <= stats.median <= stats.maximum
            assert stats.minimum <= stats.mean <= stats.maximum
            assert stats.p10 <= stats.p5 <= stats.p1 <= stats.maximum
            assert stats.stddev >= 0


def test_median_even_and_odd() -> None:
    assert median([1, 2, 3]) == 2.0
    assert median([1, 2, 3, 10]) == 2.5


def test_population_stddev_divides_by_n() -> None:
    assert population_stddev([2, 4, 4, 4, 5, 5, 7, 9]) == 2.0


def test_percentile_from_top_large_sample() -> None:
    sample = list(range(1, 201))

    assert percentile_from_top(sample, 100) == 198
    assert percentile_from_top(sample, 20) == 190
    assert percentile_from_top(sample, 10) == 180


def test_throughput() -> None:
    assert throughput(10_000_000, 2.0) == 5_000_000.0


def test_throughput_rejects_zero_elapsed() -> None:
    with pytest.raises(ValueError):
        throughput(100, 0.0)
