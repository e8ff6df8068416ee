"""Interactive echo latency test.

A remote command that swallows its input (``cat > /dev/null``) runs under a
pty. Every character typed is echoed back by the remote terminal line
discipline, so the time from write to echo is one keystroke round trip.
"""

import asyncio
import logging
import time

import paramiko

from sshping.errors import MeasurementError
from sshping.models import EchoTestSummary
from sshping.protocols import BenchmarkSession, ShellChannel
from sshping.services.stats import summarize_latencies
from sshping.utils.format import Formatter
from sshping.utils.progress import ProgressReporter

logger = logging.getLogger(__name__)

ALPHABET = b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
GREETING_BUFFER = 1500
MIN_RELIABLE_SAMPLES = 20


def _recv_exact(channel: ShellChannel, size: int) -> bytes:
    """Block until exactly ``size`` bytes arrived.

    Raises:
        EOFError: If the channel closes first
    """
    data = b""
    while len(data) < size:
        chunk = channel.recv(size - len(data))
        if not chunk:
            raise EOFError("channel closed by remote end")
        data += chunk
    return data


def _echo_once(channel: ShellChannel, char: bytes) -> int:
    """Send one character and wait for its echo; returns nanoseconds."""
    start = time.perf_counter_ns()
    channel.sendall(char)
    _recv_exact(channel, 1)
    return time.perf_counter_ns() - start


async def run_echo_test(
    session: BenchmarkSession,
    echo_cmd: str,
    char_count: int,
    time_limit: float | None = None,
    show_progress: bool = False,
    formatter: Formatter | None = None,
) -> EchoTestSummary:
    """Measure per-character round-trip latency.

    Args:
        session: Authenticated session
        echo_cmd: Remote command that consumes stdin without output
        char_count: Maximum number of characters to send
        time_limit: Stop after this many seconds, checked after each sample
        show_progress: Draw a progress line on stderr
        formatter: Formatter for the progress status

    Returns:
        EchoTestSummary with sorted-sample statistics

    Raises:
        MeasurementError: If the shell cannot start, the channel fails, or no sample was taken
    """
    formatter = formatter or Formatter()
    logger.info("Running echo latency test")
    logger.debug("Echo command: %s, characters: %d, time limit: %s", echo_cmd, char_count, time_limit)

    try:
        channel = await session.open_shell()
    except (OSError, EOFError, paramiko.SSHException) as e:
        raise MeasurementError("echo", f"cannot start remote shell: {e}") from e

    samples: list[int] = []
    try:
        await asyncio.to_thread(channel.sendall, f"{echo_cmd}\n".encode())
        # Shell banner and the echoed command line
        await asyncio.to_thread(channel.recv, GREETING_BUFFER)

        total = 0
        start = time.monotonic()
        with ProgressReporter("Echo test", char_count, enabled=show_progress) as progress:
            for index in range(char_count):
                char = ALPHABET[index % len(ALPHABET) : index % len(ALPHABET) + 1]
                rtt = await asyncio.to_thread(_echo_once, channel, char)
                samples.append(rtt)
                total += rtt
                progress.update(index + 1, f"avg {formatter.format_duration(total / len(samples))}")
                if time_limit is not None and time.monotonic() - start >= time_limit:
                    logger.debug("Echo time limit of %gs reached after %d characters", time_limit, index + 1)
                    break
    except EOFError as e:
        raise MeasurementError("echo", str(e)) from e
    except (OSError, paramiko.SSHException) as e:
        raise MeasurementError("echo", f"channel error: {e}") from e
    finally:
        channel.close()

    if not samples:
        raise MeasurementError("echo", "Unable to get any echos in given time")
    if len(samples) < MIN_RELIABLE_SAMPLES:
        logger.warning("Only %d echo samples taken, results may be inaccurate", len(samples))

    stats = summarize_latencies(sorted(samples))
    logger.info(
        "Sent %d/%d characters, average latency %s",
        len(samples),
        char_count,
        formatter.format_duration(stats.mean),
    )
    return EchoTestSummary(char_count=char_count, char_sent=len(samples), stats=stats)
