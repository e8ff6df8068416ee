"""Benchmark flow: connect, authenticate, run the selected tests."""

import logging
from dataclasses import dataclass

from sshping.config.host_keys import HostKeyVerifier
from sshping.models import EchoTestSummary, SpeedTestSummary, Summary, Target
from sshping.services.auth import Authenticator
from sshping.services.connection import open_session
from sshping.services.echo import run_echo_test
from sshping.services.throughput import run_speed_test
from sshping.utils.format import Formatter

logger = logging.getLogger(__name__)

TEST_CHOICES = ("echo", "speed", "both")


@dataclass
class BenchmarkOptions:
    """What to run and how."""

    tests: str = "both"
    ssh_timeout: float = 10.0
    char_count: int = 1000
    echo_cmd: str = "cat > /dev/null"
    echo_timeout: float | None = None
    size: int = 8_000_000  # bytes
    chunk_size: int = 1_000_000
    remote_file: str = "/tmp/sshping.tmp"
    keep_remote_file: bool = False
    bind_address: str | None = None
    show_progress: bool = False

    def __post_init__(self) -> None:
        if self.tests not in TEST_CHOICES:
            raise ValueError(f"tests must be one of {', '.join(TEST_CHOICES)}, got '{self.tests}'")

    @property
    def run_echo(self) -> bool:
        """Whether the echo test is selected."""
        return self.tests in ("echo", "both")

    @property
    def run_speed(self) -> bool:
        """Whether the speed test is selected."""
        return self.tests in ("speed", "both")


async def run_benchmark(
    target: Target,
    options: BenchmarkOptions,
    authenticator: Authenticator | None = None,
    host_keys: HostKeyVerifier | None = None,
    formatter: Formatter | None = None,
) -> Summary:
    """Run the selected tests against ``target``.

    The session is closed when the run ends, whether it succeeded or not.

    Args:
        target: Resolved target, including credentials and jump host
        options: Test selection and parameters
        authenticator: Authentication cascade (the default cascade when None)
        host_keys: Optional server key verifier
        formatter: Formatter for logs and progress

    Returns:
        Summary of everything that ran

    Raises:
        SSHPingError: On any fatal failure
    """
    formatter = formatter or Formatter()
    if authenticator is None:
        authenticator = Authenticator.default(target.password, target.identity, options.ssh_timeout)

    connection = await open_session(
        target,
        authenticator,
        options.ssh_timeout,
        host_keys=host_keys,
        bind_address=options.bind_address,
    )
    async with connection:
        echo: EchoTestSummary | None = None
        speed: SpeedTestSummary | None = None

        if options.run_echo:
            echo = await run_echo_test(
                connection.session,
                options.echo_cmd,
                options.char_count,
                time_limit=options.echo_timeout,
                show_progress=options.show_progress,
                formatter=formatter,
            )
        if options.run_speed:
            speed = await run_speed_test(
                connection.session,
                options.size,
                options.chunk_size,
                options.remote_file,
                keep_remote_file=options.keep_remote_file,
                show_progress=options.show_progress,
                formatter=formatter,
            )

    return Summary(
        target=target.address,
        connect_time=connection.connect_time,
        echo=echo,
        speed=speed,
    )
