"""Command line entry point for sshping."""

import asyncio
import logging
import sys
from pathlib import Path

import click

from sshping.config import Config, expand_remote_file
from sshping.errors import SSHPingError
from sshping.output import DEFAULT_TABLE_STYLE, TABLE_STYLES, print_summary
from sshping.runner import TEST_CHOICES, BenchmarkOptions, run_benchmark
from sshping.utils.console import configure_logging
from sshping.utils.format import Formatter
from sshping.utils.parser import parse_jump_hosts, parse_target
from sshping.utils.validation import validate_remote_path

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1_000_000


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("target", metavar="[USER@]HOST[:PORT]")
@click.option("-f", "--config", "config_file", type=click.Path(dir_okay=False), help="Read SSH config FILE (default ~/.ssh/config)")
@click.option("-i", "--identity", type=click.Path(dir_okay=False, path_type=Path), help="Use identity FILE (private key)")
@click.option("-p", "--password", help="Use password PWD for authentication (not recommended)")
@click.option("-T", "--ssh-timeout", type=click.FloatRange(min=0, min_open=True), help="Time limit for SSH connection in seconds [default: 10]")
@click.option("-r", "--run-tests", type=click.Choice(TEST_CHOICES), default="both", show_default=True, help="Tests to run")
@click.option("-c", "--char-count", type=click.IntRange(min=1), help="Number of characters to echo [default: 1000]")
@click.option("-e", "--echo-cmd", help="Remote command for the echo test [default: cat > /dev/null]")
@click.option("-t", "--echo-timeout", type=click.FloatRange(min=0, min_open=True), help="Time limit for the echo test in seconds")
@click.option("-s", "--size", type=click.FloatRange(min=0, min_open=True), help="File size for the speed test in megabytes [default: 8.0]")
@click.option("--chunk-size", type=click.IntRange(min=1), help="Bytes per transfer chunk [default: 1000000]")
@click.option("-z", "--remote-file", help="Remote file path for the speed test, PID is replaced [default: /tmp/sshping-PID.tmp]")
@click.option("--keep-remote-file", is_flag=True, help="Leave the speed test file on the server")
@click.option("-J", "--jump-host", help="Connect through jump host [USER@]HOST[:PORT]")
@click.option("-b", "--bind-addr", help="Bind to this SOURCE address")
@click.option("--format", "output_format", type=click.Choice(["table", "json"]), help="Output format [default: table]")
@click.option("--table-style", type=click.Choice(list(TABLE_STYLES)), default=DEFAULT_TABLE_STYLE, show_default=True, help="Table border style")
@click.option("-H", "--human-readable", is_flag=True, help="Use human-friendly units")
@click.option("-d", "--delimit", default=",", show_default=True, help="Thousands delimiter for big numbers")
@click.option("-P", "--ping-summary", is_flag=True, help="Append a ping-like rtt line")
@click.option("-k", "--key-wait", is_flag=True, help="Wait for keyboard input before exiting")
@click.option("-v", "--verbose", count=True, help="Verbose output, repeat for more")
@click.version_option(None, "-V", "--version", package_name="sshping")
def main(
    target: str,
    config_file: str | None,
    identity: Path | None,
    password: str | None,
    ssh_timeout: float | None,
    run_tests: str,
    char_count: int | None,
    echo_cmd: str | None,
    echo_timeout: float | None,
    size: float | None,
    chunk_size: int | None,
    remote_file: str | None,
    keep_remote_file: bool,
    jump_host: str | None,
    bind_addr: str | None,
    output_format: str | None,
    table_style: str,
    human_readable: bool,
    delimit: str,
    ping_summary: bool,
    key_wait: bool,
    verbose: int,
) -> None:
    """Measure SSH echo latency and transfer throughput to TARGET."""
    configure_logging(verbose)
    config = Config.from_env(ssh_config_path=config_file)
    settings = config.settings

    try:
        resolved = parse_target(target)
        resolved.identity = identity.expanduser() if identity else None
        resolved.password = password
        if jump_host:
            resolved.jump = parse_jump_hosts(jump_host)
        config.resolve(resolved)

        try:
            remote_path = validate_remote_path(expand_remote_file(remote_file or settings.remote_file))
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="'-z' / '--remote-file'") from e

        size_bytes = int((size or settings.size_mb) * BYTES_PER_MB)
        if size_bytes < 1:
            raise click.BadParameter(
                f"{size or settings.size_mb:g} MB is less than one byte",
                param_hint="'-s' / '--size'",
            )

        options = BenchmarkOptions(
            tests=run_tests,
            ssh_timeout=ssh_timeout or settings.ssh_timeout,
            char_count=char_count or settings.char_count,
            echo_cmd=echo_cmd or settings.echo_cmd,
            echo_timeout=echo_timeout,
            size=size_bytes,
            chunk_size=chunk_size or settings.chunk_size,
            remote_file=remote_path,
            keep_remote_file=keep_remote_file,
            bind_address=bind_addr,
            show_progress=sys.stderr.isatty(),
        )
        formatter = Formatter(human_readable=human_readable, delimiter=delimit)
        summary = asyncio.run(
            run_benchmark(resolved, options, host_keys=config.host_keys, formatter=formatter)
        )
    except SSHPingError as e:
        logger.debug("Benchmark aborted", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    print_summary(
        summary,
        formatter,
        output_format=output_format or settings.output_format,
        table_style=table_style,
        show_ping_summary=ping_summary,
    )

    if key_wait:
        click.pause("Press enter to exit...")


if __name__ == "__main__":
    main()
