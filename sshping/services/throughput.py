"""Upload and download throughput test over SFTP."""

import asyncio
import logging
import random
import time
from typing import Any

import paramiko

from sshping.errors import MeasurementError
from sshping.models import SpeedTestSummary, ThroughputResult
from sshping.protocols import BenchmarkSession, FileTransferClient, RemoteFile
from sshping.utils.format import Formatter
from sshping.utils.progress import ProgressReporter

logger = logging.getLogger(__name__)

# Maps every byte to (b & 0x3f) + 32, the printable range 32..95
_PRINTABLE = bytes((value & 0x3F) + 32 for value in range(256))

_TRANSFER_ERRORS = (OSError, EOFError, paramiko.SSHException)


def generate_payload(size: int, rng: random.Random | None = None) -> bytes:
    """Random printable bytes to upload."""
    rng = rng or random.Random()
    return rng.randbytes(size).translate(_PRINTABLE)


def _close(resource: Any, what: str) -> None:
    """Close ``resource``, logging instead of raising."""
    try:
        resource.close()
    except _TRANSFER_ERRORS as e:
        logger.warning("Failed to close %s: %s", what, e)


async def _open_sftp(session: BenchmarkSession, test: str) -> FileTransferClient:
    try:
        return await session.open_sftp()
    except _TRANSFER_ERRORS as e:
        raise MeasurementError(test, f"cannot start SFTP: {e}") from e


def _status(formatter: Formatter, done: int, start: float) -> str:
    elapsed = time.perf_counter() - start
    if elapsed <= 0:
        return formatter.format_size(done)
    return f"{formatter.format_size(done)}, {formatter.format_speed(done / elapsed)}"


async def run_upload_test(
    session: BenchmarkSession,
    size: int,
    chunk_size: int,
    remote_file: str,
    show_progress: bool = False,
    formatter: Formatter | None = None,
) -> ThroughputResult:
    """Write ``size`` random bytes to ``remote_file`` in ``chunk_size`` chunks.

    Timing starts at the first write and ends once the remote handle is
    closed, so buffered data has reached the server.

    Raises:
        MeasurementError: If SFTP cannot start or the transfer fails
    """
    formatter = formatter or Formatter()
    logger.info("Running upload speed test")
    payload = generate_payload(size)

    sftp = await _open_sftp(session, "upload")
    try:
        handle: RemoteFile = await asyncio.to_thread(sftp.open, remote_file, "wb")
        handle.set_pipelined(True)
        sent = 0
        start = time.perf_counter()
        try:
            with ProgressReporter("Upload", size, enabled=show_progress) as progress:
                for offset in range(0, size, chunk_size):
                    chunk = payload[offset : offset + chunk_size]
                    await asyncio.to_thread(handle.write, chunk)
                    sent += len(chunk)
                    progress.update(sent, _status(formatter, sent, start))
        except BaseException:
            _close(handle, f"remote file {remote_file}")
            raise
        await asyncio.to_thread(handle.close)
        elapsed = time.perf_counter() - start
    except _TRANSFER_ERRORS as e:
        raise MeasurementError("upload", f"{remote_file}: {e}") from e
    finally:
        _close(sftp, "SFTP session")

    result = ThroughputResult(size=sent, elapsed=elapsed)
    logger.info(
        "Sent %s, Time Elapsed: %s, Average Speed: %s",
        formatter.format_size(result.size),
        formatter.format_seconds(result.elapsed),
        formatter.format_speed(result.speed),
    )
    return result


def _read_exact(handle: RemoteFile, size: int) -> bytes:
    data = handle.read(size)
    if len(data) != size:
        raise EOFError(f"remote file ended after {len(data)} of {size} bytes")
    return data


async def run_download_test(
    session: BenchmarkSession,
    chunk_size: int,
    remote_file: str,
    show_progress: bool = False,
    formatter: Formatter | None = None,
) -> ThroughputResult:
    """Read ``remote_file`` back in ``chunk_size`` chunks.

    Full chunks are read while more than one chunk remains, then the rest in
    a single read. Timing ends after the last read.

    Raises:
        MeasurementError: If the file is empty, SFTP cannot start or the transfer fails
    """
    formatter = formatter or Formatter()
    logger.info("Running download speed test")

    sftp = await _open_sftp(session, "download")
    try:
        attrs = await asyncio.to_thread(sftp.stat, remote_file)
        size = attrs.st_size or 0
        if size == 0:
            raise MeasurementError("download", "Remote file is empty")

        handle: RemoteFile = await asyncio.to_thread(sftp.open, remote_file, "rb")
        try:
            handle.prefetch(size)
            received = 0
            start = time.perf_counter()
            with ProgressReporter("Download", size, enabled=show_progress) as progress:
                while size - received > chunk_size:
                    received += len(await asyncio.to_thread(_read_exact, handle, chunk_size))
                    progress.update(received, _status(formatter, received, start))
                if size - received > 0:
                    received += len(await asyncio.to_thread(handle.read, size - received))
                    progress.update(received, _status(formatter, received, start))
            elapsed = time.perf_counter() - start
        finally:
            _close(handle, f"remote file {remote_file}")
    except _TRANSFER_ERRORS as e:
        raise MeasurementError("download", f"{remote_file}: {e}") from e
    finally:
        _close(sftp, "SFTP session")

    result = ThroughputResult(size=received, elapsed=elapsed)
    logger.info(
        "Received %s, Time Elapsed: %s, Average Speed: %s",
        formatter.format_size(result.size),
        formatter.format_seconds(result.elapsed),
        formatter.format_speed(result.speed),
    )
    return result


async def remove_remote_file(session: BenchmarkSession, remote_file: str) -> None:
    """Delete the test file; failures are logged."""
    try:
        sftp = await session.open_sftp()
    except _TRANSFER_ERRORS as e:
        logger.warning("Cannot remove %s: %s", remote_file, e)
        return
    try:
        await asyncio.to_thread(sftp.remove, remote_file)
        logger.debug("Removed remote file %s", remote_file)
    except _TRANSFER_ERRORS as e:
        logger.warning("Cannot remove %s: %s", remote_file, e)
    finally:
        _close(sftp, "SFTP session")


async def run_speed_test(
    session: BenchmarkSession,
    size: int,
    chunk_size: int,
    remote_file: str,
    keep_remote_file: bool = False,
    show_progress: bool = False,
    formatter: Formatter | None = None,
) -> SpeedTestSummary:
    """Upload then download the same remote file.

    Args:
        session: Authenticated session
        size: Bytes to upload
        chunk_size: Bytes per write and per read
        remote_file: Remote path used for both phases
        keep_remote_file: Leave the file on the server afterwards
        show_progress: Draw a progress line on stderr
        formatter: Formatter for logs and progress

    Returns:
        SpeedTestSummary with both directions

    Raises:
        MeasurementError: If either phase fails, or size or chunk_size is not positive
    """
    if size <= 0:
        raise MeasurementError("speed", f"file size must be at least one byte, got {size}")
    if chunk_size <= 0:
        raise MeasurementError("speed", f"chunk size must be at least one byte, got {chunk_size}")

    formatter = formatter or Formatter()
    logger.info("Running speed test")
    logger.debug("File size: %s, remote file: %s", formatter.format_size(size), remote_file)

    upload = await run_upload_test(session, size, chunk_size, remote_file, show_progress, formatter)
    try:
        download = await run_download_test(session, chunk_size, remote_file, show_progress, formatter)
    finally:
        if not keep_remote_file:
            await remove_remote_file(session, remote_file)
    return SpeedTestSummary(upload=upload, download=download)
