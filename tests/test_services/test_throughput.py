"""Tests for the SFTP throughput test."""

import random
import time
from types import SimpleNamespace

import pytest

from sshping.errors import MeasurementError
from sshping.services.throughput import (
    generate_payload,
    run_download_test,
    run_speed_test,
    run_upload_test,
)

MB = 1_000_000


class FakeRemoteFile:
    """Remote file handle backed by a shared dict."""

    def __init__(self, sftp: "FakeSFTP", path: str, mode: str) -> None:
        self.sftp = sftp
        self.path = path
        self.position = 0
        self.closed = False
        self.pipelined = False
        self.prefetched: int | None = None
        if "w" in mode:
            sftp.files[path] = bytearray()

    def set_pipelined(self, pipelined: bool = True) -> None:
        self.pipelined = pipelined

    def prefetch(self, file_size: int | None = None) -> None:
        self.prefetched = file_size

    def write(self, data: bytes) -> None:
        if self.sftp.fail_write:
            raise OSError("disk full")
        if self.sftp.delay:
            time.sleep(self.sftp.delay)
        self.sftp.files[self.path] += data

    def read(self, size: int) -> bytes:
        if self.sftp.delay:
            time.sleep(self.sftp.delay)
        content = bytes(self.sftp.files[self.path])
        if self.sftp.truncate_reads:
            size = size // 2
        data = content[self.position : self.position + size]
        self.position += len(data)
        self.sftp.reads.append(len(data))
        return data

    def close(self) -> None:
        self.closed = True


class FakeSFTP:
    def __init__(self, files: dict[str, bytearray], **behaviour: object) -> None:
        self.files = files
        self.delay = float(behaviour.get("delay", 0.0))  # type: ignore[arg-type]
        self.fail_write = bool(behaviour.get("fail_write", False))
        self.fail_close = bool(behaviour.get("fail_close", False))
        self.truncate_reads = bool(behaviour.get("truncate_reads", False))
        self.handles: list[FakeRemoteFile] = []
        self.reads: list[int] = []
        self.closed = False

    def open(self, filename: str, mode: str = "r", bufsize: int = -1) -> FakeRemoteFile:
        handle = FakeRemoteFile(self, filename, mode)
        self.handles.append(handle)
        return handle

    def stat(self, path: str) -> SimpleNamespace:
        if path not in self.files:
            raise FileNotFoundError(path)
        return SimpleNamespace(st_size=len(self.files[path]))

    def remove(self, path: str) -> None:
        del self.files[path]

    def close(self) -> None:
        if self.fail_close:
            raise OSError("channel already closed")
        self.closed = True


class FakeSession:
    """Session whose SFTP clients share one in-memory filesystem."""

    def __init__(self, **behaviour: object) -> None:
        self.files: dict[str, bytearray] = {}
        self.behaviour = behaviour
        self.clients: list[FakeSFTP] = []

    async def open_shell(self, term: str = "sshping", width: int = 10, height: int = 5) -> None:
        raise AssertionError("speed test does not use a shell")

    async def open_sftp(self) -> FakeSFTP:
        client = FakeSFTP(self.files, **self.behaviour)
        self.clients.append(client)
        return client


def test_payload_is_printable() -> None:
    payload = generate_payload(10_000, random.Random(7))

    assert len(payload) == 10_000
    assert all(32 <= byte <= 95 for byte in payload)
    assert payload == generate_payload(10_000, random.Random(7))


@pytest.mark.asyncio
async def test_ten_megabytes_in_one_megabyte_chunks() -> None:
    session = FakeSession()

    summary = await run_speed_test(session, 10 * MB, MB, "/tmp/sshping-test.tmp")

    assert summary.upload is not None and summary.download is not None
    assert summary.upload.size == 10_000_000
    assert summary.download.size == 10_000_000
    assert summary.upload.speed > 0
    # Upload, download and removal each get their own SFTP client
    assert len(session.clients) == 3
    assert all(client.closed for client in session.clients)
    assert "/tmp/sshping-test.tmp" not in session.files


@pytest.mark.asyncio
async def test_keep_remote_file() -> None:
    session = FakeSession()

    await run_speed_test(session, MB, MB // 4, "/tmp/keep.tmp", keep_remote_file=True)

    assert len(session.files["/tmp/keep.tmp"]) == MB
    assert len(session.clients) == 2


@pytest.mark.asyncio
async def test_throughput_drops_with_per_chunk_delay() -> None:
    fast = await run_upload_test(FakeSession(delay=0.002), 100_000, 10_000, "/tmp/a")
    slow = await run_upload_test(FakeSession(delay=0.02), 100_000, 10_000, "/tmp/a")

    assert fast.size == slow.size == 100_000
    assert slow.elapsed > fast.elapsed
    assert slow.speed < fast.speed / 3


@pytest.mark.asyncio
async def test_upload_pipelines_and_closes_handle() -> None:
    session = FakeSession()

    result = await run_upload_test(session, 25_000, 10_000, "/tmp/up")

    handle = session.clients[0].handles[0]
    assert handle.pipelined
    assert handle.closed
    assert result.size == 25_000


@pytest.mark.asyncio
async def test_download_reads_full_chunks_then_remainder() -> None:
    session = FakeSession()
    session.files["/tmp/down"] = bytearray(b"x" * 2_500_000)

    result = await run_download_test(session, MB, "/tmp/down")

    assert result.size == 2_500_000
    assert session.clients[0].reads == [MB, MB, 500_000]
    assert session.clients[0].handles[0].prefetched == 2_500_000


@pytest.mark.asyncio
async def test_download_of_empty_file_fails() -> None:
    session = FakeSession()
    session.files["/tmp/empty"] = bytearray()

    with pytest.raises(MeasurementError, match="Remote file is empty"):
        await run_download_test(session, MB, "/tmp/empty")

    assert session.clients[0].closed


@pytest.mark.asyncio
async def test_download_of_missing_file_fails() -> None:
    with pytest.raises(MeasurementError) as exc_info:
        await run_download_test(FakeSession(), MB, "/tmp/missing")

    assert exc_info.value.test == "download"


@pytest.mark.asyncio
async def test_truncated_download_fails() -> None:
    session = FakeSession(truncate_reads=True)
    session.files["/tmp/short"] = bytearray(b"x" * 3 * MB)

    with pytest.raises(MeasurementError, match="ended after"):
        await run_download_test(session, MB, "/tmp/short")


@pytest.mark.asyncio
async def test_write_failure_is_measurement_error() -> None:
    session = FakeSession(fail_write=True)

    with pytest.raises(MeasurementError, match="disk full") as exc_info:
        await run_upload_test(session, MB, MB, "/tmp/up")

    assert exc_info.value.test == "upload"
    assert session.clients[0].handles[0].closed
    assert session.clients[0].closed


@pytest.mark.asyncio
async def test_sftp_close_failure_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    session = FakeSession(fail_close=True)

    summary = await run_speed_test(session, MB, MB, "/tmp/x")

    assert summary.download is not None
    assert summary.download.size == MB
    assert "Failed to close SFTP session" in caplog.text


@pytest.mark.asyncio
async def test_failed_download_still_removes_file() -> None:
    session = FakeSession(truncate_reads=True)

    with pytest.raises(MeasurementError):
        await run_speed_test(session, 3 * MB, MB, "/tmp/x")

    assert "/tmp/x" not in session.files


@pytest.mark.asyncio
async def test_invalid_sizes_rejected() -> None:
    session = FakeSession()

    with pytest.raises(MeasurementError, match="file size must be at least one byte"):
        await run_speed_test(session, 0, MB, "/tmp/x")
    with pytest.raises(MeasurementError, match="chunk size"):
        await run_speed_test(session, MB, 0, "/tmp/x")

    assert session.clients == []
