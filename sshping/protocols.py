"""Protocol interfaces for dependency inversion.

The measurement code depends on these shapes rather than on paramiko
directly, so tests can drive it with in-memory fakes.

Usage Example:

    from sshping.protocols import AuthSession

    async def my_function(session: AuthSession):
        '''Function depends on protocol, not concrete implementation.'''
        methods = await session.auth_methods("alice")

    # Can pass the real session
    from sshping.services.session import SSHSession
    await my_function(await SSHSession.connect("example.com", 22, 10.0))

    # Or a fake for testing
    class FakeSession:
        async def auth_methods(self, user):
            return {"password"}
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class AuthSession(Protocol):
    """Transport-connected session that has not been authenticated yet."""

    @property
    def is_authenticated(self) -> bool:
        """True once the server accepted a credential."""
        ...

    async def auth_methods(self, user: str) -> set[str]:
        """Authentication methods the server offers for ``user``."""
        ...

    async def auth_agent(self, user: str) -> bool:
        """Try every identity held by the local SSH agent."""
        ...

    async def auth_public_key(self, user: str, key: Any) -> bool:
        """Try one decoded private key."""
        ...

    async def auth_password(self, user: str, password: str) -> bool:
        """Try a password."""
        ...


@runtime_checkable
class ShellChannel(Protocol):
    """Interactive channel with a pty and a running shell."""

    def sendall(self, data: bytes) -> None:
        """Write all of ``data`` to the channel."""
        ...

    def recv(self, nbytes: int) -> bytes:
        """Read up to ``nbytes``; empty bytes means EOF."""
        ...

    def close(self) -> None:
        """Close the channel."""
        ...


@runtime_checkable
class RemoteFile(Protocol):
    """File handle opened through the SFTP subsystem."""

    def set_pipelined(self, pipelined: bool = True) -> None:
        """Stop waiting for a server ack after every write."""
        ...

    def prefetch(self, file_size: int | None = None) -> None:
        """Request the whole file ahead of reads."""
        ...

    def write(self, data: bytes) -> None:
        """Write a chunk."""
        ...

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes."""
        ...

    def close(self) -> None:
        """Flush and close the handle."""
        ...


@runtime_checkable
class FileTransferClient(Protocol):
    """Bulk file-transfer subsystem (SFTP)."""

    def open(self, filename: str, mode: str = "r", bufsize: int = -1) -> RemoteFile:
        """Open a remote file."""
        ...

    def stat(self, path: str) -> Any:
        """Remote file metadata with ``st_size``."""
        ...

    def remove(self, path: str) -> None:
        """Delete a remote file."""
        ...

    def close(self) -> None:
        """Shut the subsystem down."""
        ...


@runtime_checkable
class BenchmarkSession(Protocol):
    """Authenticated session the tests run against."""

    async def open_shell(self, term: str = "sshping", width: int = 10, height: int = 5) -> ShellChannel:
        """Open a channel with a pty and start a shell."""
        ...

    async def open_sftp(self) -> FileTransferClient:
        """Start an SFTP sub-session."""
        ...
