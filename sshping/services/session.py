"""SSH session handle.

Wraps a paramiko Transport behind coroutine methods. Blocking paramiko calls
run in worker threads so the event loop stays free between I/O operations.

Ownership:
- A direct session owns its socket.
- A tunnelled session owns the forwarded channel it runs over and holds a
  reference to the jump session that channel belongs to. ``close()`` always
  tears down inner before outer.

Deadlines:
- A handshake that misses its deadline has its socket and transport closed
  from the event loop, which stops the worker thread.
- An authentication attempt that misses its deadline is told to stop before
  its next request, then given ``ABANDON_GRACE`` seconds to see the server's
  answer. Only an explicit rejection leaves the transport usable; anything
  else closes it, so no later attempt shares it with an unanswered request.
"""

import asyncio
import logging
import socket
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import paramiko

from sshping.errors import AuthError, JumpChainError, TransportError

if TYPE_CHECKING:
    from sshping.config.host_keys import HostKeyVerifier

logger = logging.getLogger(__name__)

LOOPBACK_ORIGIN = ("127.0.0.1", 0)
ABANDON_GRACE = 1.0


class _Handshake:
    """Resources a handshake worker opened, closable from the event loop."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._abandoned = False
        self._resources: list[Any] = []

    def track(self, resource: Any) -> Any:
        """Register ``resource``; closes it at once if the deadline already passed."""
        with self._lock:
            if not self._abandoned:
                self._resources.append(resource)
                return resource
        resource.close()
        return resource

    def abandon(self) -> None:
        """Close everything opened so far, newest first."""
        with self._lock:
            self._abandoned = True
            resources = self._resources[::-1]
            self._resources.clear()
        for resource in resources:
            resource.close()


class SSHSession:
    """One SSH connection, from handshake to close."""

    def __init__(
        self,
        transport: paramiko.Transport,
        name: str,
        timeout: float,
        parent: "SSHSession | None" = None,
        channel: paramiko.Channel | None = None,
    ) -> None:
        """Initialize session around an already-handshaken transport.

        Args:
            transport: Transport after key exchange, before authentication
            name: host:port label used in logs and errors
            timeout: Per-operation timeout in seconds
            parent: Jump session this session is tunnelled through
            channel: Forwarded channel carrying this session's bytes
        """
        self._transport = transport
        self.name = name
        self.timeout = timeout
        self.parent = parent
        self._channel = channel
        self._closed = False

    @staticmethod
    def _handshake(
        transport: paramiko.Transport,
        host: str,
        port: int,
        timeout: float,
        host_keys: "HostKeyVerifier | None",
    ) -> None:
        transport.banner_timeout = timeout
        transport.auth_timeout = timeout
        transport.start_client(timeout=timeout)
        if host_keys is not None:
            host_keys.verify(host, port, transport.get_remote_server_key())

    @classmethod
    async def _establish(
        cls,
        name: str,
        timeout: float,
        open_transport: Callable[[_Handshake], paramiko.Transport],
    ) -> paramiko.Transport:
        """Run a blocking handshake under a deadline, mapping failures to TransportError."""
        handshake = _Handshake()
        try:
            return await asyncio.wait_for(asyncio.to_thread(open_transport, handshake), timeout=timeout)
        except TimeoutError as e:
            handshake.abandon()
            raise TransportError(name, f"connection timed out after {timeout:g}s", timed_out=True) from e
        except (OSError, EOFError, paramiko.SSHException) as e:
            raise TransportError(name, str(e) or type(e).__name__) from e

    @classmethod
    async def connect(
        cls,
        host: str,
        port: int,
        timeout: float,
        bind_address: str | None = None,
        host_keys: "HostKeyVerifier | None" = None,
    ) -> "SSHSession":
        """Open a TCP connection and run the SSH handshake.

        Args:
            host: Host name or address
            port: SSH port
            timeout: Deadline for the whole handshake in seconds
            bind_address: Local source address to bind to
            host_keys: Optional server key verifier

        Returns:
            Unauthenticated session

        Raises:
            TransportError: On connect or handshake failure, including timeout
        """
        name = f"{host}:{port}"
        logger.info("Opening SSH connection to %s", name)

        def _open(handshake: _Handshake) -> paramiko.Transport:
            source = (bind_address, 0) if bind_address else None
            sock = handshake.track(socket.create_connection((host, port), timeout=timeout, source_address=source))
            transport = handshake.track(paramiko.Transport(sock))
            try:
                cls._handshake(transport, host, port, timeout, host_keys)
            except BaseException:
                transport.close()
                raise
            return transport

        transport = await cls._establish(name, timeout, _open)
        logger.info("SSH handshake completed with %s", name)
        return cls(transport, name, timeout)

    @classmethod
    async def over_channel(
        cls,
        parent: "SSHSession",
        channel: paramiko.Channel,
        host: str,
        port: int,
        host_keys: "HostKeyVerifier | None" = None,
    ) -> "SSHSession":
        """Run a new SSH handshake over a forwarded channel of ``parent``.

        Raises:
            TransportError: On handshake failure, including timeout
        """
        name = f"{host}:{port}"
        logger.info("Opening SSH connection to %s via %s", name, parent.name)

        def _open(handshake: _Handshake) -> paramiko.Transport:
            transport = handshake.track(paramiko.Transport(channel))
            try:
                cls._handshake(transport, host, port, parent.timeout, host_keys)
            except BaseException:
                transport.close()
                raise
            return transport

        transport = await cls._establish(name, parent.timeout, _open)
        logger.info("SSH handshake completed with %s via %s", name, parent.name)
        return cls(transport, name, parent.timeout, parent=parent, channel=channel)

    @property
    def is_authenticated(self) -> bool:
        """True once the server accepted a credential."""
        return self._transport.is_authenticated()

    @property
    def is_closed(self) -> bool:
        """True after close()."""
        return self._closed

    async def auth_methods(self, user: str) -> set[str]:
        """Ask the server which authentication methods it accepts for ``user``.

        Sends a ``none`` authentication request; if the server accepts it, the
        session is authenticated and the returned set is empty.

        Raises:
            AuthError: If the query fails for a reason other than rejection
        """

        def _query() -> set[str]:
            try:
                self._transport.auth_none(user)
            except paramiko.BadAuthenticationType as e:
                return set(e.allowed_types)
            return set()

        try:
            return await asyncio.to_thread(_query)
        except paramiko.SSHException as e:
            raise AuthError(f"Cannot query authentication methods: {e}", method="none") from e

    def _offer(self, method: str, call: Callable[..., Any], *args: Any) -> bool:
        """One blocking auth request; rejection is False."""
        try:
            call(*args)
        except paramiko.AuthenticationException as e:
            logger.debug("%s authentication rejected on %s: %s", method, self.name, e)
            return False
        return self._transport.is_authenticated()

    async def _settle(self, method: str, worker: "asyncio.Future[bool]") -> None:
        """Wait briefly for an abandoned attempt, closing the transport unless it was rejected."""
        done, _ = await asyncio.wait({worker}, timeout=ABANDON_GRACE)
        if worker in done and worker.exception() is None and not worker.result():
            logger.debug("Abandoned %s attempt on %s was rejected", method, self.name)
            return

        logger.warning(
            "Abandoned %s attempt on %s left the connection in an unknown state, closing it",
            method,
            self.name,
        )
        self._transport.close()
        if worker not in done:
            await asyncio.wait({worker})
            worker.exception()

    async def _authenticate(self, method: str, work: Callable[[threading.Event], bool]) -> bool:
        """Run ``work`` in a worker thread as one cancellable authentication attempt.

        Raises:
            AuthError: On protocol errors, or if an earlier attempt closed the transport
        """
        if self._closed or not self._transport.is_active():
            raise AuthError(f"{method} authentication skipped, connection to {self.name} is closed", method=method)

        cancel = threading.Event()
        worker = asyncio.ensure_future(asyncio.to_thread(work, cancel))
        try:
            return await asyncio.shield(worker)
        except asyncio.CancelledError:
            cancel.set()
            await self._settle(method, worker)
            raise
        except (OSError, EOFError, paramiko.SSHException) as e:
            raise AuthError(f"{method} authentication error: {e}", method=method) from e

    async def auth_agent(self, user: str) -> bool:
        """Try every identity offered by the local SSH agent."""

        def _try_agent(cancel: threading.Event) -> bool:
            agent = paramiko.Agent()
            try:
                keys = agent.get_keys()
                if not keys:
                    logger.debug("No identities available from SSH agent")
                    return False
                for key in keys:
                    if cancel.is_set():
                        return False
                    if self._offer("agent", self._transport.auth_publickey, user, key):
                        return True
                return False
            finally:
                agent.close()

        return await self._authenticate("agent", _try_agent)

    async def auth_public_key(self, user: str, key: paramiko.PKey) -> bool:
        """Try a decoded private key."""
        return await self._authenticate(
            "publickey",
            lambda cancel: self._offer("publickey", self._transport.auth_publickey, user, key),
        )

    async def auth_password(self, user: str, password: str) -> bool:
        """Try a password."""
        return await self._authenticate(
            "password",
            lambda cancel: self._offer("password", self._transport.auth_password, user, password),
        )

    async def open_shell(self, term: str = "sshping", width: int = 10, height: int = 5) -> paramiko.Channel:
        """Open a session channel, request a pty and start a shell.

        Raises:
            paramiko.SSHException: If the server refuses the channel, pty or shell
        """

        def _open() -> paramiko.Channel:
            channel = self._transport.open_session(timeout=self.timeout)
            try:
                channel.settimeout(self.timeout)
                channel.get_pty(term=term, width=width, height=height)
                channel.invoke_shell()
            except BaseException:
                channel.close()
                raise
            return channel

        return await asyncio.to_thread(_open)

    async def open_forwarded_channel(
        self,
        host: str,
        port: int,
        origin: tuple[str, int] = LOOPBACK_ORIGIN,
    ) -> paramiko.Channel:
        """Ask the server to open a TCP connection to ``host:port`` for us.

        Raises:
            JumpChainError: If the server refuses or the request times out
        """
        logger.debug("Requesting direct-tcpip channel %s -> %s:%d", self.name, host, port)
        try:
            return await asyncio.to_thread(
                self._transport.open_channel,
                "direct-tcpip",
                (host, port),
                origin,
                timeout=self.timeout,
            )
        except (OSError, EOFError, paramiko.SSHException) as e:
            raise JumpChainError(f"Cannot open tunnel from {self.name} to {host}:{port}: {e}") from e

    async def open_sftp(self) -> paramiko.SFTPClient:
        """Start an SFTP sub-session.

        Raises:
            paramiko.SSHException: If the subsystem cannot be started
        """
        sftp = await asyncio.to_thread(paramiko.SFTPClient.from_transport, self._transport)
        if sftp is None:
            raise paramiko.SSHException("SFTP subsystem unavailable")
        return sftp

    def close(self) -> None:
        """Close this session, then the channel it runs over, then its parent."""
        if self._closed:
            return
        self._closed = True
        self._transport.close()
        if self._channel is not None:
            self._channel.close()
        logger.info("Closed SSH connection to %s", self.name)
        if self.parent is not None:
            self.parent.close()

    async def __aenter__(self) -> "SSHSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()
