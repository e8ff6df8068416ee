"""Connected, authenticated sessions."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sshping.models import Target
from sshping.services.jump import check_jump_chain, connect_via_jump
from sshping.services.session import SSHSession

if TYPE_CHECKING:
    from sshping.config.host_keys import HostKeyVerifier
    from sshping.services.auth import Authenticator

logger = logging.getLogger(__name__)


@dataclass
class Connection:
    """An authenticated session and how long authentication took."""

    session: SSHSession
    connect_time: float  # seconds

    def close(self) -> None:
        """Close the session and any jump session under it."""
        self.session.close()

    async def __aenter__(self) -> "Connection":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()


async def open_session(
    target: Target,
    authenticator: "Authenticator",
    timeout: float,
    host_keys: "HostKeyVerifier | None" = None,
    bind_address: str | None = None,
) -> Connection:
    """Connect to ``target`` (directly or through its jump host) and authenticate.

    Args:
        target: Resolved target
        authenticator: Authentication cascade
        timeout: Handshake and per-attempt deadline in seconds
        host_keys: Optional server key verifier
        bind_address: Local source address

    Returns:
        Connection whose ``connect_time`` is the successful attempt's duration

    Raises:
        TransportError: On connect or handshake failure
        AuthError: If every authentication method failed
        JumpChainError: On an unsupported chain or tunnel failure
    """
    check_jump_chain(target.jump)

    if target.jump:
        session = await connect_via_jump(
            target,
            authenticator,
            timeout,
            host_keys=host_keys,
            bind_address=bind_address,
        )
    else:
        session = await SSHSession.connect(
            target.host,
            target.port,
            timeout,
            bind_address=bind_address,
            host_keys=host_keys,
        )

    try:
        connect_time = await authenticator.authenticate(session, target.user)
    except BaseException:
        session.close()
        raise

    logger.info("Authenticated to %s in %.3fs", target.address, connect_time)
    return Connection(session=session, connect_time=connect_time)
