"""Single-hop jump host tunnelling."""

import logging
from typing import TYPE_CHECKING

from sshping.errors import JumpChainError
from sshping.models import Target
from sshping.services.session import SSHSession

if TYPE_CHECKING:
    from sshping.config.host_keys import HostKeyVerifier
    from sshping.services.auth import Authenticator

logger = logging.getLogger(__name__)

MAX_JUMP_HOPS = 1


def check_jump_chain(jump: list[Target]) -> None:
    """Reject chains longer than one intermediate host.

    Raises:
        JumpChainError: If more than one hop is requested
    """
    if len(jump) > MAX_JUMP_HOPS:
        hops = ", ".join(hop.address for hop in jump)
        raise JumpChainError(
            f"unsupported: only one hop is allowed in a jump chain, got {len(jump)} ({hops})"
        )


async def connect_via_jump(
    target: Target,
    authenticator: "Authenticator",
    timeout: float,
    host_keys: "HostKeyVerifier | None" = None,
    bind_address: str | None = None,
) -> SSHSession:
    """Reach ``target`` through its single jump host.

    The jump host is connected and authenticated with the same authenticator
    as the target. A ``direct-tcpip`` channel to the target is then opened on
    it, and a fresh SSH handshake runs over that channel.

    Args:
        target: Final destination, with exactly one entry in ``target.jump``
        authenticator: Cascade used for the jump host
        timeout: Handshake and per-attempt deadline in seconds
        host_keys: Optional server key verifier
        bind_address: Local source address for the outer connection

    Returns:
        Unauthenticated session to the target, owning the jump session

    Raises:
        JumpChainError: If the chain is too long or the tunnel cannot be opened
        TransportError: If either handshake fails
        AuthError: If authentication on the jump host is exhausted
    """
    check_jump_chain(target.jump)
    if not target.jump:
        raise JumpChainError("connect_via_jump called without a jump host")
    hop = target.jump[0]

    logger.info("Connecting to %s via jump host %s", target.address, hop.address)
    jump_session = await SSHSession.connect(
        hop.host,
        hop.port,
        timeout,
        bind_address=bind_address,
        host_keys=host_keys,
    )
    try:
        await authenticator.authenticate(jump_session, hop.user)
        channel = await jump_session.open_forwarded_channel(target.host, target.port)
        return await SSHSession.over_channel(
            jump_session,
            channel,
            target.host,
            target.port,
            host_keys=host_keys,
        )
    except BaseException:
        jump_session.close()
        raise
