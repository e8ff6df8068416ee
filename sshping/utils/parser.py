"""Target literal parsing."""

import getpass

from sshping.errors import TargetParseError
from sshping.models import DEFAULT_PORT, Target
from sshping.utils.validation import validate_host, validate_port


def local_username() -> str:
    """Name of the user running sshping.

    Raises:
        TargetParseError: If the login name cannot be determined
    """
    try:
        return getpass.getuser()
    except (KeyError, OSError) as e:
        raise TargetParseError("", "Failed to get current username") from e


def parse_target(target: str) -> Target:
    """Parse a ``[user@]host[:port]`` literal.

    Formats:
        - "host" -> current user, port 22
        - "user@host" -> port 22
        - "user@host:2222"

    Returns:
        Target with parsed components.

    Raises:
        TargetParseError: If the literal is malformed.
    """
    literal = target.strip()

    parts = literal.split("@")
    if len(parts) > 2:
        raise TargetParseError(target)
    if len(parts) == 2:
        user, rest = parts
        if not user:
            raise TargetParseError(target, "User cannot be empty")
    else:
        user, rest = local_username(), parts[0]

    host_port = rest.split(":")
    if len(host_port) > 2:
        raise TargetParseError(target)

    try:
        host = validate_host(host_port[0])
        port = validate_port(host_port[1]) if len(host_port) == 2 else DEFAULT_PORT
    except ValueError as e:
        raise TargetParseError(target, str(e)) from e

    return Target(user=user, host=host, port=port)


def parse_jump_hosts(value: str) -> list[Target]:
    """Parse a comma-separated jump host list (``ProxyJump`` / ``-J`` syntax)."""
    return [parse_target(hop) for hop in value.split(",") if hop.strip()]
