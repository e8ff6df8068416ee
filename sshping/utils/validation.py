"""Host and path input validation utilities."""

from typing import Final

# Characters that have no business in a host name and could enable injection
SUSPICIOUS_HOST_CHARS: Final[list[str]] = ["/", "\\", ";", "&", "|", "$", "`", " ", "\n", "\r", "\x00"]


def validate_host(host: str) -> str:
    """Validate a host name.

    Args:
        host: The host name to validate

    Returns:
        Validated host name

    Raises:
        ValueError: If host name is invalid
    """
    if not host:
        raise ValueError("Host cannot be empty")

    if len(host) > 253:
        raise ValueError(f"Host name too long: {len(host)} chars")

    for char in SUSPICIOUS_HOST_CHARS:
        if char in host:
            raise ValueError(f"Host contains invalid characters: {host!r}")

    return host


def validate_port(port: str) -> int:
    """Parse and range-check a TCP port.

    Raises:
        ValueError: If port is not an integer in 1-65535
    """
    try:
        value = int(port)
    except ValueError as e:
        raise ValueError(f"Port must be a number, got {port!r}") from e
    if not 1 <= value <= 65535:
        raise ValueError(f"Port must be 1-65535, got {value}")
    return value


def validate_remote_path(path: str) -> str:
    """Validate a remote file path for the speed test.

    Raises:
        ValueError: If path is empty or contains a null byte
    """
    if not path:
        raise ValueError("Remote path cannot be empty")

    # Null bytes truncate paths on the server side
    if "\x00" in path:
        raise ValueError(f"Path contains null byte: {path!r}")

    if path.endswith("/"):
        raise ValueError(f"Remote path must name a file, got directory {path!r}")

    return path
