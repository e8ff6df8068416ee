"""Error taxonomy for sshping.

Every fatal condition surfaces as a subclass of SSHPingError so the CLI can
report it with a single message and a non-zero exit status.
"""


class SSHPingError(Exception):
    """Base class for all sshping failures."""


class ConfigParseError(SSHPingError):
    """SSH config could not be read or parsed.

    Non-fatal: resolution falls back to empty host parameters.
    """


class TargetParseError(SSHPingError, ValueError):
    """Malformed ``[user@]host[:port]`` literal."""

    def __init__(self, target: str, reason: str = "Must be [user@]host[:port]"):
        """Initialize target parse error.

        Args:
            target: The literal that failed to parse
            reason: Human-readable explanation
        """
        self.target = target
        self.reason = reason
        super().__init__(f"Invalid target format '{target}'. {reason}")


class TransportError(SSHPingError):
    """Connection or protocol handshake failure."""

    def __init__(self, host: str, message: str, timed_out: bool = False):
        """Initialize transport error.

        Args:
            host: Host (or host:port) the connection was aimed at
            message: Description of the failure
            timed_out: True when the handshake deadline expired
        """
        self.host = host
        self.timed_out = timed_out
        super().__init__(f"Cannot connect to {host}: {message}")


class AuthError(SSHPingError):
    """Authentication failure.

    A single method failing is recovered inside the cascade; only an
    exhausted cascade (``exhausted=True``) is fatal.
    """

    def __init__(self, message: str, method: str | None = None, exhausted: bool = False):
        self.method = method
        self.exhausted = exhausted
        super().__init__(message)


class JumpChainError(SSHPingError):
    """Unsupported jump chain or tunnel-open failure."""


class MeasurementError(SSHPingError):
    """A benchmark could not produce a result."""

    def __init__(self, test: str, message: str):
        """Initialize measurement error.

        Args:
            test: Name of the failing test ("echo", "upload", "download")
            message: Description of the failure
        """
        self.test = test
        super().__init__(f"{test} test failed: {message}")
