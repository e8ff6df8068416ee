"""Connection target data models."""

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_PORT = 22


@dataclass
class Target:
    """Resolved connection target.

    Produced by parsing a ``[user@]host[:port]`` literal and refined in place
    by SSH config resolution.
    """

    user: str
    host: str
    port: int = DEFAULT_PORT
    identity: Path | None = None
    password: str | None = field(default=None, repr=False)
    jump: list["Target"] = field(default_factory=list)

    @property
    def address(self) -> str:
        """Return ``user@host:port`` for logging."""
        return f"{self.user}@{self.host}:{self.port}"


@dataclass
class HostParams:
    """Per-host overrides collected from SSH config ``Host`` blocks.

    Scalar fields keep the first value seen; identity files accumulate.
    """

    host_name: str | None = None
    user: str | None = None
    port: int | None = None
    identity_file: list[Path] = field(default_factory=list)
    proxy_jump: list[str] | None = None

    @property
    def is_empty(self) -> bool:
        """True when no field was set."""
        return (
            self.host_name is None
            and self.user is None
            and self.port is None
            and not self.identity_file
            and self.proxy_jump is None
        )
