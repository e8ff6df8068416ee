"""SSH host key verification.

Checks server keys against a known_hosts file.
"""

import logging
import os
from pathlib import Path

import paramiko

from sshping.errors import TransportError

logger = logging.getLogger(__name__)


class HostKeyVerifier:
    """SSH host key verification manager.

    A key that contradicts known_hosts is always rejected. A key for a host
    that is not listed is rejected only in strict mode.
    """

    def __init__(
        self,
        known_hosts_path: str | None = None,
        strict_checking: bool = False,
    ):
        """Initialize host key verifier.

        Args:
            known_hosts_path: Path to known_hosts file or 'none' to disable
            strict_checking: Reject unknown host keys
        """
        self.strict_checking = strict_checking
        self._known_hosts = self._resolve_known_hosts(known_hosts_path)
        self._host_keys = paramiko.HostKeys()
        if self._known_hosts is not None:
            self._load()

    def _resolve_known_hosts(self, value: str | None) -> str | None:
        """Resolve known_hosts path.

        Returns:
            Path to known_hosts file or None to disable verification
        """
        if value and value.lower() == "none":
            logger.warning("SSH host key verification disabled")
            return None

        path = Path(os.path.expanduser(value)) if value else Path.home() / ".ssh" / "known_hosts"
        if not path.exists():
            if self.strict_checking:
                logger.warning(
                    "known_hosts not found at %s, every host key will be rejected",
                    path,
                )
                return str(path)
            logger.debug("known_hosts not found at %s, verification disabled", path)
            return None
        return str(path)

    def _load(self) -> None:
        assert self._known_hosts is not None
        if not Path(self._known_hosts).exists():
            return
        try:
            self._host_keys.load(self._known_hosts)
            logger.debug("Loaded %d known host(s) from %s", len(self._host_keys), self._known_hosts)
        except (OSError, paramiko.SSHException) as e:
            logger.warning("Cannot read known_hosts %s: %s", self._known_hosts, e)

    def get_known_hosts_path(self) -> str | None:
        """Get path to known_hosts file.

        Returns:
            Path string or None if verification disabled
        """
        return self._known_hosts

    def is_enabled(self) -> bool:
        """Check if host key verification is enabled."""
        return self._known_hosts is not None

    @staticmethod
    def lookup_name(host: str, port: int) -> str:
        """known_hosts entry name for host and port."""
        return host if port == 22 else f"[{host}]:{port}"

    def verify(self, host: str, port: int, key: paramiko.PKey) -> None:
        """Check the server key presented by ``host:port``.

        Raises:
            TransportError: If the key is rejected
        """
        if not self.is_enabled():
            return

        name = self.lookup_name(host, port)
        known = self._host_keys.lookup(name)
        if known is None or key.get_name() not in known:
            if self.strict_checking:
                raise TransportError(
                    f"{host}:{port}",
                    f"host key {key.get_name()} not found in {self._known_hosts}",
                )
            logger.warning(
                "Host key for %s is not in %s (strict mode disabled)",
                name,
                self._known_hosts,
            )
            return

        if known[key.get_name()] != key:
            raise TransportError(
                f"{host}:{port}",
                f"host key mismatch for {name}, possible man-in-the-middle attack",
            )
        logger.debug("Host key for %s verified", name)
