"""Application settings from environment variables.

Centralized environment variable parsing and validation. These values are
the defaults the command line starts from.
"""

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_REMOTE_FILE = "/tmp/sshping-PID.tmp"


def expand_remote_file(path: str) -> str:
    """Replace the ``PID`` placeholder with the current process id."""
    return path.replace("PID", str(os.getpid()))


@dataclass
class Settings:
    """Application settings from environment.

    Handles parsing, validation, and defaults for all env vars.
    """

    # Connection
    ssh_timeout: float = field(default=10.0)
    ssh_config: str = field(default="~/.ssh/config")
    known_hosts: str | None = field(default=None)
    strict_host_key_checking: bool = field(default=False)

    # Echo test
    char_count: int = field(default=1000)
    echo_cmd: str = field(default="cat > /dev/null")

    # Speed test
    size_mb: float = field(default=8.0)
    chunk_size: int = field(default=1_000_000)
    remote_file: str = field(default=DEFAULT_REMOTE_FILE)

    # Output
    output_format: str = field(default="table")

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from SSHPING_* environment variables.

        Returns:
            Settings instance with values from environment
        """
        return cls(
            ssh_timeout=cls._get_float("SSHPING_SSH_TIMEOUT", 10.0),
            ssh_config=os.getenv("SSHPING_SSH_CONFIG", "~/.ssh/config"),
            known_hosts=os.getenv("SSHPING_KNOWN_HOSTS"),
            strict_host_key_checking=cls._get_bool("SSHPING_STRICT_HOST_KEY_CHECKING", False),
            char_count=cls._get_int("SSHPING_CHAR_COUNT", 1000),
            echo_cmd=os.getenv("SSHPING_ECHO_CMD", "cat > /dev/null"),
            size_mb=cls._get_float("SSHPING_SIZE", 8.0),
            chunk_size=cls._get_int("SSHPING_CHUNK_SIZE", 1_000_000),
            remote_file=os.getenv("SSHPING_REMOTE_FILE", DEFAULT_REMOTE_FILE),
            output_format=cls._get_format(),
        )

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Get a positive integer from environment.

        Args:
            key: Environment variable key
            default: Default value if not set or invalid

        Returns:
            Integer value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default

        try:
            parsed = int(value)
        except ValueError:
            logger.warning("Invalid int for %s: %s, using default %d", key, value, default)
            return default

        if parsed <= 0:
            logger.warning("%s must be > 0, got %d. Using default: %d", key, parsed, default)
            return default
        return parsed

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        """Get a positive float from environment."""
        value = os.getenv(key)
        if value is None:
            return default

        try:
            parsed = float(value)
        except ValueError:
            logger.warning("Invalid float for %s: %s, using default %s", key, value, default)
            return default

        if parsed <= 0:
            logger.warning("%s must be > 0, got %s. Using default: %s", key, parsed, default)
            return default
        return parsed

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        """Get boolean from environment.

        Args:
            key: Environment variable key
            default: Default value if not set

        Returns:
            Boolean value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default
        return value.lower() in ("1", "true", "yes", "on")

    @staticmethod
    def _get_format() -> str:
        """Get output format from environment with validation.

        Returns:
            Output format ("table" or "json")
        """
        output_format = os.getenv("SSHPING_FORMAT", "").lower()
        if output_format in ("table", "json"):
            return output_format
        return "table"

