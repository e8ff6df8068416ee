"""SSH config file parser.

Reads ~/.ssh/config and resolves the settings that apply to one host.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from sshping.errors import ConfigParseError
from sshping.models import HostParams

logger = logging.getLogger(__name__)

# "Key value", "Key=value" and "Key = value" are all valid
_KV_RE = re.compile(r"^(\w+)(?:\s*=\s*|\s+)(.*)$")


@dataclass
class HostBlock:
    """One ``Host`` section: its patterns and its options in file order."""

    patterns: list[str]
    options: list[tuple[str, str]] = field(default_factory=list)

    def matches(self, host: str) -> bool:
        """A block applies when any of its patterns matches."""
        return any(matches_pattern(host, pattern) for pattern in self.patterns)


def glob_match(text: str, pattern: str) -> bool:
    """Anchored glob match where ``*`` is any run and ``?`` is one character."""
    t = p = 0
    star_p = -1
    star_t = 0

    while t < len(text):
        if p < len(pattern) and (pattern[p] == "?" or pattern[p] == text[t]):
            t += 1
            p += 1
        elif p < len(pattern) and pattern[p] == "*":
            # Remember the star and try matching zero characters first
            star_p = p
            star_t = t
            p += 1
        elif star_p != -1:
            # Backtrack: let the last star swallow one more character
            p = star_p + 1
            star_t += 1
            t = star_t
        else:
            return False

    # Trailing stars match the empty remainder
    while p < len(pattern) and pattern[p] == "*":
        p += 1
    return p == len(pattern)


def matches_pattern(host: str, pattern: str) -> bool:
    """Check a host against a single ``Host`` pattern.

    Args:
        host: Host string given by the user
        pattern: Exact name or glob, optionally negated with ``!``

    Returns:
        True if the pattern matches (or the negated pattern does not)
    """
    if pattern.startswith("!"):
        return not matches_pattern(host, pattern[1:])

    if pattern == host:
        return True

    if "*" in pattern or "?" in pattern:
        return glob_match(host, pattern)

    return False


def merge_host_params(base: HostParams, overlay: HostParams) -> HostParams:
    """Merge ``overlay`` into ``base`` and return a new HostParams.

    Scalars already set in ``base`` are kept (first value wins), identity
    files from ``overlay`` are appended.
    """
    return HostParams(
        host_name=base.host_name if base.host_name is not None else overlay.host_name,
        user=base.user if base.user is not None else overlay.user,
        port=base.port if base.port is not None else overlay.port,
        identity_file=[*base.identity_file, *overlay.identity_file],
        proxy_jump=base.proxy_jump if base.proxy_jump is not None else overlay.proxy_jump,
    )


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _option_params(key: str, value: str) -> HostParams:
    """Translate one ``key value`` option into a single-field HostParams."""
    if key == "hostname":
        return HostParams(host_name=value)
    if key == "user":
        return HostParams(user=value)
    if key == "port":
        try:
            port = int(value)
        except ValueError:
            port = -1
        if not 0 <= port <= 65535:
            logger.debug("Ignoring invalid Port value: %s", value)
            return HostParams()
        return HostParams(port=port)
    if key == "identityfile":
        return HostParams(identity_file=[Path(os.path.expanduser(value))])
    if key == "proxyjump":
        if value.lower() == "none":
            return HostParams(proxy_jump=[])
        return HostParams(proxy_jump=[hop.strip() for hop in value.split(",") if hop.strip()])
    return HostParams()


def parse_config_text(content: str) -> list[HostBlock]:
    """Split SSH config text into host blocks.

    Options that appear before the first ``Host`` line apply to every host.
    ``Match`` sections are not evaluated and their options are skipped.
    """
    blocks: list[HostBlock] = [HostBlock(patterns=["*"])]
    current: HostBlock | None = blocks[0]

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        kv_match = _KV_RE.match(line)
        if not kv_match:
            logger.debug("Skipping malformed config line: %s", line)
            continue

        key = kv_match.group(1).lower()
        value = kv_match.group(2)

        if key == "host":
            current = HostBlock(patterns=value.split())
            blocks.append(current)
            continue

        if key == "match":
            logger.debug("Match blocks are not supported, skipping: %s", line)
            current = None
            continue

        if current is not None:
            current.options.append((key, _unquote(value)))

    return blocks


def resolve_host_params(blocks: list[HostBlock], host: str) -> HostParams:
    """Collect the HostParams for ``host`` from all matching blocks, top to bottom."""
    params = HostParams()
    for block in blocks:
        if not block.matches(host):
            continue
        for key, value in block.options:
            params = merge_host_params(params, _option_params(key, value))
    return params


class SSHConfigParser:
    """Parser for SSH config files.

    Reads SSH config format and answers per-host queries.
    """

    def __init__(self, config_path: Path | str | None = None):
        """Initialize SSH config parser.

        Args:
            config_path: Path to SSH config file (default: ~/.ssh/config)
        """
        if config_path is None:
            config_path = Path.home() / ".ssh" / "config"

        self.config_path = Path(os.path.expanduser(config_path))
        self._blocks: list[HostBlock] | None = None

    def parse(self) -> list[HostBlock]:
        """Parse the config file into host blocks.

        Returns:
            Host blocks in file order (empty if the file does not exist)

        Raises:
            ConfigParseError: If the file exists but cannot be read
        """
        if self._blocks is not None:
            return self._blocks

        if not self.config_path.exists():
            logger.debug("SSH config not found: %s", self.config_path)
            self._blocks = []
            return self._blocks

        try:
            content = self.config_path.read_text()
            logger.debug("Reading SSH config from %s", self.config_path)
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigParseError(f"Cannot read SSH config {self.config_path}: {e}") from e

        self._blocks = parse_config_text(content)
        logger.debug("Parsed %d host block(s) from %s", len(self._blocks) - 1, self.config_path)
        return self._blocks

    def query(self, host: str) -> HostParams:
        """Return the parameters that apply to ``host``.

        An unreadable config is logged and treated as empty.
        """
        try:
            blocks = self.parse()
        except ConfigParseError as e:
            logger.warning("%s, using defaults", e)
            return HostParams()
        return resolve_host_params(blocks, host)
