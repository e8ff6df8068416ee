"""Colorful console logging for sshping."""

import logging
import os
import re
import sys
from datetime import datetime

# ANSI color codes
COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "white": "\033[37m",
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "bright_black": "\033[90m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
    "bright_yellow": "\033[93m",
    "bright_blue": "\033[94m",
    "bright_magenta": "\033[95m",
    "bright_cyan": "\033[96m",
    "bg_red": "\033[41m",
}

LEVEL_COLORS = {
    "DEBUG": COLORS["bright_black"],
    "INFO": COLORS["bright_green"],
    "WARNING": COLORS["bright_yellow"],
    "ERROR": COLORS["bright_red"],
    "CRITICAL": COLORS["bg_red"] + COLORS["white"] + COLORS["bold"],
}

# Component colors for logger names
COMPONENT_COLORS = {
    "sshping.services.session": COLORS["bright_magenta"],
    "sshping.services.auth": COLORS["bright_blue"],
    "sshping.services.jump": COLORS["bright_blue"],
    "sshping.services": COLORS["bright_cyan"],
    "sshping.config": COLORS["green"],
    "paramiko": COLORS["yellow"],
    "default": COLORS["white"],
}

_SSH_PATTERN = re.compile(r"(\w[\w.\-]*@[\w.\-]+:\d+)")
_DURATION_PATTERN = re.compile(r"(\b[\d,]+(?:\.\d+)?(?:ns|us|ms|s)\b)")

VERBOSITY_LEVELS = (logging.ERROR, logging.WARNING, logging.INFO, logging.DEBUG)


class ColorfulFormatter(logging.Formatter):
    """Colorful log formatter with local timestamps and component highlighting."""

    def __init__(self, use_colors: bool = True) -> None:
        """Initialize the formatter.

        Args:
            use_colors: Whether to use ANSI colors.
        """
        super().__init__()
        self.use_colors = use_colors

    def _colorize(self, text: str, color: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{text}{COLORS['reset']}"

    def _get_component_color(self, name: str) -> str:
        for prefix, color in COMPONENT_COLORS.items():
            if prefix != "default" and name.startswith(prefix):
                return color
        return COMPONENT_COLORS["default"]

    def _format_timestamp(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created)
        return f"{dt.strftime('%H:%M:%S')}.{int(record.msecs):03d}"

    def _format_level(self, record: logging.LogRecord) -> str:
        level = record.levelname
        color = LEVEL_COLORS.get(level, COLORS["white"])
        return self._colorize(f"{level:<8}", color)

    def _format_component(self, record: logging.LogRecord) -> str:
        name = record.name
        if name.startswith("sshping."):
            name = name[len("sshping.") :]
        color = self._get_component_color(record.name)
        return self._colorize(f"{name:<18}", color)

    def _highlight_message(self, message: str) -> str:
        """Highlight user@host:port targets and durations."""
        if not self.use_colors:
            return message
        message = _SSH_PATTERN.sub(f"{COLORS['bright_magenta']}\\1{COLORS['reset']}", message)
        return _DURATION_PATTERN.sub(f"{COLORS['bright_yellow']}\\1{COLORS['reset']}", message)

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with colors and a timestamp."""
        timestamp = self._colorize(self._format_timestamp(record), COLORS["dim"])
        sep = self._colorize("|", COLORS["dim"])
        message = self._highlight_message(record.getMessage())
        line = f"{timestamp} {sep} {self._format_level(record)} {sep} {self._format_component(record)} {sep} {message}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def level_for_verbosity(verbosity: int, fallback: str = "ERROR") -> int:
    """Map a ``-v`` count to a logging level.

    0 means "not given": the ``fallback`` level name is used instead.
    """
    if verbosity <= 0:
        return logging.getLevelNamesMapping().get(fallback.upper(), logging.ERROR)
    return VERBOSITY_LEVELS[min(verbosity, len(VERBOSITY_LEVELS) - 1)]


def configure_logging(verbosity: int = 0, fallback_level: str | None = None) -> int:
    """Attach the colorful stderr handler to the ``sshping`` logger.

    Args:
        verbosity: Number of ``-v`` flags
        fallback_level: Level name used when no ``-v`` was given
            (defaults to ``SSHPING_LOG_LEVEL``)

    Returns:
        Effective level for the sshping logger
    """
    fallback = fallback_level or os.getenv("SSHPING_LOG_LEVEL", "ERROR")
    level = level_for_verbosity(verbosity, fallback)
    use_colors = os.getenv("SSHPING_LOG_COLORS", "true").lower() != "false"

    # Disable colors if not a TTY
    if not sys.stderr.isatty():
        use_colors = False

    sshping_logger = logging.getLogger("sshping")
    sshping_logger.setLevel(level)
    if not sshping_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColorfulFormatter(use_colors=use_colors))
        sshping_logger.addHandler(handler)
        sshping_logger.propagate = False

    # paramiko logs every packet at DEBUG
    paramiko_logger = logging.getLogger("paramiko")
    paramiko_logger.setLevel(logging.DEBUG if verbosity >= 4 else logging.WARNING)
    if not paramiko_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColorfulFormatter(use_colors=use_colors))
        paramiko_logger.addHandler(handler)
        paramiko_logger.propagate = False

    return level
