"""Utilities for sshping."""

from sshping.utils.console import ColorfulFormatter, configure_logging, level_for_verbosity
from sshping.utils.format import Formatter
from sshping.utils.parser import local_username, parse_jump_hosts, parse_target
from sshping.utils.progress import ProgressReporter
from sshping.utils.validation import validate_host, validate_port, validate_remote_path

__all__ = [
    "ColorfulFormatter",
    "configure_logging",
    "Formatter",
    "level_for_verbosity",
    "local_username",
    "parse_jump_hosts",
    "parse_target",
    "ProgressReporter",
    "validate_host",
    "validate_port",
    "validate_remote_path",
]
