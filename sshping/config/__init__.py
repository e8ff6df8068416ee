"""Configuration module for sshping.

Provides focused classes for different configuration concerns:
- Config: Main configuration class (aggregates all components)
- SSHConfigParser: Parses ~/.ssh/config files
- HostKeyVerifier: Manages SSH host key verification
- Settings: Environment variable configuration
"""

from sshping.config.host_keys import HostKeyVerifier
from sshping.config.main import Config, apply_host_params
from sshping.config.parser import SSHConfigParser, matches_pattern, merge_host_params
from sshping.config.settings import Settings, expand_remote_file

__all__ = [
    "Config",
    "HostKeyVerifier",
    "SSHConfigParser",
    "Settings",
    "apply_host_params",
    "expand_remote_file",
    "matches_pattern",
    "merge_host_params",
]
