"""Application configuration.

Delegates to specialized components:
- SSHConfigParser: Reads ~/.ssh/config
- HostKeyVerifier: Manages known_hosts
- Settings: Environment variables
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from sshping.config.host_keys import HostKeyVerifier
from sshping.config.parser import SSHConfigParser
from sshping.config.settings import Settings
from sshping.models import HostParams, Target
from sshping.utils.parser import parse_jump_hosts

logger = logging.getLogger(__name__)


def apply_host_params(target: Target, params: HostParams) -> Target:
    """Override ``target`` in place with values resolved from SSH config.

    Identity file and jump hosts from config only fill in what the command
    line left unset.

    Returns:
        The same Target, for chaining
    """
    if params.host_name is not None:
        target.host = params.host_name
    if params.user is not None:
        target.user = params.user
    if params.port is not None:
        target.port = params.port
    if params.identity_file and target.identity is None:
        target.identity = params.identity_file[0]
    if params.proxy_jump and not target.jump:
        target.jump = parse_jump_hosts(",".join(params.proxy_jump))
    return target


@dataclass
class Config:
    """Application configuration.

    Aggregates settings from SSH config, known_hosts, and environment.
    """

    settings: Settings
    parser: SSHConfigParser
    host_keys: HostKeyVerifier

    @classmethod
    def from_env(
        cls,
        ssh_config_path: Path | str | None = None,
        known_hosts: str | None = None,
        strict_host_key_checking: bool | None = None,
    ) -> "Config":
        """Create config from environment, with optional explicit overrides.

        Returns:
            Configured instance with all components initialized
        """
        settings = Settings.from_env()
        parser = SSHConfigParser(ssh_config_path or settings.ssh_config)
        host_keys = HostKeyVerifier(
            known_hosts_path=known_hosts if known_hosts is not None else settings.known_hosts,
            strict_checking=(
                strict_host_key_checking
                if strict_host_key_checking is not None
                else settings.strict_host_key_checking
            ),
        )
        return cls(settings=settings, parser=parser, host_keys=host_keys)

    def resolve(self, target: Target) -> Target:
        """Apply SSH config settings to the target and its jump hosts.

        Args:
            target: Target parsed from the command line

        Returns:
            The same Target, updated in place
        """
        alias = target.host
        apply_host_params(target, self.parser.query(alias))
        for hop in target.jump:
            hop_params = self.parser.query(hop.host)
            # Jump hosts take their own HostName/User/Port; credentials come from the target
            hop_params.proxy_jump = None
            hop_params.identity_file = []
            apply_host_params(hop, hop_params)

        if alias != target.host:
            logger.debug("Resolved host alias %s -> %s", alias, target.host)
        logger.debug("User: %s", target.user)
        logger.debug("Host: %s", target.host)
        logger.debug("Port: %d", target.port)
        return target
