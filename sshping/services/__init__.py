"""Services for sshping."""

from sshping.services.auth import (
    AgentAuth,
    Authenticator,
    AuthStrategy,
    PasswordAuth,
    PublicKeyAuth,
    load_private_key,
)
from sshping.services.connection import Connection, open_session
from sshping.services.echo import run_echo_test
from sshping.services.jump import check_jump_chain, connect_via_jump
from sshping.services.session import SSHSession
from sshping.services.stats import summarize_latencies, throughput
from sshping.services.throughput import (
    generate_payload,
    run_download_test,
    run_speed_test,
    run_upload_test,
)

__all__ = [
    "AgentAuth",
    "AuthStrategy",
    "Authenticator",
    "Connection",
    "PasswordAuth",
    "PublicKeyAuth",
    "SSHSession",
    "check_jump_chain",
    "connect_via_jump",
    "generate_payload",
    "load_private_key",
    "open_session",
    "run_download_test",
    "run_echo_test",
    "run_speed_test",
    "run_upload_test",
    "summarize_latencies",
    "throughput",
]
