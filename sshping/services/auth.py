"""Authentication cascade.

Methods are tried in a fixed "least friction first" order: the SSH agent,
then the identity file, then a password. Unattended methods come before
anything that may prompt. The order lives in ``Authenticator.strategies``,
so it can be inspected and tested without a network.
"""

import asyncio
import getpass
import logging
import sys
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, ClassVar

import paramiko

from sshping.errors import AuthError
from sshping.protocols import AuthSession

logger = logging.getLogger(__name__)

Prompt = Callable[[str], str]


def is_interactive() -> bool:
    """True when stdin is attached to a terminal."""
    return sys.stdin.isatty()


def load_private_key(path: Path, passphrase: str | None = None) -> paramiko.PKey:
    """Decode a private key file with paramiko.

    Raises:
        AuthError: If the file is unreadable or cannot be decoded
    """
    try:
        return paramiko.PKey.from_path(path, passphrase)
    except OSError as e:
        raise AuthError(f"Cannot read identity file {path}: {e}", method="publickey") from e
    except (ValueError, TypeError, paramiko.SSHException) as e:
        raise AuthError(f"Cannot decode identity file {path}: {e}", method="publickey") from e


class AuthStrategy:
    """One step of the cascade.

    ``prepare`` gathers credentials (and may prompt); it runs before the
    attempt deadline starts. ``attempt`` talks to the server and is time-boxed
    by the Authenticator.
    """

    name: ClassVar[str] = ""
    server_method: ClassVar[str | None] = None

    def prepare(self, user: str) -> bool:
        """Gather credentials. Returning False skips this strategy."""
        return True

    async def attempt(self, session: AuthSession, user: str) -> bool:
        """Try the credential against the server."""
        raise NotImplementedError


class AgentAuth(AuthStrategy):
    """Identities held by the SSH agent named in the environment."""

    name = "Agent"

    async def attempt(self, session: AuthSession, user: str) -> bool:
        return await session.auth_agent(user)


class PublicKeyAuth(AuthStrategy):
    """Identity file, decoded with the password as passphrase."""

    name = "Public key"
    server_method = "publickey"

    def __init__(
        self,
        identity: Path | None,
        passphrase: str | None = None,
        interactive: bool | None = None,
        prompt: Prompt = getpass.getpass,
    ) -> None:
        self.identity = identity
        self.passphrase = passphrase
        self.interactive = interactive
        self.prompt = prompt
        self._key: paramiko.PKey | None = None

    def prepare(self, user: str) -> bool:
        if self.identity is None:
            logger.debug("No identity file given, skipping public key authentication")
            return False
        if self._key is not None:
            return True

        try:
            self._key = load_private_key(self.identity, self.passphrase)
            return True
        except AuthError as e:
            interactive = is_interactive() if self.interactive is None else self.interactive
            if self.passphrase is not None or not interactive:
                logger.warning("%s", e)
                return False
            logger.debug("%s, asking for passphrase", e)

        passphrase = self.prompt(f"Enter passphrase for key '{self.identity}': ")
        try:
            self._key = load_private_key(self.identity, passphrase)
        except AuthError as e:
            logger.warning("%s", e)
            return False
        self.passphrase = passphrase
        return True

    async def attempt(self, session: AuthSession, user: str) -> bool:
        assert self._key is not None
        return await session.auth_public_key(user, self._key)


class PasswordAuth(AuthStrategy):
    """Password given up front, or asked for once on a terminal."""

    name = "Password"
    server_method = "password"

    def __init__(
        self,
        password: str | None = None,
        interactive: bool | None = None,
        prompt: Prompt = getpass.getpass,
    ) -> None:
        self.password = password
        self.interactive = interactive
        self.prompt = prompt

    def prepare(self, user: str) -> bool:
        if self.password is not None:
            return True
        interactive = is_interactive() if self.interactive is None else self.interactive
        if not interactive:
            logger.debug("No password given and no terminal, skipping password authentication")
            return False
        # Entered once, then reused for every hop
        self.password = self.prompt(f"{user}'s password: ")
        return True

    async def attempt(self, session: AuthSession, user: str) -> bool:
        assert self.password is not None
        return await session.auth_password(user, self.password)


class Authenticator:
    """Runs strategies in order until the server accepts one."""

    def __init__(self, strategies: Sequence[AuthStrategy], timeout: float) -> None:
        """Initialize authenticator.

        Args:
            strategies: Strategies in priority order
            timeout: Deadline for each attempt in seconds
        """
        self.strategies = tuple(strategies)
        self.timeout = timeout

    @classmethod
    def default(
        cls,
        password: str | None,
        identity: Path | None,
        timeout: float,
        interactive: bool | None = None,
        prompt: Prompt = getpass.getpass,
    ) -> "Authenticator":
        """Build the standard agent -> public key -> password cascade."""
        return cls(
            [
                AgentAuth(),
                PublicKeyAuth(identity, password, interactive=interactive, prompt=prompt),
                PasswordAuth(password, interactive=interactive, prompt=prompt),
            ],
            timeout,
        )

    async def _timed(self, strategy: AuthStrategy, session: AuthSession, user: str) -> Any:
        return await asyncio.wait_for(strategy.attempt(session, user), timeout=self.timeout)

    async def authenticate(self, session: AuthSession, user: str) -> float:
        """Authenticate ``user`` on ``session``.

        Returns:
            Seconds taken by the successful attempt

        Raises:
            AuthError: With ``exhausted=True`` when every method failed or was skipped
        """
        start = time.perf_counter()
        try:
            methods: set[str] | None = await session.auth_methods(user)
        except AuthError as e:
            logger.warning("%s, trying every method", e)
            methods = None
        else:
            logger.debug("Available authentication methods: %s", sorted(methods))

        if session.is_authenticated:
            logger.info("Server accepted 'none' authentication")
            return time.perf_counter() - start

        for strategy in self.strategies:
            if strategy.server_method and methods is not None and strategy.server_method not in methods:
                logger.warning("%s authentication not supported on server", strategy.name)
                continue
            if not strategy.prepare(user):
                continue

            start = time.perf_counter()
            try:
                accepted = await self._timed(strategy, session, user)
            except TimeoutError:
                logger.warning(
                    "%s authentication timed out after %gs",
                    strategy.name,
                    self.timeout,
                )
                continue
            except AuthError as e:
                logger.warning("%s authentication failed: %s", strategy.name, e)
                continue

            if accepted:
                elapsed = time.perf_counter() - start
                logger.info("%s authentication succeeded", strategy.name)
                return elapsed
            logger.warning("%s authentication failed", strategy.name)

        raise AuthError("All authentication methods failed", exhausted=True)
