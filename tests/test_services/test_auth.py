"""Tests for the authentication cascade."""

import asyncio
from pathlib import Path
from unittest.mock import MagicMock, patch

import paramiko
import pytest

from sshping.errors import AuthError, TransportError
from sshping.protocols import AuthSession
from sshping.services.auth import (
    AgentAuth,
    Authenticator,
    PasswordAuth,
    PublicKeyAuth,
    load_private_key,
)


class FakeAuthSession:
    """In-memory session that records which methods were tried."""

    def __init__(
        self,
        methods: set[str] | None = None,
        accept: set[str] | None = None,
        delays: dict[str, float] | None = None,
        query_error: bool = False,
        accept_none: bool = False,
    ) -> None:
        self.methods = {"publickey", "password"} if methods is None else methods
        self.accept = accept or set()
        self.delays = delays or {}
        self.query_error = query_error
        self.accept_none = accept_none
        self.calls: list[str] = []
        self._authenticated = False

    @property
    def is_authenticated(self) -> bool:
        return self._authenticated

    async def auth_methods(self, user: str) -> set[str]:
        if self.query_error:
            raise AuthError("Cannot query authentication methods: boom", method="none")
        if self.accept_none:
            self._authenticated = True
            return set()
        return self.methods

    async def _try(self, method: str) -> bool:
        self.calls.append(method)
        await asyncio.sleep(self.delays.get(method, 0))
        if method in self.accept:
            self._authenticated = True
            return True
        return False

    async def auth_agent(self, user: str) -> bool:
        return await self._try("agent")

    async def auth_public_key(self, user: str, key: object) -> bool:
        return await self._try("publickey")

    async def auth_password(self, user: str, password: str) -> bool:
        return await self._try("password")


def make_authenticator(
    password: str | None = None,
    identity: Path | None = None,
    timeout: float = 1.0,
    interactive: bool = False,
    prompt: MagicMock | None = None,
) -> Authenticator:
    return Authenticator.default(
        password,
        identity,
        timeout,
        interactive=interactive,
        prompt=prompt or MagicMock(return_value="typed"),
    )


def test_fake_session_satisfies_protocol() -> None:
    assert isinstance(FakeAuthSession(), AuthSession)


def test_default_order_is_agent_then_key_then_password() -> None:
    authenticator = make_authenticator()

    assert [type(s) for s in authenticator.strategies] == [AgentAuth, PublicKeyAuth, PasswordAuth]


@pytest.mark.asyncio
async def test_agent_success_short_circuits() -> None:
    session = FakeAuthSession(accept={"agent", "password"})
    prompt = MagicMock(return_value="typed")
    authenticator = make_authenticator(password="secret", interactive=True, prompt=prompt)

    elapsed = await authenticator.authenticate(session, "alice")

    assert session.calls == ["agent"]
    assert elapsed >= 0
    prompt.assert_not_called()


@pytest.mark.asyncio
async def test_falls_through_to_password() -> None:
    session = FakeAuthSession(accept={"password"})
    authenticator = make_authenticator(password="secret")

    await authenticator.authenticate(session, "alice")

    # No identity file, so the public key step is skipped
    assert session.calls == ["agent", "password"]


@pytest.mark.asyncio
async def test_exhaustion_raises_auth_error_not_transport_error() -> None:
    session = FakeAuthSession(accept=set())
    authenticator = make_authenticator(password="wrong")

    with pytest.raises(AuthError) as exc_info:
        await authenticator.authenticate(session, "alice")

    assert not isinstance(exc_info.value, TransportError)
    assert exc_info.value.exhausted
    assert "All authentication methods failed" in str(exc_info.value)


@pytest.mark.asyncio
async def test_methods_not_offered_are_skipped(caplog: pytest.LogCaptureFixture) -> None:
    session = FakeAuthSession(methods={"keyboard-interactive"})
    authenticator = make_authenticator(password="secret")

    with pytest.raises(AuthError):
        await authenticator.authenticate(session, "alice")

    assert session.calls == ["agent"]
    assert "Password authentication not supported" in caplog.text


@pytest.mark.asyncio
async def test_timed_out_attempt_counts_as_failure(caplog: pytest.LogCaptureFixture) -> None:
    session = FakeAuthSession(accept={"agent", "password"}, delays={"agent": 5.0})
    authenticator = make_authenticator(password="secret", timeout=0.05)

    await authenticator.authenticate(session, "alice")

    assert session.calls == ["agent", "password"]
    assert "Agent authentication timed out" in caplog.text


@pytest.mark.asyncio
async def test_elapsed_is_for_the_successful_attempt() -> None:
    session = FakeAuthSession(accept={"password"}, delays={"agent": 0.2})
    authenticator = make_authenticator(password="secret")

    elapsed = await authenticator.authenticate(session, "alice")

    assert elapsed < 0.2


@pytest.mark.asyncio
async def test_none_authentication_accepted() -> None:
    session = FakeAuthSession(accept_none=True)

    await make_authenticator().authenticate(session, "guest")

    assert session.calls == []


@pytest.mark.asyncio
async def test_failed_method_query_tries_every_method() -> None:
    session = FakeAuthSession(query_error=True, accept={"password"})

    await make_authenticator(password="secret").authenticate(session, "alice")

    assert session.calls == ["agent", "password"]


@pytest.mark.asyncio
async def test_strategy_error_is_recovered(caplog: pytest.LogCaptureFixture) -> None:
    session = FakeAuthSession(accept={"password"})

    async def broken_agent(user: str) -> bool:
        raise AuthError("agent authentication error: socket gone", method="agent")

    session.auth_agent = broken_agent  # type: ignore[method-assign]

    await make_authenticator(password="secret").authenticate(session, "alice")

    assert "socket gone" in caplog.text


class TestPasswordAuth:
    """Password prompting."""

    def test_non_interactive_without_password_is_skipped(self) -> None:
        prompt = MagicMock()

        assert not PasswordAuth(None, interactive=False, prompt=prompt).prepare("alice")
        prompt.assert_not_called()

    @pytest.mark.asyncio
    async def test_prompted_once_and_reused(self) -> None:
        prompt = MagicMock(return_value="typed")
        authenticator = make_authenticator(interactive=True, prompt=prompt)

        for _ in range(2):
            await authenticator.authenticate(FakeAuthSession(accept={"password"}), "alice")

        prompt.assert_called_once_with("alice's password: ")


class TestPublicKeyAuth:
    """Identity file decoding."""

    def test_no_identity_is_skipped(self) -> None:
        assert not PublicKeyAuth(None).prepare("alice")

    def test_decodes_with_password_as_passphrase(self) -> None:
        key = MagicMock()
        with patch("sshping.services.auth.load_private_key", return_value=key) as load:
            strategy = PublicKeyAuth(Path("/keys/id"), "secret", interactive=False)
            assert strategy.prepare("alice")

        load.assert_called_once_with(Path("/keys/id"), "secret")

    def test_prompts_for_passphrase_when_interactive(self) -> None:
        key = MagicMock()
        prompt = MagicMock(return_value="phrase")
        side_effect = [AuthError("Cannot decode identity file /keys/id: encrypted"), key]
        with patch("sshping.services.auth.load_private_key", side_effect=side_effect) as load:
            strategy = PublicKeyAuth(Path("/keys/id"), None, interactive=True, prompt=prompt)
            assert strategy.prepare("alice")

        prompt.assert_called_once()
        assert load.call_args_list[-1].args == (Path("/keys/id"), "phrase")

    def test_decode_failure_without_terminal_is_skipped(self) -> None:
        prompt = MagicMock()
        with patch("sshping.services.auth.load_private_key", side_effect=AuthError("bad key")):
            assert not PublicKeyAuth(Path("/keys/id"), None, interactive=False, prompt=prompt).prepare("alice")

        prompt.assert_not_called()

    @pytest.mark.asyncio
    async def test_key_is_used_when_publickey_offered(self) -> None:
        session = FakeAuthSession(accept={"publickey"})
        with patch("sshping.services.auth.load_private_key", return_value=MagicMock()):
            authenticator = make_authenticator(identity=Path("/keys/id"))
            await authenticator.authenticate(session, "alice")

        assert session.calls == ["agent", "publickey"]


class TestLoadPrivateKey:
    """paramiko key loading errors."""

    def test_unreadable_file(self, tmp_path: Path) -> None:
        with pytest.raises(AuthError, match="Cannot read identity file"):
            load_private_key(tmp_path / "missing")

    def test_undecodable_file(self) -> None:
        with patch.object(paramiko.PKey, "from_path", side_effect=paramiko.SSHException("not a key")):
            with pytest.raises(AuthError, match="Cannot decode identity file"):
                load_private_key(Path("/keys/id"))

    def test_passphrase_passed_through(self) -> None:
        with patch.object(paramiko.PKey, "from_path", return_value="key") as from_path:
            assert load_private_key(Path("/keys/id"), "pw") == "key"

        from_path.assert_called_once_with(Path("/keys/id"), "pw")
