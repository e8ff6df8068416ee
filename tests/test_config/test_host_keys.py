"""Tests for HostKeyVerifier."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from sshping.config.host_keys import HostKeyVerifier
from sshping.errors import TransportError


class FakeKey:
    """Minimal stand-in for a paramiko PKey."""

    def __init__(self, name: str, blob: bytes) -> None:
        self.name = name
        self.blob = blob

    def get_name(self) -> str:
        return self.name

    def __eq__(self, other: object) -> bool:
        return isinstance(other, FakeKey) and self.blob == other.blob


def make_key(name: str = "ssh-ed25519", blob: bytes = b"key-a") -> FakeKey:
    return FakeKey(name, blob)


def verifier_with(tmp_path: Path, known: dict[str, dict[str, FakeKey]], strict: bool = False) -> HostKeyVerifier:
    known_hosts = tmp_path / "known_hosts"
    known_hosts.touch()
    verifier = HostKeyVerifier(known_hosts_path=str(known_hosts), strict_checking=strict)
    verifier._host_keys = MagicMock()
    verifier._host_keys.lookup.side_effect = known.get
    return verifier


def test_verifier_uses_custom_path(tmp_path: Path) -> None:
    custom = tmp_path / "my_known_hosts"
    custom.touch()

    verifier = HostKeyVerifier(known_hosts_path=str(custom))

    assert verifier.get_known_hosts_path() == str(custom)
    assert verifier.is_enabled()


def test_verifier_disabled_with_none() -> None:
    verifier = HostKeyVerifier(known_hosts_path="none")

    assert verifier.get_known_hosts_path() is None
    assert not verifier.is_enabled()


def test_missing_file_disables_in_non_strict_mode(tmp_path: Path) -> None:
    verifier = HostKeyVerifier(known_hosts_path=str(tmp_path / "nonexistent"))

    assert not verifier.is_enabled()


def test_missing_file_rejects_everything_in_strict_mode(tmp_path: Path) -> None:
    verifier = HostKeyVerifier(known_hosts_path=str(tmp_path / "nonexistent"), strict_checking=True)

    assert verifier.is_enabled()
    with pytest.raises(TransportError, match="not found"):
        verifier.verify("example.com", 22, make_key())


def test_lookup_name_brackets_non_default_port() -> None:
    assert HostKeyVerifier.lookup_name("example.com", 22) == "example.com"
    assert HostKeyVerifier.lookup_name("example.com", 2222) == "[example.com]:2222"


def test_known_key_is_accepted(tmp_path: Path) -> None:
    key = make_key()
    verifier = verifier_with(tmp_path, {"example.com": {"ssh-ed25519": key}})

    verifier.verify("example.com", 22, key)


def test_mismatched_key_is_rejected_even_when_not_strict(tmp_path: Path) -> None:
    verifier = verifier_with(tmp_path, {"example.com": {"ssh-ed25519": make_key(blob=b"key-a")}})

    with pytest.raises(TransportError, match="mismatch"):
        verifier.verify("example.com", 22, make_key(blob=b"key-b"))


def test_unknown_host_only_warns_when_not_strict(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    verifier = verifier_with(tmp_path, {})

    verifier.verify("new.example.com", 2222, make_key())

    assert "[new.example.com]:2222" in caplog.text


def test_unknown_host_rejected_in_strict_mode(tmp_path: Path) -> None:
    verifier = verifier_with(tmp_path, {}, strict=True)

    with pytest.raises(TransportError):
        verifier.verify("new.example.com", 22, make_key())


def test_disabled_verifier_accepts_anything() -> None:
    HostKeyVerifier(known_hosts_path="none").verify("example.com", 22, make_key())
