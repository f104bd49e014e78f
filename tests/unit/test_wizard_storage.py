"""Tests for wizard state persistence."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path

import pytest

from mdx_htmx.config import HtmxConfig, configure
from mdx_htmx.wizard import (
    FileSessionStore,
    InMemorySessionStore,
    SessionStore,
    SessionWizardStorage,
    StarletteSessionStore,
    VersionedWizardStorage,
    VersionMismatchStrategy,
    WizardSchema,
    WizardState,
    WizardStep,
)


def _state() -> WizardState:
    return WizardState(
        schema_version=1,
        data={"email": "a@example.com"},
        current_step_key="company",
        completed_step_keys=frozenset({"account"}),
    )


class TestSessionStores:
    def test_in_memory(self) -> None:
        store = InMemorySessionStore()
        assert store.get("k") is None
        store.set("k", b"v")
        assert store.get("k") == b"v"
        assert store.keys() == ["k"]
        store.remove("k")
        store.remove("k")
        assert store.get("k") is None

    def test_starlette_session_stores_text(self) -> None:
        session: dict[str, object] = {}
        store = StarletteSessionStore(session)
        store.set("k", b'{"a": 1}')
        assert session == {"k": '{"a": 1}'}
        assert store.get("k") == b'{"a": 1}'
        store.remove("k")
        assert session == {}

    def test_file_store(self, tmp_path: Path) -> None:
        store = FileSessionStore(tmp_path / "sessions")
        assert store.get("user@example.com") is None
        store.set("user@example.com", b"payload")
        assert store.get("user@example.com") == b"payload"
        assert all("@" not in p.name for p in (tmp_path / "sessions").iterdir())
        store.remove("user@example.com")
        assert store.get("user@example.com") is None

    def test_file_store_expiry(self, tmp_path: Path) -> None:
        store = FileSessionStore(tmp_path, max_age_seconds=60)
        store.set("k", b"v")
        (path,) = tmp_path.iterdir()
        old = time.time() - 3600
        os.utime(path, (old, old))
        assert store.get("k") is None
        assert not path.exists()

    def test_file_store_directory_from_config(self, tmp_path: Path) -> None:
        config = HtmxConfig()
        config.wizard.storage_dir = str(tmp_path / "configured")
        configure(config)
        FileSessionStore().set("k", b"v")
        assert len(list((tmp_path / "configured").iterdir())) == 1

    def test_protocol(self, tmp_path: Path) -> None:
        assert isinstance(InMemorySessionStore(), SessionStore)
        assert isinstance(StarletteSessionStore({}), SessionStore)
        assert isinstance(FileSessionStore(tmp_path), SessionStore)


class TestSessionWizardStorage:
    def test_round_trip(self) -> None:
        storage = SessionWizardStorage(InMemorySessionStore())
        assert storage.load("signup") is None
        storage.save("signup", _state())
        assert storage.load("signup") == _state()

    def test_key_prefix(self) -> None:
        store = InMemorySessionStore()
        SessionWizardStorage(store, prefix="flow:").save("signup", _state())
        assert store.keys() == ["flow:signup"]

    def test_prefix_from_configuration(self) -> None:
        config = HtmxConfig()
        config.wizard.session_prefix = "cfg_"
        configure(config)
        assert SessionWizardStorage(InMemorySessionStore()).key_for("signup") == "cfg_signup"

    def test_default_prefix(self) -> None:
        assert SessionWizardStorage(InMemorySessionStore()).key_for("signup") == "wizard_signup"

    def test_wizards_isolated(self) -> None:
        storage = SessionWizardStorage(InMemorySessionStore())
        storage.save("a", _state())
        assert storage.load("b") is None
        storage.clear("a")
        assert storage.load("a") is None

    def test_corrupt_payload_treated_as_absent(self, caplog: pytest.LogCaptureFixture) -> None:
        store = InMemorySessionStore()
        store.set("wizard_signup", b"{broken")
        with caplog.at_level(logging.WARNING):
            assert SessionWizardStorage(store).load("signup") is None
        assert "Corrupt wizard state" in caplog.text

    def test_works_over_starlette_session(self) -> None:
        session: dict[str, object] = {}
        storage = SessionWizardStorage(StarletteSessionStore(session))
        storage.save("signup", _state())
        assert isinstance(session["wizard_signup"], str)
        assert storage.load("signup") == _state()


def _schema(version: int, strategy: VersionMismatchStrategy) -> WizardSchema:
    return WizardSchema(
        name="signup",
        version=version,
        steps=[WizardStep(key="account", fields=["email"]), WizardStep(key="company")],
        mismatch_strategy=strategy,
    )


class TestVersionedWizardStorage:
    def test_same_version(self) -> None:
        storage = VersionedWizardStorage(SessionWizardStorage(InMemorySessionStore()))
        storage.save("signup", _state())
        loaded = storage.load_with_schema("signup", _schema(1, VersionMismatchStrategy.RESET))
        assert loaded == _state()

    def test_reset_gives_none(self) -> None:
        storage = VersionedWizardStorage(SessionWizardStorage(InMemorySessionStore()))
        storage.save("signup", _state())
        assert storage.load_with_schema("signup", _schema(2, VersionMismatchStrategy.RESET)) is None

    def test_keep_migrates(self) -> None:
        storage = VersionedWizardStorage(SessionWizardStorage(InMemorySessionStore()))
        storage.save("signup", _state())
        loaded = storage.load_with_schema("signup", _schema(2, VersionMismatchStrategy.KEEP))
        assert loaded is not None
        assert loaded.schema_version == 2
        assert loaded.data == {"email": "a@example.com"}
        assert loaded.current_step_key == "company"

    def test_nothing_stored(self) -> None:
        storage = VersionedWizardStorage(SessionWizardStorage(InMemorySessionStore()))
        assert storage.load_with_schema("signup", _schema(1, VersionMismatchStrategy.KEEP)) is None

    def test_delegates(self) -> None:
        storage = VersionedWizardStorage(SessionWizardStorage(InMemorySessionStore()))
        storage.save("signup", _state())
        assert storage.load("signup") == _state()
        storage.clear("signup")
        assert storage.load("signup") is None
