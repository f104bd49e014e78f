"""Tests for WizardState."""

from __future__ import annotations

import json

import pytest

from mdx_htmx.errors import StateDecodeError
from mdx_htmx.wizard import WizardState


class TestLifecycle:
    def test_empty_state_not_started(self) -> None:
        state = WizardState.empty(1)
        assert state.schema_version == 1
        assert state.data == {}
        assert state.current_step_key is None
        assert state.completed_step_keys == frozenset()
        assert state.is_started is False
        assert state.is_complete is False

    def test_in_progress(self) -> None:
        state = WizardState.empty(1).with_current_step("account")
        assert state.is_started is True
        assert state.is_complete is False

    def test_completed(self) -> None:
        state = WizardState.empty(1).with_completed("account").with_current_step(None)
        assert state.is_complete is True
        assert state.is_step_completed("account")


class TestCopyOnWrite:
    def test_with_fields_merges(self) -> None:
        original = WizardState(schema_version=1, data={"a": 1})
        updated = original.with_fields({"b": 2, "a": 3})
        assert original.data == {"a": 1}
        assert updated.data == {"a": 3, "b": 2}

    def test_completed_keys(self) -> None:
        state = WizardState.empty(1).with_completed("a").with_completed("b").without_completed("a")
        assert state.completed_step_keys == frozenset({"b"})

    def test_values_for(self) -> None:
        state = WizardState(schema_version=1, data={"a": 1, "b": 2})
        assert state.values_for(["a", "c"]) == {"a": 1}

    def test_for_version_filters(self) -> None:
        state = WizardState(
            schema_version=1,
            data={"keep": 1, "drop": 2},
            current_step_key="gone",
            completed_step_keys=frozenset({"a", "gone"}),
        )
        moved = state.for_version(2, ["keep"], ["a", "b"])
        assert moved.schema_version == 2
        assert moved.data == {"keep": 1}
        assert moved.current_step_key is None
        assert moved.completed_step_keys == frozenset({"a"})


class TestSerialisation:
    def test_round_trip(self) -> None:
        state = WizardState(
            schema_version="2024-06",
            data={"email": "a@example.com", "age": 30, "tags": ["x"]},
            current_step_key="profile",
            completed_step_keys=frozenset({"b", "a"}),
        )
        assert WizardState.from_bytes(state.to_bytes()) == state

    def test_completed_keys_sorted(self) -> None:
        state = WizardState(schema_version=1, completed_step_keys=frozenset({"z", "a", "m"}))
        assert json.loads(state.to_bytes())["completed_step_keys"] == ["a", "m", "z"]

    def test_integer_version_preserved(self) -> None:
        restored = WizardState.from_bytes(WizardState.empty(3).to_bytes())
        assert restored.schema_version == 3

    @pytest.mark.parametrize("payload", [b"not json", b"{}", b'{"schema_version": []}'])
    def test_invalid_payload(self, payload: bytes) -> None:
        with pytest.raises(StateDecodeError):
            WizardState.from_bytes(payload)
