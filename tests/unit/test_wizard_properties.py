"""
Property-based tests using Hypothesis.

Invariants of wizard state handling, checked across generated states:
migration results always fit the schema, migrating twice changes nothing,
and states survive serialisation unchanged.
"""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from mdx_htmx.wizard import (
    VersionMismatchStrategy,
    WizardSchema,
    WizardState,
    WizardStep,
    migrate_state,
    normalize_state,
)


def _rename_legacy(old: WizardState, schema: WizardSchema) -> WizardState:
    """Moves ``legacy`` to ``name``; every other key, known or not, is passed through."""
    data = dict(old.data)
    if "legacy" in data:
        data["name"] = data.pop("legacy")
    return old.model_copy(update={"data": data, "schema_version": schema.version})


SCHEMA = WizardSchema(
    name="props",
    version=7,
    steps=[
        WizardStep(key="a", fields=["kind", "name"]),
        WizardStep(key="b", fields=["company"], when="kind = business"),
        WizardStep(key="c", fields=["terms"]),
    ],
    mismatch_strategy=VersionMismatchStrategy.KEEP,
    migration=_rename_legacy,
)

FIELD_NAMES = ["kind", "name", "company", "terms", "legacy", "removed"]
STEP_KEYS = ["a", "b", "c", "gone", "old"]

json_values = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-(2**31), max_value=2**31),
    st.text(max_size=20),
    st.sampled_from(["business", "personal"]),
    st.lists(st.text(max_size=5), max_size=3),
)

states = st.builds(
    WizardState,
    schema_version=st.one_of(st.integers(min_value=0, max_value=6), st.text(max_size=8)),
    data=st.dictionaries(st.sampled_from(FIELD_NAMES), json_values, max_size=6),
    current_step_key=st.one_of(st.none(), st.sampled_from(STEP_KEYS)),
    completed_step_keys=st.frozensets(st.sampled_from(STEP_KEYS), max_size=5),
)

strategies = st.sampled_from(list(VersionMismatchStrategy))


class TestMigrationProperties:
    """Property-based tests for state migration."""

    @given(states, strategies)
    @settings(max_examples=200)
    def test_result_fits_schema(
        self, state: WizardState, strategy: VersionMismatchStrategy
    ) -> None:
        """Invariant: a migrated state only refers to what the schema declares."""
        migrated = migrate_state(state, SCHEMA, strategy)
        if state.schema_version == SCHEMA.version:
            return
        assert migrated.schema_version == SCHEMA.version
        assert set(migrated.data) <= set(SCHEMA.all_fields)
        assert migrated.completed_step_keys <= set(SCHEMA.step_keys)
        assert migrated.current_step_key is None or SCHEMA.has_step(migrated.current_step_key)

    @given(states, strategies)
    @settings(max_examples=200)
    def test_migration_is_idempotent(
        self, state: WizardState, strategy: VersionMismatchStrategy
    ) -> None:
        """Invariant: migrating an already migrated state is a no-op."""
        once = migrate_state(state, SCHEMA, strategy)
        assert migrate_state(once, SCHEMA, strategy) == once

    @given(states)
    @settings(max_examples=200)
    def test_normalize_is_idempotent(self, state: WizardState) -> None:
        """Invariant: normalising twice equals normalising once."""
        once = normalize_state(state, SCHEMA)
        assert normalize_state(once, SCHEMA) == once

    @given(states)
    @settings(max_examples=100)
    def test_keep_preserves_declared_values(self, state: WizardState) -> None:
        """Invariant: KEEP never alters the value of a declared field."""
        migrated = migrate_state(state, SCHEMA, VersionMismatchStrategy.KEEP)
        for name, value in migrated.data.items():
            assert state.data[name] == value

    @given(states)
    @settings(max_examples=100)
    def test_migrate_applies_handler(self, state: WizardState) -> None:
        """Invariant: MIGRATE output is the handler's output, normalised."""
        migrated = migrate_state(state, SCHEMA, VersionMismatchStrategy.MIGRATE)
        if state.schema_version == SCHEMA.version:
            assert migrated is state
        elif "legacy" in state.data:
            assert migrated.data["name"] == state.data["legacy"]
        else:
            assert migrated == normalize_state(_rename_legacy(state, SCHEMA), SCHEMA)


class TestSerialisationProperties:
    @given(states)
    @settings(max_examples=200)
    def test_round_trip(self, state: WizardState) -> None:
        """Invariant: from_bytes(to_bytes(s)) == s"""
        assert WizardState.from_bytes(state.to_bytes()) == state


class TestVisibilityProperties:
    @given(st.dictionaries(st.sampled_from(FIELD_NAMES), json_values, max_size=6))
    @settings(max_examples=100)
    def test_next_visible_is_visible_and_later(self, data: dict[str, object]) -> None:
        """Invariant: navigation only ever lands on visible steps, in schema order."""
        visibility = SCHEMA.visibility
        for key in SCHEMA.step_keys:
            following = visibility.next_visible(key, data)
            if following is not None:
                assert visibility.is_visible(following, data)
                assert SCHEMA.step_index(following.key) > SCHEMA.step_index(key)
            previous = visibility.previous_visible(key, data)
            if previous is not None:
                assert visibility.is_visible(previous, data)
                assert SCHEMA.step_index(previous.key) < SCHEMA.step_index(key)
