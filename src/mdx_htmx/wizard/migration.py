"""
Reconciling stored wizard state with a newer schema.

When a persisted ``WizardState`` carries a version other than the schema's,
``migrate_state`` applies the schema's ``VersionMismatchStrategy``:

- ``RESET``: start over with an empty state.
- ``MIGRATE``: hand the old state to the schema's migration handler.
- ``KEEP``: keep the data and progress that still fit the new schema.

Whatever the strategy, the result carries the schema's version, holds only
fields the schema declares, and points at a step that exists.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, assert_never

from mdx_htmx.errors import ErrorContext, MissingMigrationHandlerError
from mdx_htmx.wizard.state import WizardState

if TYPE_CHECKING:
    from mdx_htmx.wizard.schema import WizardSchema

logger = logging.getLogger(__name__)


class VersionMismatchStrategy(StrEnum):
    """Policy for state written under another schema version."""

    RESET = "reset"
    MIGRATE = "migrate"
    KEEP = "keep"


class WizardMigration(Protocol):
    """Schema-provided transformation for ``VersionMismatchStrategy.MIGRATE``.

    Must be deterministic and free of I/O: it may run again on retry.
    """

    def __call__(self, old_state: WizardState, new_schema: WizardSchema) -> WizardState: ...


def migrate_state(
    state: WizardState,
    schema: WizardSchema,
    strategy: VersionMismatchStrategy | None = None,
) -> WizardState:
    """Return a state compatible with ``schema``.

    Args:
        state: Persisted state, possibly from an older schema.
        schema: Current schema.
        strategy: Override for ``schema.mismatch_strategy``.

    Raises:
        MissingMigrationHandlerError: ``MIGRATE`` without a handler.
    """
    if state.schema_version == schema.version:
        return state

    chosen = strategy or schema.mismatch_strategy
    logger.info(
        "Migrating wizard '%s' state from version %r to %r (%s)",
        schema.name,
        state.schema_version,
        schema.version,
        chosen.value,
    )

    match chosen:
        case VersionMismatchStrategy.RESET:
            return WizardState.empty(schema.version)
        case VersionMismatchStrategy.MIGRATE:
            if schema.migration is None:
                raise MissingMigrationHandlerError(
                    "MIGRATE strategy selected but the schema has no migration handler",
                    ErrorContext(schema.name),
                )
            migrated = schema.migration(state, schema)
            return normalize_state(migrated, schema)
        case VersionMismatchStrategy.KEEP:
            return normalize_state(state, schema)
        case _:
            assert_never(chosen)


def normalize_state(state: WizardState, schema: WizardSchema) -> WizardState:
    """Enforce the post-migration invariants on ``state``.

    - version is the schema's version
    - ``data`` only holds declared fields
    - completed keys only name existing steps
    - a missing or vanished position moves to the first visible step
    - a finished flow resumes at its first visible step not yet completed,
      or stays finished when there is none
    """
    declared = set(schema.all_fields)
    dropped = sorted(k for k in state.data if k not in declared)
    if dropped:
        logger.warning(
            "Dropping undeclared fields from migrated wizard '%s' state: %s",
            schema.name,
            ", ".join(dropped),
        )

    normalized = state.for_version(schema.version, declared, schema.step_keys)
    if normalized.current_step_key is not None:
        return normalized

    visible = schema.visibility.visible_steps(normalized.data)
    if state.is_complete:
        pending = [s for s in visible if s.key not in normalized.completed_step_keys]
        if not pending:
            return normalized
        return normalized.with_current_step(pending[0].key)

    first = visible[0].key if visible else None
    return normalized.with_current_step(first)
