"""
Wizard state.

``WizardState`` is the versioned, serialisable snapshot of a user's progress
through a wizard. It is immutable: every update returns a new instance, so a
submission can be validated and merged speculatively and simply dropped when
anything fails.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic import ValidationError as PydanticValidationError

from mdx_htmx.errors import StateDecodeError


class WizardState(BaseModel):
    """
    Snapshot of one wizard run.

    Attributes:
        schema_version: Version of the schema the state was last written under
        data: Accumulated field values from every visited step
        current_step_key: Step the user is on; ``None`` before the flow
            starts and after it completes
        completed_step_keys: Steps the user has successfully submitted
    """

    schema_version: int | str
    data: dict[str, Any] = Field(default_factory=dict)
    current_step_key: str | None = None
    completed_step_keys: frozenset[str] = Field(default_factory=frozenset)

    model_config = ConfigDict(frozen=True)

    @field_serializer("completed_step_keys")
    def _sorted_keys(self, keys: frozenset[str]) -> list[str]:
        return sorted(keys)

    @classmethod
    def empty(cls, schema_version: int | str) -> WizardState:
        return cls(schema_version=schema_version)

    # -- derived --------------------------------------------------------------

    @property
    def is_started(self) -> bool:
        return self.current_step_key is not None or bool(self.completed_step_keys)

    @property
    def is_complete(self) -> bool:
        """No current step but some submitted steps: the flow has finished."""
        return self.current_step_key is None and bool(self.completed_step_keys)

    def is_step_completed(self, key: str) -> bool:
        return key in self.completed_step_keys

    def values_for(self, field_names: Iterable[str]) -> dict[str, Any]:
        return {name: self.data[name] for name in field_names if name in self.data}

    # -- copy-on-write updates ------------------------------------------------

    def with_fields(self, values: Mapping[str, Any]) -> WizardState:
        return self.model_copy(update={"data": {**self.data, **values}})

    def with_step_fields(
        self, field_names: Iterable[str], values: Mapping[str, Any]
    ) -> WizardState:
        """Replace everything a step owns: names missing from ``values`` are dropped."""
        owned = set(field_names)
        kept = {k: v for k, v in self.data.items() if k not in owned}
        return self.model_copy(update={"data": {**kept, **values}})

    def with_current_step(self, key: str | None) -> WizardState:
        return self.model_copy(update={"current_step_key": key})

    def with_completed(self, key: str) -> WizardState:
        return self.model_copy(update={"completed_step_keys": self.completed_step_keys | {key}})

    def without_completed(self, key: str) -> WizardState:
        return self.model_copy(update={"completed_step_keys": self.completed_step_keys - {key}})

    def for_version(
        self,
        schema_version: int | str,
        valid_fields: Iterable[str],
        valid_steps: Iterable[str] | None = None,
    ) -> WizardState:
        """Copy under a new version, keeping only known fields (and steps)."""
        fields = set(valid_fields)
        completed = self.completed_step_keys
        current = self.current_step_key
        if valid_steps is not None:
            steps = set(valid_steps)
            completed = frozenset(k for k in completed if k in steps)
            if current is not None and current not in steps:
                current = None
        return WizardState(
            schema_version=schema_version,
            data={k: v for k, v in self.data.items() if k in fields},
            current_step_key=current,
            completed_step_keys=completed,
        )

    # -- serialisation --------------------------------------------------------

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def from_bytes(cls, raw: bytes | str) -> WizardState:
        try:
            return cls.model_validate_json(raw)
        except PydanticValidationError as exc:
            message = f"Cannot decode wizard state: {exc.error_count()} error(s)"
            raise StateDecodeError(message) from exc
