"""Values handed from the wizard to controllers and templates."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from mdx_htmx.wizard.schema import WizardField, WizardSchema, WizardStep
from mdx_htmx.wizard.state import WizardState


@dataclass(frozen=True, slots=True)
class StepLink:
    """One entry of the progress indicator."""

    key: str
    label: str
    is_current: bool = False
    is_completed: bool = False


@dataclass(frozen=True, slots=True)
class StepView:
    """Everything needed to render the active step.

    ``position`` is 1-based among the currently visible steps and ``total``
    is their count, so both change as visibility predicates flip.
    """

    wizard: str
    key: str
    label: str
    fields: tuple[WizardField, ...]
    values: dict[str, Any]
    choices: dict[str, tuple[str, ...]]
    is_first: bool
    is_last: bool
    position: int
    total: int
    can_go_back: bool
    completed_step_keys: frozenset[str] = frozenset()
    steps: tuple[StepLink, ...] = ()

    @classmethod
    def build(cls, schema: WizardSchema, state: WizardState, step: WizardStep) -> StepView:
        visible = schema.visibility.visible_steps(state.data)
        keys = [s.key for s in visible]
        position = keys.index(step.key) + 1 if step.key in keys else 1
        prior_completed = schema.visibility.previous_visible(
            step.key, state.data, state.completed_step_keys
        )
        return cls(
            wizard=schema.name,
            key=step.key,
            label=step.label,
            fields=step.fields,
            values=state.values_for(step.field_names),
            choices={f.name: f.choices_for(state.data) for f in step.fields},
            is_first=position == 1,
            is_last=schema.visibility.next_visible(step.key, state.data) is None,
            position=position,
            total=len(visible),
            can_go_back=step.allow_back and prior_completed is not None,
            completed_step_keys=state.completed_step_keys,
            steps=tuple(
                StepLink(
                    key=s.key,
                    label=s.label,
                    is_current=s.key == step.key,
                    is_completed=s.key in state.completed_step_keys,
                )
                for s in visible
            ),
        )


@dataclass(frozen=True, slots=True)
class Completion:
    """The wizard is finished; ``data`` holds every accumulated value."""

    wizard: str
    data: dict[str, Any] = field(default_factory=dict)
    steps: tuple[str, ...] = ()

    @classmethod
    def build(cls, schema: WizardSchema, state: WizardState) -> Completion:
        return cls(
            wizard=schema.name,
            data=dict(state.data),
            steps=tuple(schema.visibility.visible_keys(state.data)),
        )


@dataclass(frozen=True, slots=True)
class FieldView:
    """One field re-rendered on its own, e.g. a dependent select whose
    parent changed before the step was submitted."""

    wizard: str
    step: str
    field: WizardField
    value: Any
    options: tuple[str, ...]
