"""
Wizard schema types.

A ``WizardSchema`` is the immutable definition of a multi-step form: ordered
steps, the fields each step owns, optional visibility predicates, the schema
version used to detect stale persisted state, and the policy applied when a
stored state was written under another version.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from mdx_htmx.attributes import HtmxAttributes
from mdx_htmx.errors import ErrorContext, SchemaValidationError, UnknownStepError
from mdx_htmx.wizard.migration import VersionMismatchStrategy
from mdx_htmx.wizard.visibility import Predicate, VisibilityEvaluator, as_predicate


class NavigationStrategy(StrEnum):
    """Rules for jumping directly to a step (``WizardHelper.go_to_step``)."""

    FREE = "free"  # jump anywhere
    SEQUENTIAL = "sequential"  # previous or next step only
    LINEAR = "linear"  # back freely, forward to the next or a completed step

    @property
    def description(self) -> str:
        return {
            NavigationStrategy.FREE: "Jump anywhere without validation",
            NavigationStrategy.SEQUENTIAL: "One step at a time (prev/next only)",
            NavigationStrategy.LINEAR: "Back freely, forward after completing",
        }[self]


def humanize(name: str) -> str:
    """``first_name`` -> ``First name``"""
    text = name.replace("_", " ").replace("-", " ").strip()
    return text[:1].upper() + text[1:]


class WizardField(BaseModel):
    """
    Descriptor of one form field owned by a step.

    Attributes:
        name: Key under which the value is stored in wizard data
        label: Human-readable label (defaults to the humanised name)
        required: Built-in validation rejects empty values when set
        input_type: HTML input type hint for templates
        choices: Static choices for select/radio inputs
        choices_from: Data-dependent choices (see ``cascading_choices``)
        help: Optional help text
        htmx: Extra ``hx-*`` attributes for the input, given as an
            ``HtmxAttributes`` builder or a plain mapping
    """

    name: str
    label: str = ""
    required: bool = False
    input_type: str = "text"
    choices: tuple[str, ...] = ()
    choices_from: Callable[[Mapping[str, Any]], tuple[str, ...]] | None = None
    help: str | None = None
    htmx: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @field_validator("htmx", mode="before")
    @classmethod
    def _htmx_attributes(cls, value: Any) -> Any:
        if isinstance(value, HtmxAttributes):
            return value.as_dict()
        return value

    @model_validator(mode="before")
    @classmethod
    def _from_name(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = {"name": value}
        if isinstance(value, dict) and not value.get("label") and value.get("name"):
            value = {**value, "label": humanize(value["name"])}
        return value

    def choices_for(self, data: Mapping[str, Any]) -> tuple[str, ...]:
        """Choices allowed for the current data."""
        if self.choices_from is not None:
            return tuple(self.choices_from(data))
        return self.choices


class WizardStep(BaseModel):
    """
    Single step of a wizard.

    Attributes:
        key: Step identifier, unique within the schema
        label: Human-readable title
        fields: Ordered fields owned by this step
        when: Visibility predicate over the accumulated data. ``None``
            means always visible. Condition strings are compiled on
            construction.
        allow_back: Whether "back" is offered from this step
        model: Optional pydantic model validating this step's fields
    """

    key: str
    label: str = ""
    fields: tuple[WizardField, ...] = ()
    when: Predicate | None = None
    allow_back: bool = True
    model: type[BaseModel] | None = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _default_label(cls, value: Any) -> Any:
        if isinstance(value, dict) and not value.get("label") and value.get("key"):
            value = {**value, "label": humanize(value["key"])}
        return value

    @field_validator("when", mode="before")
    @classmethod
    def _compile_when(cls, value: Any) -> Any:
        try:
            return as_predicate(value)
        except (TypeError, ValueError) as exc:
            raise SchemaValidationError(str(exc)) from exc

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def get_field(self, name: str) -> WizardField | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None


class WizardSchema(BaseModel):
    """
    Immutable definition of a wizard.

    Attributes:
        name: Wizard identifier (also the default storage key)
        version: Schema revision; persisted states carry the version they
            were written under
        steps: Ordered steps
        mismatch_strategy: What to do with state written under another version
        navigation: Rules for direct step jumps
        migration: ``(old_state, new_schema) -> new_state`` handler used by
            ``VersionMismatchStrategy.MIGRATE``. An object with a
            ``migrate`` method is accepted too.
    """

    name: str
    version: int | str
    steps: tuple[WizardStep, ...] = Field(default_factory=tuple)
    mismatch_strategy: VersionMismatchStrategy = VersionMismatchStrategy.RESET
    navigation: NavigationStrategy = NavigationStrategy.LINEAR
    migration: Callable[..., Any] | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("migration", mode="before")
    @classmethod
    def _bind_migration(cls, value: Any) -> Any:
        migrate = getattr(value, "migrate", None)
        if value is not None and not callable(value) and callable(migrate):
            return migrate
        return value

    @model_validator(mode="after")
    def _check_structure(self) -> WizardSchema:
        if not self.steps:
            raise SchemaValidationError(
                "A wizard schema needs at least one step", ErrorContext(self.name)
            )

        seen_steps: set[str] = set()
        owner: dict[str, str] = {}
        for step in self.steps:
            if step.key in seen_steps:
                raise SchemaValidationError(
                    f"Duplicate step key '{step.key}'", ErrorContext(self.name, step.key)
                )
            seen_steps.add(step.key)
            for name in step.field_names:
                if name in owner:
                    raise SchemaValidationError(
                        f"Field '{name}' is owned by both '{owner[name]}' and '{step.key}'",
                        ErrorContext(self.name, step.key),
                    )
                owner[name] = step.key
        return self

    # -- lookup ---------------------------------------------------------------

    @property
    def step_keys(self) -> tuple[str, ...]:
        return tuple(step.key for step in self.steps)

    @property
    def step_count(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[WizardStep]:  # type: ignore[override]
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    def has_step(self, key: str) -> bool:
        return any(step.key == key for step in self.steps)

    def step_index(self, key: str) -> int:
        for index, step in enumerate(self.steps):
            if step.key == key:
                return index
        raise UnknownStepError(key, ErrorContext(self.name))

    def get_step(self, key: str) -> WizardStep:
        return self.steps[self.step_index(key)]

    @property
    def all_fields(self) -> tuple[str, ...]:
        """Every declared field name, in step order."""
        return tuple(name for step in self.steps for name in step.field_names)

    def step_for_field(self, name: str) -> str | None:
        for step in self.steps:
            if name in step.field_names:
                return step.key
        return None

    # -- visibility -----------------------------------------------------------

    @property
    def visibility(self) -> VisibilityEvaluator:
        return VisibilityEvaluator(self)

    def is_visible(self, key: str, data: Mapping[str, Any]) -> bool:
        return self.visibility.is_visible(key, data)

    def visible_steps(self, data: Mapping[str, Any]) -> list[WizardStep]:
        return self.visibility.visible_steps(data)
