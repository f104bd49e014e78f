"""
Step validation.

A ``StepValidator`` turns raw submitted values into coerced values, or into
field-level errors. The default ``PydanticStepValidator`` applies the field
descriptors' own rules (required, choices) and then, when the step declares
one, the step's pydantic model.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import ValidationError as PydanticValidationError

if TYPE_CHECKING:
    from mdx_htmx.wizard.schema import WizardStep

FORM_ERROR_KEY = "_form"
BLANK_MESSAGE = "This value should not be blank."
INVALID_CHOICE_MESSAGE = "The value you selected is not a valid choice."


@dataclass
class StepValidation:
    """Outcome of validating one step submission."""

    values: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, field_name: str, message: str) -> None:
        self.errors.setdefault(field_name, []).append(message)


class StepValidator(Protocol):
    def validate(
        self,
        step: WizardStep,
        raw: Mapping[str, Any],
        data: Mapping[str, Any],
    ) -> StepValidation:
        """Validate ``raw`` for ``step``; ``data`` is the accumulated state data."""
        ...


def extract_step_values(step: WizardStep, raw: Mapping[str, Any]) -> dict[str, Any]:
    """Pick the step's own fields out of a submission.

    Accepts flat form data (``{"email": ...}``) or data nested under the
    step key (``{"account": {"email": ...}}``). Unknown keys are ignored.
    """
    nested = raw.get(step.key)
    source = nested if isinstance(nested, Mapping) else raw
    return {name: source[name] for name in step.field_names if name in source}


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


class PydanticStepValidator:
    """Default validator: descriptor rules first, then the step's model."""

    def validate(
        self,
        step: WizardStep,
        raw: Mapping[str, Any],
        data: Mapping[str, Any],
    ) -> StepValidation:
        values = extract_step_values(step, raw)
        result = StepValidation(values=dict(values))
        context = {**data, **values}

        for descriptor in step.fields:
            value = values.get(descriptor.name)
            if _is_blank(value):
                if descriptor.required:
                    result.add_error(descriptor.name, BLANK_MESSAGE)
                continue
            allowed = descriptor.choices_for(context)
            if allowed and not _in_choices(value, allowed):
                result.add_error(descriptor.name, INVALID_CHOICE_MESSAGE)

        if step.model is not None:
            reported = set(result.errors)
            try:
                instance = step.model.model_validate(values)
            except PydanticValidationError as exc:
                for err in exc.errors():
                    loc = err.get("loc", ())
                    name = str(loc[0]) if loc else FORM_ERROR_KEY
                    if name not in step.field_names:
                        name = FORM_ERROR_KEY
                    if name in reported:
                        continue  # already reported by the descriptor rules
                    result.add_error(name, err.get("msg", "Invalid value"))
            else:
                dumped = instance.model_dump(mode="json")
                result.values = {k: v for k, v in dumped.items() if k in step.field_names}

        return result


def _in_choices(value: Any, allowed: tuple[str, ...]) -> bool:
    if isinstance(value, list | tuple):
        return all(str(v) in allowed for v in value)
    return str(value) in allowed
