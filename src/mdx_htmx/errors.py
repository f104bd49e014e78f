"""
Error types for mdx-htmx.

Two families live here:

- Fatal errors (schema, configuration and programming mistakes). These are
  raised and propagate to the caller untouched.
- Recoverable wizard flow errors (``WizardFlowError`` subclasses). The wizard
  helper *returns* these as values so controllers can branch on them and
  re-render the step instead of unwinding the request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class HtmxError(Exception):
    """Base exception for all mdx-htmx errors."""

    def __init__(self, message: str, context: ErrorContext | None = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}: {self.message}"
        return self.message


@dataclass
class ErrorContext:
    """
    Where an error happened inside a wizard.

    Attributes:
        wizard: Wizard (schema) name
        step: Optional step key
    """

    wizard: str
    step: str | None = None

    def format(self) -> str:
        if self.step:
            return f"wizard '{self.wizard}' step '{self.step}'"
        return f"wizard '{self.wizard}'"


# =============================================================================
# Fatal errors
# =============================================================================


class SchemaValidationError(HtmxError):
    """
    Raised when a WizardSchema is malformed.

    Examples:
    - Two steps share a key
    - A field is owned by more than one step
    - A schema without steps
    """


class UnknownStepError(HtmxError):
    """Raised when a step key is not part of the schema."""

    def __init__(self, step_key: str, context: ErrorContext | None = None):
        self.step_key = step_key
        super().__init__(f"Step '{step_key}' does not exist", context)


class UnknownFieldError(HtmxError):
    """Raised when no step of the schema owns a field name."""

    def __init__(self, field_name: str, context: ErrorContext | None = None):
        self.field_name = field_name
        super().__init__(f"Field '{field_name}' is not declared by any step", context)


class UnknownWizardError(HtmxError):
    """Raised when no schema is registered for a wizard id."""

    def __init__(self, wizard_id: str):
        self.wizard_id = wizard_id
        super().__init__(f"No wizard schema registered for '{wizard_id}'")


class MissingMigrationHandlerError(HtmxError):
    """Raised when the MIGRATE strategy is selected but the schema has no handler."""


class StateDecodeError(HtmxError):
    """Raised when a persisted wizard state payload cannot be decoded."""


class BlockCannotBeSetWithoutTemplateError(HtmxError):
    """Raised when a view names a block but no template."""

    def __init__(self, block: str):
        self.block = block
        super().__init__(f"Block '{block}' cannot be set without a template")


class ReservedViewDataError(HtmxError):
    """Raised when view data overrides a reserved default view variable."""


class StrictModeViolationError(HtmxError):
    """Raised in strict mode when an htmx response answers a non-htmx request."""


# =============================================================================
# Recoverable wizard flow errors (returned as values)
# =============================================================================


class WizardFlowError(HtmxError):
    """Base class for user-facing wizard errors that leave state untouched."""


class ValidationError(WizardFlowError):
    """
    Aggregated field-level violations for one step submission.

    Attributes:
        step_key: Step that was submitted
        field_errors: Mapping of field name to error messages. Errors that
            are not attached to a single field use the ``"_form"`` key.
        values: Raw submitted values, for re-rendering the form
    """

    def __init__(
        self,
        step_key: str,
        field_errors: dict[str, list[str]],
        values: dict[str, Any] | None = None,
    ):
        self.step_key = step_key
        self.field_errors = field_errors
        self.values = values or {}
        count = sum(len(msgs) for msgs in field_errors.values())
        super().__init__(f"Step '{step_key}' has {count} validation error(s)")

    def messages(self) -> list[str]:
        """Flatten errors into ``field: message`` strings."""
        out: list[str] = []
        for field, msgs in self.field_errors.items():
            for msg in msgs:
                out.append(msg if field == "_form" else f"{field}: {msg}")
        return out


class StepMismatchError(WizardFlowError):
    """A submission targeted a step other than the current one (stale page)."""

    def __init__(self, expected: str | None, submitted: str):
        self.expected = expected
        self.submitted = submitted
        super().__init__(
            f"Submitted step '{submitted}' but the wizard is at '{expected or '<none>'}'"
        )


class NoPriorStepError(WizardFlowError):
    """Back navigation requested with no eligible previous step."""


class NavigationError(WizardFlowError):
    """A direct jump to a step is not allowed by the navigation strategy."""

    def __init__(self, target: str, reason: str):
        self.target = target
        self.reason = reason
        super().__init__(f"Cannot navigate to step '{target}': {reason}")
