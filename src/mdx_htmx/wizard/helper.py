"""
Wizard orchestration.

``WizardHelper`` drives a wizard through
``NotStarted -> InProgress(step) -> Completed``:

- ``get_current_step`` starts the flow on first access (migrating stale
  state first) and returns the active step.
- ``submit_step`` validates one step's fields and replaces its data, then moves to the
  next visible step, or completes the flow.
- ``go_back`` / ``go_to_step`` move the position without touching data.
- ``reset`` forgets everything.
- ``field_view`` previews one field against unsaved values, for dependent
  selects refreshed while the step is being filled in.

Every operation loads the state, works on an immutable copy and saves before
returning. User-facing failures (validation, stale submission, impossible
navigation) are *returned* as ``WizardFlowError`` values and nothing is
saved. Schema and configuration errors are raised.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from mdx_htmx.errors import (
    ErrorContext,
    NavigationError,
    NoPriorStepError,
    StepMismatchError,
    UnknownFieldError,
    UnknownWizardError,
    ValidationError,
)
from mdx_htmx.wizard.migration import migrate_state
from mdx_htmx.wizard.schema import NavigationStrategy, WizardSchema
from mdx_htmx.wizard.state import WizardState
from mdx_htmx.wizard.storage import WizardStorage
from mdx_htmx.wizard.validation import PydanticStepValidator, StepValidator, extract_step_values
from mdx_htmx.wizard.views import Completion, FieldView, StepView

logger = logging.getLogger(__name__)

SubmitResult = StepView | Completion | ValidationError | StepMismatchError


class WizardRegistry:
    """Maps wizard ids to their current schema."""

    def __init__(self, schemas: Iterable[WizardSchema] = ()) -> None:
        self._schemas: dict[str, WizardSchema] = {}
        for schema in schemas:
            self.register(schema)

    def register(self, schema: WizardSchema, wizard_id: str | None = None) -> WizardSchema:
        self._schemas[wizard_id or schema.name] = schema
        return schema

    def get(self, wizard_id: str) -> WizardSchema:
        try:
            return self._schemas[wizard_id]
        except KeyError:
            raise UnknownWizardError(wizard_id) from None

    def __contains__(self, wizard_id: object) -> bool:
        return wizard_id in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)


class WizardHelper:
    """Runs wizard operations against a storage backend.

    Args:
        storage: Where states live (usually ``SessionWizardStorage``).
        registry: Source of the current schema per wizard id.
        validator: Step validator, ``PydanticStepValidator`` by default.
    """

    def __init__(
        self,
        storage: WizardStorage,
        registry: WizardRegistry,
        validator: StepValidator | None = None,
    ) -> None:
        self.storage = storage
        self.registry = registry
        self.validator = validator or PydanticStepValidator()

    # -- loading --------------------------------------------------------------

    def _load(self, wizard_id: str) -> tuple[WizardSchema, WizardState, bool]:
        """Load, materialise or migrate the state.

        Returns:
            (schema, state, changed) where ``changed`` says the state
            differs from what storage holds.
        """
        schema = self.registry.get(wizard_id)
        stored = self.storage.load(wizard_id)
        if stored is None:
            logger.debug("Starting wizard '%s'", wizard_id)
            state = WizardState.empty(schema.version)
        else:
            state = migrate_state(stored, schema)

        settled = self._settle(schema, state)
        return schema, settled, settled != stored

    @staticmethod
    def _settle(schema: WizardSchema, state: WizardState) -> WizardState:
        """Put a started or in-progress state on a visible step."""
        if state.is_complete:
            return state
        visibility = schema.visibility
        current = state.current_step_key
        if current is None:
            first = visibility.first_visible(state.data)
            return state.with_current_step(first.key if first else None)
        if visibility.is_visible(current, state.data):
            return state
        target = visibility.next_visible(current, state.data) or visibility.previous_visible(
            current, state.data
        )
        logger.debug("Step '%s' is hidden, moving to %r", current, target and target.key)
        return state.with_current_step(target.key if target else None)

    def _result(self, schema: WizardSchema, state: WizardState) -> StepView | Completion:
        if state.current_step_key is None:
            return Completion.build(schema, state)
        return StepView.build(schema, state, schema.get_step(state.current_step_key))

    def _commit(
        self, wizard_id: str, schema: WizardSchema, state: WizardState
    ) -> StepView | Completion:
        self.storage.save(wizard_id, state)
        return self._result(schema, state)

    # -- operations -----------------------------------------------------------

    def load_state(self, wizard_id: str) -> WizardState:
        """Current state as the operations see it (not persisted)."""
        return self._load(wizard_id)[1]

    def get_current_step(self, wizard_id: str) -> StepView | Completion:
        """Return the active step, starting or migrating the wizard if needed."""
        schema, state, changed = self._load(wizard_id)
        if changed:
            return self._commit(wizard_id, schema, state)
        return self._result(schema, state)

    def submit_step(
        self,
        wizard_id: str,
        step_key: str,
        fields: Mapping[str, Any],
    ) -> SubmitResult:
        """Validate and apply one step's fields.

        Returns:
            The next ``StepView``, a ``Completion`` after the last visible
            step, or (with nothing saved) a ``StepMismatchError`` when
            ``step_key`` is not the current step or a ``ValidationError``
            listing every invalid field.
        """
        schema, state, _ = self._load(wizard_id)
        if step_key != state.current_step_key:
            logger.debug(
                "Stale submission for wizard '%s': got '%s', at %r",
                wizard_id,
                step_key,
                state.current_step_key,
            )
            return StepMismatchError(state.current_step_key, step_key)

        step = schema.get_step(step_key)
        outcome = self.validator.validate(step, fields, state.data)
        if not outcome.is_valid:
            return ValidationError(step_key, outcome.errors, extract_step_values(step, fields))

        updated = state.with_step_fields(step.field_names, outcome.values).with_completed(step_key)
        following = schema.visibility.next_visible(step_key, updated.data)
        updated = updated.with_current_step(following.key if following else None)
        logger.debug(
            "Wizard '%s' step '%s' submitted, next %r",
            wizard_id,
            step_key,
            updated.current_step_key,
        )
        return self._commit(wizard_id, schema, updated)

    def go_back(self, wizard_id: str) -> StepView | NoPriorStepError:
        """Move to the nearest earlier step that is visible and completed.

        From a completed wizard this returns to the last such step. Data of
        later steps is kept.
        """
        schema, state, _ = self._load(wizard_id)
        current = state.current_step_key
        if current is not None and not schema.get_step(current).allow_back:
            return NoPriorStepError(f"Step '{current}' does not allow going back")

        target = schema.visibility.previous_visible(current, state.data, state.completed_step_keys)
        if target is None:
            return NoPriorStepError("Already at the first step")

        moved = state.with_current_step(target.key)
        self.storage.save(wizard_id, moved)
        return StepView.build(schema, moved, target)

    def go_to_step(self, wizard_id: str, step_key: str) -> StepView | NavigationError:
        """Jump to ``step_key`` if the schema's navigation strategy allows it."""
        schema, state, changed = self._load(wizard_id)
        if not schema.has_step(step_key):
            return NavigationError(step_key, "unknown step")

        visible = schema.visibility.visible_keys(state.data)
        if step_key not in visible:
            return NavigationError(step_key, "step is not active")

        current = state.current_step_key
        if step_key == current:
            if changed:
                self.storage.save(wizard_id, state)
            return StepView.build(schema, state, schema.get_step(step_key))

        reason = self._navigation_refusal(schema.navigation, visible, current, step_key, state)
        if reason is not None:
            return NavigationError(step_key, reason)

        moved = state.with_current_step(step_key)
        self.storage.save(wizard_id, moved)
        return StepView.build(schema, moved, schema.get_step(step_key))

    @staticmethod
    def _navigation_refusal(
        strategy: NavigationStrategy,
        visible: list[str],
        current: str | None,
        target: str,
        state: WizardState,
    ) -> str | None:
        if strategy is NavigationStrategy.FREE:
            return None

        target_index = visible.index(target)
        # A finished flow sits "after" the last step
        current_index = visible.index(current) if current in visible else len(visible)
        forward = target_index > current_index

        if forward and (current is None or not state.is_step_completed(current)):
            return "complete the current step first"
        if strategy is NavigationStrategy.SEQUENTIAL:
            if abs(target_index - current_index) != 1:
                return "only the previous or next step is reachable"
            return None
        # LINEAR
        if forward and target_index != current_index + 1 and not state.is_step_completed(target):
            return "step has not been reached yet"
        return None

    def reset(self, wizard_id: str) -> None:
        """Forget the wizard; the next access starts over."""
        self.storage.clear(wizard_id)
        logger.debug("Wizard '%s' reset", wizard_id)

    def validate_all(self, wizard_id: str) -> dict[str, dict[str, list[str]]]:
        """Re-validate every visible step against the accumulated data.

        Useful on a final review step. Nothing is saved.

        Returns:
            Errors keyed by step, then field. Empty when everything is valid.
        """
        schema, state, _ = self._load(wizard_id)
        errors: dict[str, dict[str, list[str]]] = {}
        for step in schema.visibility.visible_steps(state.data):
            outcome = self.validator.validate(step, state.data, state.data)
            if not outcome.is_valid:
                errors[step.key] = outcome.errors
        return errors

    def first_step_with_errors(self, wizard_id: str) -> str | None:
        """Key of the earliest visible step that no longer validates.

        Lets a review page send the user straight to what needs fixing.
        """
        return next(iter(self.validate_all(wizard_id)), None)

    def field_view(self, wizard_id: str, field_name: str, values: Mapping[str, Any]) -> FieldView:
        """Re-evaluate one field against the stored data plus unsaved ``values``.

        ``values`` are the in-progress inputs of the field's step (typically
        the query string of a cascading request). A current value that the
        new choices no longer allow is cleared. Nothing is saved.

        Raises:
            UnknownFieldError: no step declares ``field_name``.
        """
        schema, state, _ = self._load(wizard_id)
        step_key = schema.step_for_field(field_name)
        if step_key is None:
            raise UnknownFieldError(field_name, ErrorContext(schema.name))

        step = schema.get_step(step_key)
        descriptor = step.get_field(field_name)
        assert descriptor is not None
        pending = {**state.data, **extract_step_values(step, values)}
        options = descriptor.choices_for(pending)
        value = pending.get(field_name)
        has_choices = bool(descriptor.choices) or descriptor.choices_from is not None
        if has_choices and value not in options:
            value = None
        return FieldView(schema.name, step.key, descriptor, value, options)
