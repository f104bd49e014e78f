"""
Multi-step form wizards.

A ``WizardSchema`` declares the steps, a ``WizardHelper`` drives a user
through them, storing a versioned ``WizardState`` in the session.
"""

from mdx_htmx.wizard.helper import SubmitResult, WizardHelper, WizardRegistry
from mdx_htmx.wizard.migration import (
    VersionMismatchStrategy,
    WizardMigration,
    migrate_state,
    normalize_state,
)
from mdx_htmx.wizard.schema import NavigationStrategy, WizardField, WizardSchema, WizardStep
from mdx_htmx.wizard.state import WizardState
from mdx_htmx.wizard.storage import (
    FileSessionStore,
    InMemorySessionStore,
    SessionStore,
    SessionWizardStorage,
    StarletteSessionStore,
    VersionedWizardStorage,
    WizardStorage,
)
from mdx_htmx.wizard.validation import PydanticStepValidator, StepValidation, StepValidator
from mdx_htmx.wizard.views import Completion, FieldView, StepLink, StepView
from mdx_htmx.wizard.visibility import (
    Predicate,
    VisibilityEvaluator,
    all_of,
    any_of,
    cascading_choices,
    field_equals,
    field_in,
    field_truthy,
    negate,
    parse_condition,
)

__all__ = [
    "Completion",
    "FieldView",
    "FileSessionStore",
    "InMemorySessionStore",
    "NavigationStrategy",
    "Predicate",
    "PydanticStepValidator",
    "SessionStore",
    "SessionWizardStorage",
    "StarletteSessionStore",
    "StepLink",
    "StepValidation",
    "StepValidator",
    "StepView",
    "SubmitResult",
    "VersionMismatchStrategy",
    "VersionedWizardStorage",
    "VisibilityEvaluator",
    "WizardField",
    "WizardHelper",
    "WizardMigration",
    "WizardRegistry",
    "WizardSchema",
    "WizardState",
    "WizardStep",
    "WizardStorage",
    "all_of",
    "any_of",
    "cascading_choices",
    "field_equals",
    "field_in",
    "field_truthy",
    "migrate_state",
    "negate",
    "normalize_state",
    "parse_condition",
]
