"""
Step visibility.

A visibility predicate is a pure function of the accumulated wizard data.
Predicates can be written as plain callables, built from the combinators in
this module, or given as simple condition strings::

    WizardStep(key="company", fields=["company_name"], when="account_type = business")
    WizardStep(key="vat", fields=["vat_id"], when=all_of(
        field_equals("account_type", "business"),
        field_truthy("vat_registered"),
    ))

``VisibilityEvaluator`` answers navigation questions (first / next / previous
visible step) against a schema and a data snapshot.
"""

from __future__ import annotations

import operator
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from mdx_htmx.wizard.schema import WizardSchema, WizardStep

Predicate = Callable[[Mapping[str, Any]], bool]

# Longest operators first so ">=" is not read as ">"
_OPERATORS: tuple[tuple[str, Callable[[Any, Any], bool]], ...] = (
    ("!=", operator.ne),
    (">=", operator.ge),
    ("<=", operator.le),
    ("=", operator.eq),
    (">", operator.gt),
    ("<", operator.lt),
)


def resolve_dotted_path(path: str, data: Mapping[str, Any]) -> Any:
    """Resolve ``company.address.city`` against nested mappings.

    Returns ``None`` if any segment is missing.
    """
    current: Any = data
    for part in path.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            return None
    return current


def parse_literal(value: str) -> Any:
    """Parse a condition literal into a typed Python value."""
    low = value.lower()
    if low == "true":
        return True
    if low == "false":
        return False
    if low in ("null", "none"):
        return None
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


def parse_condition(expression: str) -> Predicate:
    """Compile ``<path> <op> <literal>`` into a predicate.

    Supported operators: ``=``, ``!=``, ``>``, ``<``, ``>=``, ``<=``.
    A missing left-hand value counts as ``None``: it equals only the
    ``null`` literal and makes every ordering comparison false, as does an
    ordering comparison between incompatible types.

    Raises:
        ValueError: the expression has no supported operator.
    """
    for symbol, op in _OPERATORS:
        token = f" {symbol} "
        if token not in expression:
            continue
        left, right = expression.split(token, 1)
        path = left.strip()
        expected = parse_literal(right.strip())
        if not path:
            break

        def predicate(data: Mapping[str, Any], _path: str = path, _op: Any = op) -> bool:
            actual = resolve_dotted_path(_path, data)
            if actual is None:
                if _op in (operator.eq, operator.ne):
                    return bool(_op(None, expected))
                return False
            if isinstance(actual, str) and not isinstance(expected, str):
                actual = parse_literal(actual)
            try:
                return bool(_op(actual, expected))
            except TypeError:
                return False

        predicate.__name__ = f"condition({expression})"
        return predicate

    raise ValueError(f"Invalid visibility condition: {expression!r}")


# =============================================================================
# Combinators
# =============================================================================


def field_equals(name: str, value: Any) -> Predicate:
    return lambda data: data.get(name) == value


def field_in(name: str, values: Iterable[Any]) -> Predicate:
    allowed = tuple(values)
    return lambda data: data.get(name) in allowed


def field_truthy(name: str) -> Predicate:
    return lambda data: bool(data.get(name))


def all_of(*predicates: Predicate) -> Predicate:
    return lambda data: all(p(data) for p in predicates)


def any_of(*predicates: Predicate) -> Predicate:
    return lambda data: any(p(data) for p in predicates)


def negate(predicate: Predicate) -> Predicate:
    return lambda data: not predicate(data)


def as_predicate(when: Predicate | str | None) -> Predicate | None:
    """Normalise a ``when`` declaration (callable, expression or ``None``)."""
    if when is None or callable(when):
        return when
    if isinstance(when, str):
        return parse_condition(when)
    raise TypeError(f"Visibility predicate must be callable or str, got {type(when).__name__}")


def cascading_choices(
    choices_by_parent: Mapping[Any, Sequence[str]],
    parent_field: str,
) -> Callable[[Mapping[str, Any]], tuple[str, ...]]:
    """Build a resolver for a dependent field's choices.

    The returned function maps the current data to the choices allowed by
    the parent field's value (empty when the parent is unset or unknown)::

        cities = cascading_choices({"PL": ["Warsaw", "Krakow"]}, "country")
        cities({"country": "PL"})  # ("Warsaw", "Krakow")
    """
    table = {parent: tuple(options) for parent, options in choices_by_parent.items()}

    def resolve(data: Mapping[str, Any]) -> tuple[str, ...]:
        return table.get(data.get(parent_field), ())

    return resolve


# =============================================================================
# Evaluator
# =============================================================================


class VisibilityEvaluator:
    """Determines the active steps of a schema for a data snapshot."""

    def __init__(self, schema: WizardSchema) -> None:
        self.schema = schema

    def is_visible(self, step: WizardStep | str, data: Mapping[str, Any]) -> bool:
        if isinstance(step, str):
            step = self.schema.get_step(step)
        return step.when is None or bool(step.when(data))

    def visible_steps(self, data: Mapping[str, Any]) -> list[WizardStep]:
        return [step for step in self.schema.steps if self.is_visible(step, data)]

    def visible_keys(self, data: Mapping[str, Any]) -> list[str]:
        return [step.key for step in self.visible_steps(data)]

    def first_visible(self, data: Mapping[str, Any]) -> WizardStep | None:
        for step in self.schema.steps:
            if self.is_visible(step, data):
                return step
        return None

    def next_visible(self, after_key: str, data: Mapping[str, Any]) -> WizardStep | None:
        """Next visible step strictly after ``after_key`` in schema order."""
        index = self.schema.step_index(after_key)
        for step in self.schema.steps[index + 1 :]:
            if self.is_visible(step, data):
                return step
        return None

    def previous_visible(
        self,
        before_key: str | None,
        data: Mapping[str, Any],
        completed: Iterable[str] | None = None,
    ) -> WizardStep | None:
        """Nearest visible step before ``before_key``.

        With ``completed`` only steps in that set qualify. ``before_key=None``
        searches from the end of the schema.
        """
        end = len(self.schema.steps) if before_key is None else self.schema.step_index(before_key)
        allowed = set(completed) if completed is not None else None
        for step in reversed(self.schema.steps[:end]):
            if allowed is not None and step.key not in allowed:
                continue
            if self.is_visible(step, data):
                return step
        return None
