"""
htmx response headers.

Typed builders for the ``HX-*`` response headers: swap styles and their
modifiers (``HX-Reswap``), event triggers and simple URL/selector headers.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class HtmxResponseHeader(StrEnum):
    """Response headers understood by htmx."""

    LOCATION = "HX-Location"
    PUSH_URL = "HX-Push-Url"
    REDIRECT = "HX-Redirect"
    REFRESH = "HX-Refresh"
    REPLACE_URL = "HX-Replace-Url"
    RESWAP = "HX-Reswap"
    RETARGET = "HX-Retarget"
    RESELECT = "HX-Reselect"
    TRIGGER = "HX-Trigger"
    TRIGGER_AFTER_SETTLE = "HX-Trigger-After-Settle"
    TRIGGER_AFTER_SWAP = "HX-Trigger-After-Swap"


class SwapStyle(StrEnum):
    """How htmx swaps the response into the target."""

    INNER_HTML = "innerHTML"
    OUTER_HTML = "outerHTML"
    BEFORE_BEGIN = "beforebegin"
    AFTER_BEGIN = "afterbegin"
    BEFORE_END = "beforeend"
    AFTER_END = "afterend"
    DELETE = "delete"
    NONE = "none"


class ScrollingDirection(StrEnum):
    TOP = "top"
    BOTTOM = "bottom"


# =============================================================================
# Swap modifiers
# =============================================================================


class SwapModifier:
    """Base class for ``hx-swap`` modifiers; ``str()`` gives the wire form."""

    def __str__(self) -> str:  # pragma: no cover - abstract
        raise NotImplementedError


def _join(*parts: str | None) -> str:
    return ":".join(p for p in parts if p)


@dataclass(frozen=True)
class Scroll(SwapModifier):
    """``scroll:[<selector>:]top|bottom``"""

    direction: ScrollingDirection
    element: str | None = None

    def __str__(self) -> str:
        return _join("scroll", self.element, self.direction.value)


@dataclass(frozen=True)
class Show(SwapModifier):
    """``show:[<selector>:]top|bottom``"""

    direction: ScrollingDirection
    element: str | None = None

    def __str__(self) -> str:
        return _join("show", self.element, self.direction.value)


@dataclass(frozen=True)
class Transition(SwapModifier):
    """``transition:true`` (View Transitions API)."""

    enabled: bool = True

    def __str__(self) -> str:
        return f"transition:{'true' if self.enabled else 'false'}"


@dataclass(frozen=True)
class SwapDelay(SwapModifier):
    milliseconds: int

    def __str__(self) -> str:
        return f"swap:{self.milliseconds}ms"


@dataclass(frozen=True)
class SettleDelay(SwapModifier):
    milliseconds: int

    def __str__(self) -> str:
        return f"settle:{self.milliseconds}ms"


def reswap_value(style: SwapStyle | str, *modifiers: SwapModifier) -> str:
    """Render an ``HX-Reswap`` value, e.g. ``innerHTML show:top``."""
    return " ".join([str(SwapStyle(style)), *(str(m) for m in modifiers)])


# =============================================================================
# Triggers
# =============================================================================

TriggerEvents = str | Sequence[str] | Mapping[str, Any]


def encode_trigger(events: TriggerEvents) -> str:
    """Encode a trigger value to the ``HX-Trigger`` header format.

    - str: passed through as-is
    - list[str]: simple event names joined with ", "
    - dict: event names with JSON payloads
    """
    if isinstance(events, str):
        return events
    if isinstance(events, Mapping):
        return json.dumps(dict(events))
    names = list(events)
    if all(isinstance(name, str) for name in names):
        return ", ".join(names)
    return json.dumps(names)


# =============================================================================
# Header collection
# =============================================================================


class HtmxResponseHeaders:
    """Immutable ordered collection of htmx response headers.

    ``add`` returns a new collection; a header added twice keeps its first
    position and the latest value.
    """

    __slots__ = ("_headers",)

    def __init__(self, headers: Mapping[HtmxResponseHeader, str] | None = None) -> None:
        self._headers: dict[HtmxResponseHeader, str] = dict(headers or {})

    def add(self, name: HtmxResponseHeader | str, value: str) -> HtmxResponseHeaders:
        updated = dict(self._headers)
        updated[HtmxResponseHeader(name)] = value
        return HtmxResponseHeaders(updated)

    def get(self, name: HtmxResponseHeader | str) -> str | None:
        return self._headers.get(HtmxResponseHeader(name))

    def as_dict(self) -> dict[str, str]:
        return {name.value: value for name, value in self._headers.items()}

    def __iter__(self) -> Iterator[tuple[HtmxResponseHeader, str]]:
        return iter(self._headers.items())

    def __len__(self) -> int:
        return len(self._headers)

    def __contains__(self, name: object) -> bool:
        return name in self._headers

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HtmxResponseHeaders):
            return NotImplemented
        return self._headers == other._headers

    def __repr__(self) -> str:
        return f"HtmxResponseHeaders({self.as_dict()!r})"
