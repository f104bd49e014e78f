"""
htmx element attributes.

Fluent builders for the ``hx-*`` attributes placed on form fields and other
elements, the request side of what ``mdx_htmx.response`` does for headers:

    attrs = (
        HtmxAttributes.create()
        .get("/search")
        .trigger(Trigger.keyup().changed().delay(300))
        .target("#results")
        .indicator("#spinner")
    )
    attrs.as_dict()
    # {"hx-get": "/search", "hx-trigger": "keyup changed delay:300ms", ...}

In Jinja2 templates render them with the ``xmlattr`` filter:
``<input {{ attrs.as_dict() | xmlattr }}>``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from mdx_htmx.response.headers import SwapModifier, SwapStyle, reswap_value

# =============================================================================
# Triggers
# =============================================================================


class Trigger:
    """Builder for ``hx-trigger`` values.

    ``str(Trigger.keyup().changed().delay(300))`` -> ``keyup changed delay:300ms``
    """

    def __init__(self, event: str) -> None:
        self.event = event
        self.modifiers: list[str] = []
        self.expression: str | None = None

    # -- events ---------------------------------------------------------------

    @classmethod
    def on(cls, event: str) -> Trigger:
        """Trigger on any (custom) event name."""
        return cls(event)

    @classmethod
    def click(cls) -> Trigger:
        return cls("click")

    @classmethod
    def change(cls) -> Trigger:
        return cls("change")

    @classmethod
    def submit(cls) -> Trigger:
        return cls("submit")

    @classmethod
    def keyup(cls) -> Trigger:
        return cls("keyup")

    @classmethod
    def keydown(cls) -> Trigger:
        return cls("keydown")

    @classmethod
    def input(cls) -> Trigger:
        return cls("input")

    @classmethod
    def focus(cls) -> Trigger:
        return cls("focus")

    @classmethod
    def blur(cls) -> Trigger:
        return cls("blur")

    @classmethod
    def mouseenter(cls) -> Trigger:
        return cls("mouseenter")

    @classmethod
    def mouseleave(cls) -> Trigger:
        return cls("mouseleave")

    @classmethod
    def load(cls) -> Trigger:
        return cls("load")

    @classmethod
    def revealed(cls) -> Trigger:
        return cls("revealed")

    @classmethod
    def intersect(cls) -> Trigger:
        return cls("intersect")

    @classmethod
    def every(cls, milliseconds: int) -> Trigger:
        """Polling trigger, ``every 2000ms``."""
        return cls(f"every {milliseconds}ms")

    # -- modifiers ------------------------------------------------------------

    def _add(self, modifier: str) -> Trigger:
        self.modifiers.append(modifier)
        return self

    def changed(self) -> Trigger:
        return self._add("changed")

    def delay(self, milliseconds: int) -> Trigger:
        """Debounce: fire once the event stops for ``milliseconds``."""
        return self._add(f"delay:{milliseconds}ms")

    def throttle(self, milliseconds: int) -> Trigger:
        return self._add(f"throttle:{milliseconds}ms")

    def once(self) -> Trigger:
        return self._add("once")

    def from_(self, selector: str) -> Trigger:
        """Listen on another element (``from:<selector>``)."""
        return self._add(f"from:{selector}")

    def target(self, selector: str) -> Trigger:
        return self._add(f"target:{selector}")

    def consume(self) -> Trigger:
        return self._add("consume")

    def queue(self, strategy: str) -> Trigger:
        """``first``, ``last``, ``all`` or ``none``."""
        return self._add(f"queue:{strategy}")

    def threshold(self, value: float) -> Trigger:
        return self._add(f"threshold:{value}")

    def root(self, selector: str) -> Trigger:
        return self._add(f"root:{selector}")

    def condition(self, expression: str) -> Trigger:
        """JavaScript filter, e.g. ``target.value.length >= 2``."""
        self.expression = expression
        return self

    def __str__(self) -> str:
        text = " ".join([self.event, *self.modifiers])
        if self.expression is not None:
            text += f"[{self.expression}]"
        return text

    def __repr__(self) -> str:
        return f"Trigger({str(self)!r})"


# =============================================================================
# Attributes
# =============================================================================


def _attribute_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Mapping):
        return json.dumps(dict(value))
    return str(value)


class HtmxAttributes:
    """Fluent builder for an element's ``hx-*`` attributes.

    Keys are stored without the ``hx-`` prefix; ``as_dict`` adds it.
    Setting the same attribute twice keeps the last value.
    """

    def __init__(self) -> None:
        self._options: dict[str, Any] = {}

    @classmethod
    def create(cls) -> HtmxAttributes:
        return cls()

    def set(self, key: str, value: Any) -> HtmxAttributes:
        """Set a raw attribute (``key`` without the ``hx-`` prefix)."""
        self._options[key] = value
        return self

    # -- requests -------------------------------------------------------------

    def get(self, url: str) -> HtmxAttributes:
        return self.set("get", url)

    def post(self, url: str) -> HtmxAttributes:
        return self.set("post", url)

    def put(self, url: str) -> HtmxAttributes:
        return self.set("put", url)

    def patch(self, url: str) -> HtmxAttributes:
        return self.set("patch", url)

    def delete(self, url: str) -> HtmxAttributes:
        return self.set("delete", url)

    # -- core -----------------------------------------------------------------

    def trigger(self, trigger: str | Trigger) -> HtmxAttributes:
        return self.set("trigger", str(trigger))

    def target(self, selector: str) -> HtmxAttributes:
        """``#results``, ``closest tr``, ``find .content`` ..."""
        return self.set("target", selector)

    def swap(self, style: SwapStyle | str, *modifiers: SwapModifier) -> HtmxAttributes:
        if isinstance(style, SwapStyle) or modifiers:
            return self.set("swap", reswap_value(style, *modifiers))
        return self.set("swap", style)

    def indicator(self, selector: str) -> HtmxAttributes:
        return self.set("indicator", selector)

    # -- request modifiers ----------------------------------------------------

    def include(self, selector: str) -> HtmxAttributes:
        return self.set("include", selector)

    def vals(self, values: Mapping[str, Any] | str) -> HtmxAttributes:
        return self.set("vals", values)

    def params(self, names: str) -> HtmxAttributes:
        """``*``, ``none``, ``not a,b`` or a comma-separated list."""
        return self.set("params", names)

    def headers(self, headers: Mapping[str, str] | str) -> HtmxAttributes:
        return self.set("headers", headers)

    # -- response handling ----------------------------------------------------

    def select(self, selector: str) -> HtmxAttributes:
        return self.set("select", selector)

    def select_oob(self, selector: str) -> HtmxAttributes:
        return self.set("select-oob", selector)

    # -- user interaction -----------------------------------------------------

    def confirm(self, message: str) -> HtmxAttributes:
        return self.set("confirm", message)

    def prompt(self, message: str) -> HtmxAttributes:
        return self.set("prompt", message)

    # -- history --------------------------------------------------------------

    def push_url(self, url: bool | str = True) -> HtmxAttributes:
        return self.set("push-url", url)

    def replace_url(self, url: bool | str = True) -> HtmxAttributes:
        return self.set("replace-url", url)

    # -- synchronisation ------------------------------------------------------

    def sync(self, strategy: str) -> HtmxAttributes:
        """e.g. ``closest form:abort``"""
        return self.set("sync", strategy)

    def disabled_elt(self, selector: str) -> HtmxAttributes:
        return self.set("disabled-elt", selector)

    # -- event handlers -------------------------------------------------------

    def on(self, event: str, script: str) -> HtmxAttributes:
        """``hx-on::<event>`` handler; ``event`` omits the ``htmx:`` prefix."""
        return self.set(f"on::{event}", script)

    def on_before_request(self, script: str) -> HtmxAttributes:
        return self.on("before-request", script)

    def on_after_request(self, script: str) -> HtmxAttributes:
        return self.on("after-request", script)

    def on_config_request(self, script: str) -> HtmxAttributes:
        return self.on("config-request", script)

    def on_before_swap(self, script: str) -> HtmxAttributes:
        return self.on("before-swap", script)

    def on_after_swap(self, script: str) -> HtmxAttributes:
        return self.on("after-swap", script)

    def on_after_settle(self, script: str) -> HtmxAttributes:
        return self.on("after-settle", script)

    # -- misc -----------------------------------------------------------------

    def boost(self, enabled: bool = True) -> HtmxAttributes:
        return self.set("boost", enabled)

    def ext(self, extensions: str) -> HtmxAttributes:
        return self.set("ext", extensions)

    # -- output ---------------------------------------------------------------

    def to_options(self) -> dict[str, Any]:
        """Raw options, unprefixed and unencoded."""
        return dict(self._options)

    def as_dict(self) -> dict[str, str]:
        """``hx-*`` attributes with string values, ready for ``xmlattr``."""
        return {f"hx-{key}": _attribute_value(value) for key, value in self._options.items()}

    def __bool__(self) -> bool:
        return bool(self._options)

    def __repr__(self) -> str:
        return f"HtmxAttributes({self._options!r})"


def cascading_attributes(
    endpoint: str, target_field: str, *, id_prefix: str = "wizard"
) -> HtmxAttributes:
    """Attributes for a parent select that refreshes a dependent field.

    On change, htmx GETs ``endpoint`` with the parent's value as a query
    parameter and swaps the response over the dependent field's wrapper
    (``#<id_prefix>-<target_field>-wrapper``, as rendered by the packaged
    wizard templates).
    """
    return (
        HtmxAttributes.create()
        .get(endpoint)
        .trigger(Trigger.change())
        .target(f"#{id_prefix}-{target_field}-wrapper")
        .swap(SwapStyle.OUTER_HTML)
    )
