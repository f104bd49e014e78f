"""
htmx response model and fluent builder.

An ``HtmxResponse`` is a framework-neutral description of what to send back:
a status code, zero or more views (template or template block plus data)
and htmx headers. ``ResponseRenderer`` turns it into a Starlette response.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from mdx_htmx.errors import BlockCannotBeSetWithoutTemplateError, ReservedViewDataError
from mdx_htmx.response.headers import (
    HtmxResponseHeader,
    HtmxResponseHeaders,
    SwapModifier,
    SwapStyle,
    TriggerEvents,
    encode_trigger,
    reswap_value,
)

RESULT_VIEW_PARAM = "mdx_htmx_result"
IS_HTMX_REQUEST_VIEW_PARAM = "mdx_is_htmx_request"


class Result(StrEnum):
    """Outcome exposed to templates as ``mdx_htmx_result``."""

    SUCCESS = "success"
    FAILURE = "failure"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class View:
    """A template (or one block of it) plus its variables."""

    template: str | None = None
    block: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.template and self.block is not None:
            raise BlockCannotBeSetWithoutTemplateError(self.block)

    @classmethod
    def create(
        cls, template: str, block: str | None = None, data: dict[str, Any] | None = None
    ) -> View:
        if template == "":
            return cls()
        return cls(template=template, block=block, data=dict(data or {}))

    @property
    def has_content(self) -> bool:
        return self.template is not None


@dataclass(frozen=True)
class HtmxResponse:
    """Renderable htmx response description."""

    status_code: int = 204
    views: tuple[View, ...] = ()
    headers: HtmxResponseHeaders = field(default_factory=HtmxResponseHeaders)


class HtmxResponseBuilder:
    """Fluent builder for ``HtmxResponse``.

    Example::

        response = (
            HtmxResponseBuilder.create(htmx.is_htmx)
            .success()
            .view("items/list.html", {"items": items})
            .trigger({"itemsLoaded": {"count": len(items)}})
            .build()
        )
    """

    def __init__(
        self,
        from_htmx_request: bool,
        view_data: dict[str, Any] | None = None,
        *,
        default_view_data: bool = True,
    ) -> None:
        self._common_view_data = dict(view_data or {})
        self._set_default_view_data = default_view_data
        self._default_view_data: dict[str, Any] = {
            RESULT_VIEW_PARAM: Result.UNKNOWN,
            IS_HTMX_REQUEST_VIEW_PARAM: from_htmx_request,
        }
        self._headers = HtmxResponseHeaders()
        self._views: list[View] = []
        self._status_code = 204

    @classmethod
    def create(
        cls, from_htmx_request: bool, view_data: dict[str, Any] | None = None
    ) -> HtmxResponseBuilder:
        from mdx_htmx.config import get_config

        return cls(
            from_htmx_request,
            view_data,
            default_view_data=get_config().default_view_data.enabled,
        )

    # -- status ---------------------------------------------------------------

    def status(self, status_code: int, result: Result = Result.UNKNOWN) -> HtmxResponseBuilder:
        self._status_code = status_code
        self._default_view_data[RESULT_VIEW_PARAM] = result
        return self

    def success(self) -> HtmxResponseBuilder:
        return self.status(200, Result.SUCCESS)

    def failure(self, status_code: int = 422) -> HtmxResponseBuilder:
        return self.status(status_code, Result.FAILURE)

    def no_content(self, result: Result = Result.UNKNOWN) -> HtmxResponseBuilder:
        self.clear_views()
        return self.status(204, result)

    # -- views ----------------------------------------------------------------

    def view(
        self,
        template: str,
        view_data: dict[str, Any] | None = None,
        block: str | None = None,
    ) -> HtmxResponseBuilder:
        data = {**self._common_view_data, **(view_data or {})}
        if self._set_default_view_data:
            reserved = set(self._default_view_data) & set(data)
            if reserved:
                raise ReservedViewDataError(
                    f"View data may not override reserved variables: {', '.join(sorted(reserved))}"
                )
            data = {**self._default_view_data, **data}
        self._views.append(View.create(template, block, data))
        return self

    def view_block(
        self, template: str, block: str, view_data: dict[str, Any] | None = None
    ) -> HtmxResponseBuilder:
        return self.view(template, view_data, block)

    def clear_views(self) -> HtmxResponseBuilder:
        self._views = []
        return self

    # -- headers --------------------------------------------------------------

    def header(self, name: HtmxResponseHeader | str, value: str) -> HtmxResponseBuilder:
        self._headers = self._headers.add(name, value)
        return self

    def location(self, url: str) -> HtmxResponseBuilder:
        return self.header(HtmxResponseHeader.LOCATION, url)

    def push_url(self, url: str | bool) -> HtmxResponseBuilder:
        value = url if isinstance(url, str) else str(url).lower()
        return self.header(HtmxResponseHeader.PUSH_URL, value)

    def replace_url(self, url: str) -> HtmxResponseBuilder:
        return self.header(HtmxResponseHeader.REPLACE_URL, url)

    def redirect(self, url: str) -> HtmxResponseBuilder:
        return self.header(HtmxResponseHeader.REDIRECT, url)

    def refresh(self) -> HtmxResponseBuilder:
        return self.header(HtmxResponseHeader.REFRESH, "true")

    def retarget(self, css_selector: str) -> HtmxResponseBuilder:
        return self.header(HtmxResponseHeader.RETARGET, css_selector)

    def reselect(self, css_selector: str) -> HtmxResponseBuilder:
        return self.header(HtmxResponseHeader.RESELECT, css_selector)

    def reswap(self, style: SwapStyle | str, *modifiers: SwapModifier) -> HtmxResponseBuilder:
        return self.header(HtmxResponseHeader.RESWAP, reswap_value(style, *modifiers))

    def trigger(self, events: TriggerEvents) -> HtmxResponseBuilder:
        return self.header(HtmxResponseHeader.TRIGGER, encode_trigger(events))

    def trigger_after_settle(self, events: TriggerEvents) -> HtmxResponseBuilder:
        return self.header(HtmxResponseHeader.TRIGGER_AFTER_SETTLE, encode_trigger(events))

    def trigger_after_swap(self, events: TriggerEvents) -> HtmxResponseBuilder:
        return self.header(HtmxResponseHeader.TRIGGER_AFTER_SWAP, encode_trigger(events))

    def build(self) -> HtmxResponse:
        return HtmxResponse(
            status_code=self._status_code,
            views=tuple(self._views),
            headers=self._headers,
        )
