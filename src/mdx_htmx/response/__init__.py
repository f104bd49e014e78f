"""htmx response headers, builder and rendering."""

from mdx_htmx.response.builder import (
    IS_HTMX_REQUEST_VIEW_PARAM,
    RESULT_VIEW_PARAM,
    HtmxResponse,
    HtmxResponseBuilder,
    Result,
    View,
)
from mdx_htmx.response.headers import (
    HtmxResponseHeader,
    HtmxResponseHeaders,
    Scroll,
    ScrollingDirection,
    SettleDelay,
    Show,
    SwapDelay,
    SwapModifier,
    SwapStyle,
    Transition,
    encode_trigger,
    reswap_value,
)
from mdx_htmx.response.renderer import ResponseRenderer, create_jinja_env, render_view

__all__ = [
    "IS_HTMX_REQUEST_VIEW_PARAM",
    "RESULT_VIEW_PARAM",
    "HtmxResponse",
    "HtmxResponseBuilder",
    "HtmxResponseHeader",
    "HtmxResponseHeaders",
    "ResponseRenderer",
    "Result",
    "Scroll",
    "ScrollingDirection",
    "SettleDelay",
    "Show",
    "SwapDelay",
    "SwapModifier",
    "SwapStyle",
    "Transition",
    "View",
    "create_jinja_env",
    "encode_trigger",
    "render_view",
    "reswap_value",
]
