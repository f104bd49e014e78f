"""Tests for htmx response header helpers."""

from __future__ import annotations

import json

import pytest

from mdx_htmx.response.headers import (
    HtmxResponseHeader,
    HtmxResponseHeaders,
    Scroll,
    ScrollingDirection,
    SettleDelay,
    Show,
    SwapDelay,
    SwapStyle,
    Transition,
    encode_trigger,
    reswap_value,
)


class TestSwapModifiers:
    def test_scroll(self) -> None:
        assert str(Scroll(ScrollingDirection.TOP)) == "scroll:top"
        assert str(Scroll(ScrollingDirection.BOTTOM, "#list")) == "scroll:#list:bottom"

    def test_show(self) -> None:
        assert str(Show(ScrollingDirection.TOP)) == "show:top"
        assert str(Show(ScrollingDirection.TOP, "window")) == "show:window:top"

    def test_transition(self) -> None:
        assert str(Transition()) == "transition:true"
        assert str(Transition(enabled=False)) == "transition:false"

    def test_delays(self) -> None:
        assert str(SwapDelay(100)) == "swap:100ms"
        assert str(SettleDelay(20)) == "settle:20ms"

    def test_reswap_value(self) -> None:
        value = reswap_value(SwapStyle.INNER_HTML, Show(ScrollingDirection.TOP), SwapDelay(50))
        assert value == "innerHTML show:top swap:50ms"

    def test_reswap_value_from_string(self) -> None:
        assert reswap_value("outerHTML") == "outerHTML"

    def test_reswap_rejects_unknown_style(self) -> None:
        with pytest.raises(ValueError):
            reswap_value("sideways")


class TestEncodeTrigger:
    def test_string_passthrough(self) -> None:
        assert encode_trigger("saved") == "saved"

    def test_list_of_names(self) -> None:
        assert encode_trigger(["saved", "closeModal"]) == "saved, closeModal"

    def test_mapping_is_json(self) -> None:
        encoded = encode_trigger({"showMessage": {"level": "info", "text": "Saved"}})
        assert json.loads(encoded) == {"showMessage": {"level": "info", "text": "Saved"}}


class TestHtmxResponseHeaders:
    def test_add_returns_new_collection(self) -> None:
        empty = HtmxResponseHeaders()
        one = empty.add(HtmxResponseHeader.REDIRECT, "/done")
        assert len(empty) == 0
        assert len(one) == 1
        assert one.get("HX-Redirect") == "/done"

    def test_add_accepts_raw_names(self) -> None:
        headers = HtmxResponseHeaders().add("HX-Retarget", "#main")
        assert HtmxResponseHeader.RETARGET in headers
        assert headers.as_dict() == {"HX-Retarget": "#main"}

    def test_latest_value_wins(self) -> None:
        headers = (
            HtmxResponseHeaders()
            .add(HtmxResponseHeader.TRIGGER, "a")
            .add(HtmxResponseHeader.PUSH_URL, "/x")
            .add(HtmxResponseHeader.TRIGGER, "b")
        )
        assert headers.as_dict() == {"HX-Trigger": "b", "HX-Push-Url": "/x"}

    def test_unknown_header_rejected(self) -> None:
        with pytest.raises(ValueError):
            HtmxResponseHeaders().add("X-Custom", "1")

    def test_equality(self) -> None:
        a = HtmxResponseHeaders().add(HtmxResponseHeader.REFRESH, "true")
        b = HtmxResponseHeaders().add("HX-Refresh", "true")
        assert a == b
        assert a != HtmxResponseHeaders()
