"""Unit tests for HtmxDetails and the request dependencies."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from mdx_htmx.config import HtmxConfig, HtmxOnlyConfig, configure
from mdx_htmx.request import HtmxDetails, get_htmx, htmx_only, is_htmx_request


def _fake_request(**headers: str) -> SimpleNamespace:
    """Build a minimal request-like object with the given headers."""
    return SimpleNamespace(headers=headers)


class TestFromRequest:
    """HtmxDetails.from_request() parsing."""

    def test_non_htmx_request(self) -> None:
        d = HtmxDetails.from_request(_fake_request())
        assert d.is_htmx is False
        assert d.is_boosted is False
        assert d.wants_partial is False

    def test_plain_htmx_request(self) -> None:
        d = HtmxDetails.from_request(_fake_request(**{"HX-Request": "true"}))
        assert d.is_htmx is True
        assert d.is_boosted is False
        assert d.wants_partial is True

    def test_boosted_request(self) -> None:
        d = HtmxDetails.from_request(_fake_request(**{"HX-Request": "true", "HX-Boosted": "true"}))
        assert d.is_htmx is True
        assert d.is_boosted is True

    def test_history_restore_gets_full_page(self) -> None:
        req = _fake_request(
            **{
                "HX-Request": "true",
                "HX-Boosted": "true",
                "HX-History-Restore-Request": "true",
            }
        )
        d = HtmxDetails.from_request(req)
        assert d.is_history_restore is True
        assert d.wants_partial is False

    def test_current_url_parsed(self) -> None:
        req = _fake_request(
            **{"HX-Request": "true", "HX-Current-URL": "http://localhost:3000/signup"}
        )
        assert HtmxDetails.from_request(req).current_url == "http://localhost:3000/signup"

    def test_prompt_parsed(self) -> None:
        req = _fake_request(**{"HX-Request": "true", "HX-Prompt": "confirm reset"})
        assert HtmxDetails.from_request(req).prompt == "confirm reset"

    def test_target_parsed(self) -> None:
        req = _fake_request(**{"HX-Request": "true", "HX-Target": "#wizard"})
        d = HtmxDetails.from_request(req)
        assert d.target == "#wizard"
        assert d.target_id == "wizard"

    def test_trigger_parsed(self) -> None:
        req = _fake_request(
            **{"HX-Request": "true", "HX-Trigger": "next-btn", "HX-Trigger-Name": "next"}
        )
        d = HtmxDetails.from_request(req)
        assert d.trigger_id == "next-btn"
        assert d.trigger_name == "next"

    def test_other_values_are_false(self) -> None:
        d = HtmxDetails.from_request(_fake_request(**{"HX-Request": "1"}))
        assert d.is_htmx is False

    def test_no_headers_attr(self) -> None:
        """Object without .headers should return empty defaults."""
        d = HtmxDetails.from_request(object())
        assert d.is_htmx is False
        assert d.target == ""

    def test_frozen(self) -> None:
        d = HtmxDetails(is_htmx=True)
        with pytest.raises(AttributeError):
            d.is_htmx = False  # type: ignore[misc]


class TestIsHtmxRequest:
    def test_delegates_to_htmx_details(self) -> None:
        assert is_htmx_request(_fake_request(**{"HX-Request": "true"})) is True
        assert is_htmx_request(_fake_request()) is False
        assert is_htmx_request(object()) is False


def _app() -> FastAPI:
    app = FastAPI()

    @app.get("/details")
    def details(htmx: HtmxDetails = Depends(get_htmx)) -> dict[str, object]:
        return {"is_htmx": htmx.is_htmx, "target": htmx.target}

    @app.get("/fragment", dependencies=[Depends(htmx_only())])
    def fragment() -> dict[str, str]:
        return {"ok": "yes"}

    @app.get("/forbidden-fragment", dependencies=[Depends(htmx_only(403, "htmx only"))])
    def forbidden_fragment() -> dict[str, str]:
        return {"ok": "yes"}

    return app


class TestDependencies:
    def test_get_htmx_parses_headers(self) -> None:
        client = TestClient(_app())
        resp = client.get("/details", headers={"HX-Request": "true", "HX-Target": "list"})
        assert resp.json() == {"is_htmx": True, "target": "list"}

    def test_htmx_only_rejects_plain_requests(self) -> None:
        client = TestClient(_app())
        resp = client.get("/fragment")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Not Found"

    def test_htmx_only_allows_htmx_requests(self) -> None:
        client = TestClient(_app())
        resp = client.get("/fragment", headers={"HX-Request": "true"})
        assert resp.status_code == 200

    def test_htmx_only_explicit_status_and_message(self) -> None:
        client = TestClient(_app())
        resp = client.get("/forbidden-fragment")
        assert resp.status_code == 403
        assert resp.json()["detail"] == "htmx only"

    def test_htmx_only_uses_configured_status(self) -> None:
        configure(HtmxConfig(htmx_only=HtmxOnlyConfig(status_code=400, message="Bad")))
        client = TestClient(_app())
        resp = client.get("/fragment")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Bad"

    def test_htmx_only_disabled(self) -> None:
        configure(HtmxConfig(htmx_only=HtmxOnlyConfig(enabled=False)))
        client = TestClient(_app())
        assert client.get("/fragment").status_code == 200
