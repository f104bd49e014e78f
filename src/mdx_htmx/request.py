"""
htmx request parsing.

``HtmxDetails`` is the typed view of the ``HX-*`` request headers. The
FastAPI dependencies at the bottom of the module make it injectable into
route handlers::

    @router.get("/items")
    async def items(htmx: HtmxDetails = Depends(get_htmx)) -> HTMLResponse: ...
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from fastapi import HTTPException, Request

from mdx_htmx.config import get_config


class HtmxRequestHeader(StrEnum):
    """Request headers sent by htmx (https://htmx.org/reference/#request_headers)."""

    REQUEST = "HX-Request"
    BOOSTED = "HX-Boosted"
    CURRENT_URL = "HX-Current-URL"
    HISTORY_RESTORE_REQUEST = "HX-History-Restore-Request"
    PROMPT = "HX-Prompt"
    TARGET = "HX-Target"
    TRIGGER_NAME = "HX-Trigger-Name"
    TRIGGER = "HX-Trigger"


@dataclass(frozen=True, slots=True)
class HtmxDetails:
    """Parsed htmx request headers.

    Missing headers map to ``False`` / ``""`` so handlers never deal with
    ``None``.
    """

    is_htmx: bool = False
    is_boosted: bool = False
    current_url: str = ""
    is_history_restore: bool = False
    prompt: str = ""
    target: str = ""
    trigger_id: str = ""
    trigger_name: str = ""

    @classmethod
    def from_headers(cls, headers: Any) -> HtmxDetails:
        """Construct from any mapping with a case-insensitive ``get``."""
        h = headers
        return cls(
            is_htmx=h.get(HtmxRequestHeader.REQUEST) == "true",
            is_boosted=h.get(HtmxRequestHeader.BOOSTED) == "true",
            current_url=h.get(HtmxRequestHeader.CURRENT_URL, ""),
            is_history_restore=h.get(HtmxRequestHeader.HISTORY_RESTORE_REQUEST) == "true",
            prompt=h.get(HtmxRequestHeader.PROMPT, ""),
            target=h.get(HtmxRequestHeader.TARGET, ""),
            trigger_id=h.get(HtmxRequestHeader.TRIGGER, ""),
            trigger_name=h.get(HtmxRequestHeader.TRIGGER_NAME, ""),
        )

    @classmethod
    def from_request(cls, request: Any) -> HtmxDetails:
        """Construct from a Starlette/FastAPI request."""
        if not hasattr(request, "headers"):
            return cls()
        return cls.from_headers(request.headers)

    @property
    def wants_partial(self) -> bool:
        """htmx request that is NOT a history restore -> render without layout."""
        return self.is_htmx and not self.is_history_restore

    @property
    def target_id(self) -> str:
        """Target element id without a leading ``#``."""
        return self.target.removeprefix("#")


# Request state attribute used to share the parsed details within a request
REQUEST_STATE_ATTRIBUTE = "mdx_htmx"


def get_htmx(request: Request) -> HtmxDetails:
    """FastAPI dependency returning the parsed htmx headers (cached per request)."""
    cached = getattr(request.state, REQUEST_STATE_ATTRIBUTE, None)
    if isinstance(cached, HtmxDetails):
        return cached
    details = HtmxDetails.from_request(request)
    setattr(request.state, REQUEST_STATE_ATTRIBUTE, details)
    return details


def htmx_only(
    status_code: int | None = None,
    message: str | None = None,
) -> Callable[[Request], HtmxDetails]:
    """Build a dependency that rejects requests not sent by htmx.

    Status code and message default to the ``[htmx_only]`` configuration.
    When the feature is disabled in configuration the dependency only
    parses headers.

    Usage::

        @router.get("/fragment", dependencies=[Depends(htmx_only())])
    """

    def dependency(request: Request) -> HtmxDetails:
        details = get_htmx(request)
        settings = get_config().htmx_only
        if settings.enabled and not details.is_htmx:
            raise HTTPException(
                status_code=status_code or settings.status_code,
                detail=message or settings.message,
            )
        return details

    return dependency


def is_htmx_request(request: Any) -> bool:
    """Check if the incoming request is from htmx."""
    return HtmxDetails.from_request(request).is_htmx
