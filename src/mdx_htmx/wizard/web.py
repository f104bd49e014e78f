"""
FastAPI glue for wizards.

``build_step_response`` maps whatever a ``WizardHelper`` operation returned
to an ``HtmxResponse``:

- ``StepView``: 200 with the step template.
- ``ValidationError``: 422 with the step re-rendered, submitted values and
  errors filled in.
- ``StepMismatchError``: 200 with the *current* step, retargeted at the
  wizard container so a stale page is replaced wholesale.
- ``NoPriorStepError`` / ``NavigationError``: 200 with the current step and
  a ``wizard:refused`` event carrying the reason.
- ``Completion``: redirect when a URL is given, otherwise the completion
  template, otherwise 204.

``build_field_response`` renders a single field from
``WizardHelper.field_view``, the target of ``cascading_attributes``.

Example::

    @app.post("/signup")
    async def signup(request: Request, htmx: HtmxDetails = Depends(get_htmx)):
        helper = session_wizard_helper(request, registry)
        form = dict(await request.form())
        result = helper.submit_step("signup", form.pop("_step", ""), form)
        response = build_step_response(
            htmx,
            result,
            current=helper.get_current_step("signup"),
            action="/signup",
            completion_redirect="/welcome",
        )
        return get_renderer().render(response, htmx)
"""

from __future__ import annotations

import logging
from typing import Any

from mdx_htmx.errors import (
    NavigationError,
    NoPriorStepError,
    StepMismatchError,
    ValidationError,
    WizardFlowError,
)
from mdx_htmx.request import HtmxDetails
from mdx_htmx.response.builder import HtmxResponse, HtmxResponseBuilder, Result
from mdx_htmx.response.headers import SwapStyle
from mdx_htmx.wizard.helper import WizardHelper, WizardRegistry
from mdx_htmx.wizard.storage import SessionWizardStorage, StarletteSessionStore
from mdx_htmx.wizard.views import Completion, FieldView, StepView

logger = logging.getLogger(__name__)

DEFAULT_STEP_TEMPLATE = "mdx://wizard/step.html"
DEFAULT_FIELD_TEMPLATE = "mdx://wizard/field.html"
DEFAULT_TARGET_ID = "wizard"

STEP_EVENT = "wizard:step"
STALE_EVENT = "wizard:stale"
REFUSED_EVENT = "wizard:refused"
COMPLETED_EVENT = "wizard:completed"


def session_wizard_helper(request: Any, registry: WizardRegistry) -> WizardHelper:
    """Helper bound to the request's Starlette session."""
    store = StarletteSessionStore.from_request(request)
    return WizardHelper(SessionWizardStorage(store), registry)


def _step_data(
    view: StepView,
    *,
    action: str,
    target_id: str,
    values: dict[str, Any] | None = None,
    errors: dict[str, list[str]] | None = None,
) -> dict[str, Any]:
    return {
        "step": view,
        "values": {**view.values, **(values or {})},
        "errors": errors or {},
        "action": action,
        "target_id": target_id,
    }


def build_step_response(
    htmx: HtmxDetails,
    result: StepView | Completion | WizardFlowError,
    template: str = DEFAULT_STEP_TEMPLATE,
    *,
    current: StepView | Completion | None = None,
    action: str = "",
    target_id: str = DEFAULT_TARGET_ID,
    block: str | None = None,
    completion_template: str | None = None,
    completion_redirect: str | None = None,
    view_data: dict[str, Any] | None = None,
) -> HtmxResponse:
    """Describe the response for a wizard operation's result.

    Args:
        htmx: Details of the incoming request.
        result: Return value of a ``WizardHelper`` operation.
        template: Step template; the packaged one by default.
        current: The wizard's current position, needed to re-render after a
            flow error (``helper.get_current_step(wizard_id)``).
        action: URL the step form posts to.
        target_id: Id of the element wrapping the wizard.
        block: Render only this block of ``template``.
        completion_template: Template rendered on completion when no
            redirect is given. Receives ``completion`` and ``data``.
        completion_redirect: URL to send the user to on completion.
        view_data: Extra data for every rendered view.
    """
    builder = HtmxResponseBuilder.create(htmx.is_htmx, view_data)

    match result:
        case StepView():
            data = _step_data(result, action=action, target_id=target_id)
            return (
                builder.success()
                .view(template, data, block)
                .trigger({STEP_EVENT: {"wizard": result.wizard, "step": result.key}})
                .build()
            )

        case Completion():
            return _completion_response(
                builder, htmx, result, completion_template, completion_redirect
            )

        case ValidationError():
            view = _require_step(current, result)
            data = _step_data(
                view,
                action=action,
                target_id=target_id,
                values=result.values,
                errors=result.field_errors,
            )
            return builder.failure().view(template, data, block).build()

        case StepMismatchError():
            if isinstance(current, Completion):
                return _completion_response(
                    builder, htmx, current, completion_template, completion_redirect
                )
            view = _require_step(current, result)
            logger.debug("Stale wizard page, re-rendering step '%s'", view.key)
            return (
                builder.success()
                .view(template, _step_data(view, action=action, target_id=target_id), block)
                .retarget(f"#{target_id}")
                .reswap(SwapStyle.OUTER_HTML)
                .trigger(
                    {STALE_EVENT: {"expected": result.expected, "submitted": result.submitted}}
                )
                .build()
            )

        case NoPriorStepError() | NavigationError():
            view = _require_step(current, result)
            return (
                builder.success()
                .view(template, _step_data(view, action=action, target_id=target_id), block)
                .trigger({REFUSED_EVENT: {"message": result.message}})
                .build()
            )

        case _:
            raise TypeError(f"Unsupported wizard result: {type(result).__name__}")


def _require_step(current: StepView | Completion | None, error: WizardFlowError) -> StepView:
    if not isinstance(current, StepView):
        raise ValueError(f"The current step is needed to render {type(error).__name__}")
    return current


def _completion_response(
    builder: HtmxResponseBuilder,
    htmx: HtmxDetails,
    completion: Completion,
    template: str | None,
    redirect: str | None,
) -> HtmxResponse:
    builder.trigger({COMPLETED_EVENT: {"wizard": completion.wizard}})
    if redirect:
        if htmx.is_htmx:
            return builder.success().redirect(redirect).build()
        return builder.status(303, Result.SUCCESS).header("Location", redirect).build()
    if template:
        data = {"completion": completion, "data": completion.data}
        return builder.success().view(template, data).build()
    return builder.no_content(Result.SUCCESS).build()


def build_field_response(
    htmx: HtmxDetails,
    view: FieldView,
    template: str = DEFAULT_FIELD_TEMPLATE,
    *,
    view_data: dict[str, Any] | None = None,
) -> HtmxResponse:
    """Describe the response re-rendering one field (its wrapper element)."""
    data = {
        "field": view.field,
        "value": view.value,
        "options": view.options,
        "field_errors": [],
    }
    builder = HtmxResponseBuilder.create(htmx.is_htmx, view_data)
    return builder.success().view(template, data).build()
