"""
mdx-htmx: htmx integration for FastAPI, with schema-versioned form wizards.

- ``mdx_htmx.request``: parse htmx request headers (``get_htmx``, ``htmx_only``)
- ``mdx_htmx.attributes``: build ``hx-*`` element attributes (``HtmxAttributes``, ``Trigger``)
- ``mdx_htmx.response``: build and render htmx responses
- ``mdx_htmx.wizard``: multi-step wizards with session storage and migration
"""

from mdx_htmx._version import __version__
from mdx_htmx.attributes import HtmxAttributes, Trigger, cascading_attributes
from mdx_htmx.config import HtmxConfig, configure, get_config, load_config
from mdx_htmx.errors import (
    ErrorContext,
    HtmxError,
    NavigationError,
    NoPriorStepError,
    StepMismatchError,
    ValidationError,
    WizardFlowError,
)
from mdx_htmx.request import HtmxDetails, get_htmx, htmx_only, is_htmx_request
from mdx_htmx.response import HtmxResponse, HtmxResponseBuilder, ResponseRenderer, View

__all__ = [
    "ErrorContext",
    "HtmxConfig",
    "HtmxDetails",
    "HtmxAttributes",
    "HtmxError",
    "HtmxResponse",
    "HtmxResponseBuilder",
    "NavigationError",
    "NoPriorStepError",
    "ResponseRenderer",
    "StepMismatchError",
    "Trigger",
    "ValidationError",
    "View",
    "WizardFlowError",
    "__version__",
    "cascading_attributes",
    "configure",
    "get_config",
    "get_htmx",
    "htmx_only",
    "is_htmx_request",
    "load_config",
]
