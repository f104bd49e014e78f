"""
Jinja2 rendering of htmx responses.

Sets up the Jinja2 environment (project templates first, packaged templates
as fallback, packaged originals always reachable through the ``mdx://``
prefix) and converts ``HtmxResponse`` objects into Starlette responses.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, PrefixLoader, select_autoescape
from starlette.responses import HTMLResponse, Response

from mdx_htmx.config import ResponseConfig, get_config
from mdx_htmx.errors import StrictModeViolationError
from mdx_htmx.request import HtmxDetails
from mdx_htmx.response.builder import HtmxResponse, View

logger = logging.getLogger(__name__)

# Packaged templates
TEMPLATES_DIR = Path(__file__).parent.parent / "templates"


def create_jinja_env(project_templates_dir: Path | None = None) -> Environment:
    """Create and configure the Jinja2 environment.

    Args:
        project_templates_dir: Optional project-level templates. When
            provided they take priority over packaged templates, which stay
            reachable as ``mdx://wizard/step.html``.
    """
    package_loader = FileSystemLoader(str(TEMPLATES_DIR))

    if project_templates_dir and project_templates_dir.is_dir():
        main_loader = ChoiceLoader([FileSystemLoader(str(project_templates_dir)), package_loader])
    else:
        main_loader = ChoiceLoader([package_loader])

    loader = ChoiceLoader([PrefixLoader({"mdx": package_loader}, delimiter="://"), main_loader])

    return Environment(
        loader=loader,
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_view(env: Environment, view: View) -> str:
    """Render a whole template, or a single block of it."""
    if view.template is None:
        return ""
    template = env.get_template(view.template)
    if view.block is None:
        return template.render(**view.data)

    block = template.blocks.get(view.block)
    if block is None:
        raise KeyError(f"Block '{view.block}' not found in template '{view.template}'")
    context = template.new_context(dict(view.data))
    return "".join(block(context))


class ResponseRenderer:
    """Turns ``HtmxResponse`` descriptions into Starlette responses.

    Args:
        env: Jinja2 environment. Defaults to one built from the configured
            ``templates_dir``.
        settings: Response settings. Defaults to the shared configuration.
    """

    def __init__(
        self,
        env: Environment | None = None,
        settings: ResponseConfig | None = None,
    ) -> None:
        self.settings = settings or get_config().response
        if env is None:
            templates_dir = self.settings.templates_dir
            env = create_jinja_env(Path(templates_dir) if templates_dir else None)
        self.env = env

    def render_body(self, htmx_response: HtmxResponse) -> str:
        """Render all views, joined with the configured separator."""
        rendered = [render_view(self.env, view) for view in htmx_response.views if view.has_content]
        return self.settings.views_separator.join(rendered)

    def render(
        self,
        htmx_response: HtmxResponse,
        htmx: HtmxDetails | None = None,
    ) -> Response:
        """Render to an ``HTMLResponse``.

        Raises:
            StrictModeViolationError: strict mode is on and ``htmx`` says the
                request was not sent by htmx.
        """
        if self.settings.strict_mode and htmx is not None and not htmx.is_htmx:
            raise StrictModeViolationError("HtmxResponse returned for a non-htmx request")

        headers: dict[str, str] = htmx_response.headers.as_dict()
        if self.settings.vary_header:
            headers["Vary"] = "HX-Request"

        if not htmx_response.views:
            return Response(status_code=htmx_response.status_code, headers=headers)

        content = self.render_body(htmx_response)
        logger.debug(
            "Rendered %d view(s) with status %d",
            len(htmx_response.views),
            htmx_response.status_code,
        )
        return HTMLResponse(content=content, status_code=htmx_response.status_code, headers=headers)


# Module-level singleton
_renderer: ResponseRenderer | None = None


def get_renderer() -> ResponseRenderer:
    """Get the shared renderer (lazy singleton)."""
    global _renderer
    if _renderer is None:
        _renderer = ResponseRenderer()
    return _renderer


def configure_renderer(renderer: ResponseRenderer | None) -> None:
    """Replace (or with ``None`` reset) the shared renderer."""
    global _renderer
    _renderer = renderer


def render_fragment(template_name: str, **kwargs: Any) -> str:
    """Render an HTML fragment with the shared environment."""
    return get_renderer().env.get_template(template_name).render(**kwargs)
