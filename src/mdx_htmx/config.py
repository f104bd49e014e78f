"""
Configuration for mdx-htmx.

Settings are read from ``htmx.toml`` or the ``[tool.mdx-htmx]`` table of
``pyproject.toml``. A handful of flags can be overridden with ``MDX_HTMX_*``
environment variables, which win over the file.

Example ``htmx.toml``::

    [htmx_only]
    status_code = 403
    message = "htmx requests only"

    [response]
    vary_header = true
    strict_mode = false

    [wizard]
    session_prefix = "wizard_"
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "htmx.toml"
PYPROJECT_TABLE = "mdx-htmx"


@dataclass
class HtmxOnlyConfig:
    """Behaviour of the ``htmx_only`` dependency for non-htmx requests."""

    enabled: bool = True
    status_code: int = 404  # 404, 403 or 400
    message: str = "Not Found"


@dataclass
class DefaultViewDataConfig:
    """Inject ``mdx_htmx_result`` / ``mdx_is_htmx_request`` into views."""

    enabled: bool = True


@dataclass
class ResponseConfig:
    """Response rendering configuration."""

    vary_header: bool = True  # "Vary: HX-Request" for caches
    strict_mode: bool = False  # reject htmx responses to non-htmx requests
    views_separator: str = "\n\n"
    templates_dir: str | None = None  # project templates, searched first


@dataclass
class WizardConfig:
    """Wizard persistence configuration."""

    session_prefix: str = "wizard_"
    storage_dir: str = ".mdx_htmx/wizards"  # FileSessionStore default directory


@dataclass
class HtmxConfig:
    """Top-level mdx-htmx configuration."""

    htmx_only: HtmxOnlyConfig = field(default_factory=HtmxOnlyConfig)
    default_view_data: DefaultViewDataConfig = field(default_factory=DefaultViewDataConfig)
    response: ResponseConfig = field(default_factory=ResponseConfig)
    wizard: WizardConfig = field(default_factory=WizardConfig)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def config_from_dict(data: dict[str, Any]) -> HtmxConfig:
    """Build an HtmxConfig from a parsed TOML mapping."""
    only = data.get("htmx_only", {})
    view_data = data.get("default_view_data", {})
    response = data.get("response", {})
    wizard = data.get("wizard", {})

    status_code = int(only.get("status_code", 404))
    if status_code not in (400, 403, 404):
        logger.warning("Unusual htmx_only.status_code %s (expected 400, 403 or 404)", status_code)

    return HtmxConfig(
        htmx_only=HtmxOnlyConfig(
            enabled=only.get("enabled", True),
            status_code=status_code,
            message=only.get("message", "Not Found"),
        ),
        default_view_data=DefaultViewDataConfig(enabled=view_data.get("enabled", True)),
        response=ResponseConfig(
            vary_header=response.get("vary_header", True),
            strict_mode=response.get("strict_mode", False),
            views_separator=response.get("views_separator", "\n\n"),
            templates_dir=response.get("templates_dir"),
        ),
        wizard=WizardConfig(
            session_prefix=wizard.get("session_prefix", "wizard_"),
            storage_dir=wizard.get("storage_dir", ".mdx_htmx/wizards"),
        ),
    )


def _apply_env_overrides(config: HtmxConfig) -> HtmxConfig:
    config.response.vary_header = _env_bool("MDX_HTMX_VARY_HEADER", config.response.vary_header)
    config.response.strict_mode = _env_bool("MDX_HTMX_STRICT_MODE", config.response.strict_mode)
    config.htmx_only.enabled = _env_bool("MDX_HTMX_ONLY_ENABLED", config.htmx_only.enabled)
    config.default_view_data.enabled = _env_bool(
        "MDX_HTMX_DEFAULT_VIEW_DATA", config.default_view_data.enabled
    )
    prefix = os.environ.get("MDX_HTMX_WIZARD_PREFIX")
    if prefix:
        config.wizard.session_prefix = prefix
    return config


def load_config(path: Path | None = None) -> HtmxConfig:
    """
    Load configuration.

    Args:
        path: Explicit TOML file, or a directory to search. Defaults to the
            current working directory. In a directory ``htmx.toml`` is used
            first, then ``[tool.mdx-htmx]`` in ``pyproject.toml``.

    Returns:
        HtmxConfig with environment overrides applied.
    """
    base = path or Path.cwd()
    data: dict[str, Any] = {}

    if base.is_file():
        raw = tomllib.loads(base.read_text(encoding="utf-8"))
        data = raw
        if base.name == "pyproject.toml":
            data = raw.get("tool", {}).get(PYPROJECT_TABLE, raw)
    elif (base / CONFIG_FILENAME).exists():
        data = tomllib.loads((base / CONFIG_FILENAME).read_text(encoding="utf-8"))
    elif (base / "pyproject.toml").exists():
        raw = tomllib.loads((base / "pyproject.toml").read_text(encoding="utf-8"))
        data = raw.get("tool", {}).get(PYPROJECT_TABLE, {})

    logger.debug("Loaded mdx-htmx config from %s (%d sections)", base, len(data))
    return _apply_env_overrides(config_from_dict(data))


# Module-level singleton
_config: HtmxConfig | None = None


def get_config() -> HtmxConfig:
    """Get the shared configuration.

    Loaded with ``load_config()`` from the working directory on first use.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def configure(config: HtmxConfig) -> None:
    """Replace the shared configuration, typically during app startup."""
    global _config
    _config = config
