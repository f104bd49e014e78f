"""Shared pytest fixtures for mdx-htmx tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from mdx_htmx.config import HtmxConfig, configure
from mdx_htmx.response.renderer import configure_renderer
from mdx_htmx.wizard import (
    InMemorySessionStore,
    SessionWizardStorage,
    VersionMismatchStrategy,
    WizardField,
    WizardHelper,
    WizardRegistry,
    WizardSchema,
    WizardStep,
)


@pytest.fixture(autouse=True)
def _reset_singletons(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Every test starts from default configuration and a fresh renderer."""
    for name in (
        "MDX_HTMX_VARY_HEADER",
        "MDX_HTMX_STRICT_MODE",
        "MDX_HTMX_ONLY_ENABLED",
        "MDX_HTMX_DEFAULT_VIEW_DATA",
        "MDX_HTMX_WIZARD_PREFIX",
    ):
        monkeypatch.delenv(name, raising=False)
    configure(HtmxConfig())
    configure_renderer(None)
    yield
    configure(HtmxConfig())
    configure_renderer(None)


@pytest.fixture
def signup_schema() -> WizardSchema:
    """Three steps; ``company`` only shows for business accounts."""
    return WizardSchema(
        name="signup",
        version=1,
        steps=[
            WizardStep(
                key="account",
                fields=[
                    WizardField(name="email", required=True, input_type="email"),
                    WizardField(
                        name="account_type",
                        required=True,
                        choices=("personal", "business"),
                    ),
                ],
            ),
            WizardStep(
                key="company",
                fields=[WizardField(name="company_name", required=True)],
                when="account_type = business",
            ),
            WizardStep(key="confirm", fields=[WizardField(name="terms", required=True)]),
        ],
        mismatch_strategy=VersionMismatchStrategy.KEEP,
    )


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def helper(store: InMemorySessionStore, signup_schema: WizardSchema) -> WizardHelper:
    return WizardHelper(SessionWizardStorage(store), WizardRegistry([signup_schema]))
