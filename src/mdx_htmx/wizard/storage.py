"""
Wizard state persistence.

Two layers:

- ``SessionStore``: a session-scoped byte store (``get`` / ``set`` /
  ``remove``). Implementations adapt Starlette's ``request.session``, a
  directory of files, or a plain dict.
- ``WizardStorage``: loads and saves ``WizardState`` objects by wizard id.
  ``SessionWizardStorage`` encodes states as JSON into a ``SessionStore``.

No locking is done anywhere: two overlapping requests for the same wizard
both load, both save, and the last save wins. Callers that need more must
wrap the storage with a compare-and-swap of their own.
"""

from __future__ import annotations

import hashlib
import logging
import time
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from mdx_htmx.errors import StateDecodeError
from mdx_htmx.wizard.migration import VersionMismatchStrategy, migrate_state
from mdx_htmx.wizard.schema import WizardSchema
from mdx_htmx.wizard.state import WizardState

logger = logging.getLogger(__name__)

# File-backed sessions expire after 7 days of inactivity
_MAX_AGE_SECONDS = 7 * 24 * 3600


# =============================================================================
# Session stores
# =============================================================================


@runtime_checkable
class SessionStore(Protocol):
    """Session-scoped key/value store of raw bytes."""

    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, value: bytes) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemorySessionStore:
    """Dict-backed session store (tests and single-process use)."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}

    def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class StarletteSessionStore:
    """Adapter over Starlette's ``request.session``.

    Requires ``SessionMiddleware``. The session is serialised as JSON into a
    signed cookie, so values are kept as text.

    Args:
        session: ``request.session`` (or any mutable mapping of str values).
    """

    def __init__(self, session: MutableMapping[str, Any]) -> None:
        self._session = session

    @classmethod
    def from_request(cls, request: Any) -> StarletteSessionStore:
        return cls(request.session)

    def get(self, key: str) -> bytes | None:
        value = self._session.get(key)
        if value is None:
            return None
        if isinstance(value, bytes):
            return value
        return str(value).encode("utf-8")

    def set(self, key: str, value: bytes) -> None:
        self._session[key] = value.decode("utf-8")

    def remove(self, key: str) -> None:
        self._session.pop(key, None)


class FileSessionStore:
    """One file per key under a directory.

    Survives cookie expiry and server restarts. Keys are hashed into file
    names, so they can safely contain session ids or user emails.

    Args:
        directory: Storage directory (created on first write). Defaults to
            ``wizard.storage_dir`` from the configuration.
        max_age_seconds: Entries untouched for longer are discarded on read.
            ``None`` disables expiry.
    """

    def __init__(
        self,
        directory: Path | None = None,
        max_age_seconds: float | None = _MAX_AGE_SECONDS,
    ) -> None:
        if directory is None:
            from mdx_htmx.config import get_config

            directory = Path(get_config().wizard.storage_dir)
        self._dir = directory
        self._max_age = max_age_seconds

    def _path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:24]
        return self._dir / f"{digest}.json"

    def get(self, key: str) -> bytes | None:
        path = self._path(key)
        if not path.exists():
            return None
        if self._max_age is not None and time.time() - path.stat().st_mtime > self._max_age:
            logger.debug("Session entry expired: %s", path.name)
            path.unlink(missing_ok=True)
            return None
        return path.read_bytes()

    def set(self, key: str, value: bytes) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        path.write_bytes(value)
        logger.debug("Saved session entry: %s", path.name)

    def remove(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
            logger.debug("Deleted session entry: %s", path.name)


# =============================================================================
# Wizard storage
# =============================================================================


class WizardStorage(Protocol):
    """Persistence boundary for wizard states."""

    def load(self, wizard_id: str) -> WizardState | None: ...

    def save(self, wizard_id: str, state: WizardState) -> None: ...

    def clear(self, wizard_id: str) -> None: ...


class SessionWizardStorage:
    """Stores wizard states in a ``SessionStore`` under ``{prefix}{wizard_id}``.

    A payload that cannot be decoded is logged and treated as absent, so a
    corrupt session restarts the wizard instead of breaking the page.
    """

    def __init__(self, store: SessionStore, prefix: str | None = None) -> None:
        if prefix is None:
            from mdx_htmx.config import get_config

            prefix = get_config().wizard.session_prefix
        self.store = store
        self.prefix = prefix

    def key_for(self, wizard_id: str) -> str:
        return f"{self.prefix}{wizard_id}"

    def load(self, wizard_id: str) -> WizardState | None:
        raw = self.store.get(self.key_for(wizard_id))
        if raw is None:
            return None
        try:
            return WizardState.from_bytes(raw)
        except StateDecodeError:
            logger.warning("Corrupt wizard state for '%s', ignoring it", wizard_id)
            return None

    def save(self, wizard_id: str, state: WizardState) -> None:
        self.store.set(self.key_for(wizard_id), state.to_bytes())
        logger.debug("Saved wizard '%s' at step %r", wizard_id, state.current_step_key)

    def clear(self, wizard_id: str) -> None:
        self.store.remove(self.key_for(wizard_id))
        logger.debug("Cleared wizard '%s'", wizard_id)


class VersionedWizardStorage:
    """Decorator adding schema-aware loading to any ``WizardStorage``.

    ``load_with_schema`` returns a state valid for the given schema, or
    ``None`` when there is nothing stored or the RESET strategy applies.
    """

    def __init__(self, inner: WizardStorage) -> None:
        self.inner = inner

    def load(self, wizard_id: str) -> WizardState | None:
        return self.inner.load(wizard_id)

    def load_with_schema(self, wizard_id: str, schema: WizardSchema) -> WizardState | None:
        state = self.inner.load(wizard_id)
        if state is None or state.schema_version == schema.version:
            return state
        if schema.mismatch_strategy is VersionMismatchStrategy.RESET:
            return None
        return migrate_state(state, schema)

    def save(self, wizard_id: str, state: WizardState) -> None:
        self.inner.save(wizard_id, state)

    def clear(self, wizard_id: str) -> None:
        self.inner.clear(wizard_id)
