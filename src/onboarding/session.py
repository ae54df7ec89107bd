"""
Session Identity.

Every step submission is keyed by an anonymous session id that lives in
short-lived per-tab storage (sessionStorage in the browser, a browser-session
cookie over HTTP). The id is created on first visit and reused until that
storage goes away.
"""

import logging
import uuid
from collections.abc import MutableMapping
from typing import Protocol

logger = logging.getLogger(__name__)

SESSION_STORAGE_KEY = "dazlance_form_session_id"


class SessionStorage(Protocol):
    """Key/value storage scoped to one browsing context."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemorySessionStorage:
    """Dict-backed storage. One instance per browsing context."""

    def __init__(self, data: MutableMapping[str, str] | None = None):
        self._data = data if data is not None else {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class CookieSessionStorage:
    """
    Storage over request/response cookies.

    Reads from the incoming request cookies; writes are collected in
    `pending` so the web layer can set them on the response without a
    Max-Age (the cookie then dies with the browser session).
    """

    def __init__(self, cookies: MutableMapping[str, str] | None = None):
        self._cookies = dict(cookies or {})
        self.pending: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.pending.get(key) or self._cookies.get(key)

    def set(self, key: str, value: str) -> None:
        self.pending[key] = value


def new_session_id() -> str:
    """Generate a cryptographically random session id (UUID4)."""
    return str(uuid.uuid4())


def get_or_create_session_id(
    storage: SessionStorage,
    key: str = SESSION_STORAGE_KEY,
) -> str:
    """
    Return the session id stored in `storage`, creating one if absent.

    A storage read failure falls back to a fresh id. The fallback is logged
    so a silently reset session can be traced.
    """
    try:
        existing = storage.get(key)
    except Exception as e:
        logger.warning(f"Session storage read failed, issuing a new session id: {e}")
        existing = None

    if existing:
        return existing

    session_id = new_session_id()
    try:
        storage.set(key, session_id)
    except Exception as e:
        logger.warning(f"Session storage write failed, id will not survive reload: {e}")
    return session_id
