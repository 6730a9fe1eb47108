"""
Session State

Holds the signed-in user for the lifetime of the app and mirrors it to
a local-storage backend, so a reload restores the session.

DESIGN DECISION: The session is an explicit object handed to whoever
needs it, not a module-level singleton. Tests build their own with an
in-memory storage backend.

Subscribers are called immediately with the current value and then on
every change, the way a behaviour subject works.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional

import structlog
from pydantic import ValidationError

from finance_tracker.models.records import User


logger = structlog.get_logger(__name__)

Listener = Callable[[Optional[User]], None]


# =============================================================================
# LOCAL STORAGE BACKENDS
# =============================================================================

class LocalStorage(ABC):
    """String key to string value store, like browser local storage."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        pass


class InMemoryLocalStorage(LocalStorage):
    def __init__(self, items: Optional[dict[str, str]] = None):
        self._items: dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileLocalStorage(LocalStorage):
    """
    Local storage kept in a single JSON file.

    A missing or unreadable file counts as empty storage. Writes go to a
    temporary file that replaces the original.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read()
        items[key] = value
        self._write(items)

    def remove_item(self, key: str) -> None:
        items = self._read()
        if key in items:
            del items[key]
            self._write(items)

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("local_storage_unreadable", path=str(self._path), error=str(e))
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, items: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f)
            os.replace(tmp_name, self._path)
        except OSError:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise


# =============================================================================
# SESSION STATE
# =============================================================================

class SessionState:
    """
    The currently signed-in user.

    Usage:
        session = SessionState(InMemoryLocalStorage())
        unsubscribe = session.subscribe(print)
        session.set(user)
        unsubscribe()
    """

    def __init__(self, storage: LocalStorage, key: str = "currentUser"):
        self._storage = storage
        self._key = key
        self._listeners: list[Listener] = []
        self._current: Optional[User] = self._restore()

    def _restore(self) -> Optional[User]:
        raw = self._storage.get_item(self._key)
        if raw is None:
            return None
        try:
            user = User.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("stored_session_discarded", key=self._key, error_count=e.error_count())
            self._storage.remove_item(self._key)
            return None
        logger.info("session_restored", user_id=user.id)
        return user

    def get(self) -> Optional[User]:
        return self._current

    @property
    def is_authenticated(self) -> bool:
        return self._current is not None

    def set(self, user: User) -> None:
        """Persist and publish a signed-in user."""
        self._storage.set_item(self._key, json.dumps(user.to_wire()))
        self._publish(user)

    def clear(self) -> None:
        """Remove the stored user and publish no session."""
        self._storage.remove_item(self._key)
        self._publish(None)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener and call it at once with the current value.

        Returns a callable that removes the listener. Calling it twice
        is harmless.
        """
        self._listeners.append(listener)
        listener(self._current)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)

    def _publish(self, user: Optional[User]) -> None:
        self._current = user
        for listener in list(self._listeners):
            listener(user)
