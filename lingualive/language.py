"""Target language state, its persistence, and the selector contract."""

from __future__ import annotations

import json
import pathlib
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from .errors import LinguaLiveError


LANGUAGE_KEY = "page-language"
DEFAULT_LANGUAGE = "es"

ReloadHook = Callable[[str], Any]
ChangeHandler = Callable[[str], Any]


class LanguageStore(ABC):
    """Key/value persistence that outlives a page load."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Persist a value."""


class MemoryLanguageStore(LanguageStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class JsonFileLanguageStore(LanguageStore):
    """Stores values in a small JSON object on disk."""

    def __init__(self, path: pathlib.Path) -> None:
        self.path = pathlib.Path(path).expanduser()

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as exc:
            raise LinguaLiveError(
                f"Could not save the language selection to {self.path}: {exc}"
            ) from exc

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            # A damaged state file behaves like an empty one.
            return {}
        return data if isinstance(data, dict) else {}


def normalise_language(code: str) -> str:
    cleaned = (code or "").strip()
    if not cleaned:
        raise LinguaLiveError("Language code must not be empty.")
    return cleaned


class LanguageState:
    """The active target language.

    Changing the language does not re-translate text in place. It persists
    the new code and hands control to the reload hook, which rebuilds the
    page from its original markup and runs the whole pipeline again.
    """

    def __init__(
        self,
        store: Optional[LanguageStore] = None,
        *,
        default: str = DEFAULT_LANGUAGE,
        key: str = LANGUAGE_KEY,
    ) -> None:
        self.store = store if store is not None else MemoryLanguageStore()
        self.default = normalise_language(default)
        self.key = key
        self._reload_hook: Optional[ReloadHook] = None

    @property
    def is_set(self) -> bool:
        return bool(self.store.get(self.key))

    def get(self) -> str:
        stored = self.store.get(self.key)
        if stored and stored.strip():
            return stored.strip()
        return self.default

    def remember(self, code: str) -> str:
        """Persist a language without triggering a reload."""

        normalized = normalise_language(code)
        self.store.set(self.key, normalized)
        return normalized

    def set(self, code: str) -> str:
        normalized = self.remember(code)
        if self._reload_hook is not None:
            self._reload_hook(normalized)
        return normalized

    def bind_reload(self, hook: Optional[ReloadHook]) -> None:
        self._reload_hook = hook


class LanguageSelector:
    """Minimal stand-in for the page's language picker.

    The rendering lives elsewhere; the core only reads `value` and listens
    for changes.
    """

    def __init__(self, value: Optional[str] = None) -> None:
        self.value = value
        self._handlers: List[ChangeHandler] = []

    def on_change(self, handler: ChangeHandler) -> Callable[[], None]:
        self._handlers.append(handler)

        def _unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return _unsubscribe

    def choose(self, code: str) -> None:
        """Simulate the user picking a language."""

        self.value = code
        for handler in list(self._handlers):
            handler(code)
