"""In-process translation cache."""

from __future__ import annotations

from typing import Dict, Optional, Tuple


CacheKey = Tuple[str, str]


class TranslationCache:
    """Maps (source text, target language) to translated text.

    Keys use the text exactly as observed, whitespace included. Entries
    are never evicted; the last write for a key wins.
    """

    def __init__(self) -> None:
        self._entries: Dict[CacheKey, str] = {}

    def get(self, text: str, target_language: str) -> Optional[str]:
        return self._entries.get((text, target_language))

    def put(self, text: str, target_language: str, translated: str) -> None:
        self._entries[(text, target_language)] = translated

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
