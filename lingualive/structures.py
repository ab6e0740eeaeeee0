"""Core data structures for LinguaLive."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List

from bs4.element import PageElement


TextSetter = Callable[[str], None]


class UnitKind(Enum):
    """The kind of slot a translatable unit writes back to."""

    TEXT_CONTENT = "text"
    PLACEHOLDER = "placeholder"
    VALUE = "value"
    OPTION_LABEL = "option"


@dataclass
class TranslatableUnit:
    """One piece of translatable text tied to exactly one mutable slot."""

    kind: UnitKind
    node: PageElement
    original_text: str
    setter: TextSetter
    location: str

    def apply(self, translated: str) -> None:
        self.setter(translated)


class ResolutionSource(Enum):
    """Where the text returned by the client came from."""

    BLANK = "blank"
    CACHE = "cache"
    REMOTE = "remote"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Resolution:
    text: str
    source: ResolutionSource

    @property
    def failed(self) -> bool:
        return self.source is ResolutionSource.FALLBACK


@dataclass
class UnitOutcome:
    """Per-unit result collected by the dispatcher's join barrier."""

    unit: TranslatableUnit
    resolution: Resolution | None = None
    error: BaseException | None = None
    written: bool = False


@dataclass
class PassReport:
    """Report returned after one extraction, translation and write-back pass."""

    target_language: str
    total_units: int
    translated_units: int
    unchanged_units: int
    fallback_units: int
    failed_writes: int
    elapsed_seconds: float
    error_messages: List[str] = field(default_factory=list)

    @classmethod
    def empty(cls, target_language: str) -> "PassReport":
        return cls(
            target_language=target_language,
            total_units=0,
            translated_units=0,
            unchanged_units=0,
            fallback_units=0,
            failed_writes=0,
            elapsed_seconds=0.0,
        )

    def merge(self, other: "PassReport") -> "PassReport":
        """Combine two reports, e.g. the load pass and later watcher passes."""

        return PassReport(
            target_language=other.target_language,
            total_units=self.total_units + other.total_units,
            translated_units=self.translated_units + other.translated_units,
            unchanged_units=self.unchanged_units + other.unchanged_units,
            fallback_units=self.fallback_units + other.fallback_units,
            failed_writes=self.failed_writes + other.failed_writes,
            elapsed_seconds=self.elapsed_seconds + other.elapsed_seconds,
            error_messages=self.error_messages + other.error_messages,
        )
