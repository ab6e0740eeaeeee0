"""Concurrent translation passes over document subtrees."""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Iterable, List, Optional, Sequence, TypeVar, Union

from bs4.element import PageElement

from .client import TranslationClient
from .errors import ErrorCategory
from .extractor import extract_display_leaves, extract_units
from .policy import FailureSink
from .structures import PassReport, TranslatableUnit, UnitOutcome

T = TypeVar("T")


async def join_all(awaitables: Iterable[Awaitable[T]]) -> List[Union[T, BaseException]]:
    """Start every awaitable together and wait until all of them settle.

    Results come back in input order; an awaitable that raised is
    represented by its exception instead of aborting the others.
    """

    return list(await asyncio.gather(*awaitables, return_exceptions=True))


class TranslationDispatcher:
    """Extracts units from subtrees and translates them concurrently."""

    def __init__(
        self,
        client: TranslationClient,
        *,
        failure_sink: Optional[FailureSink] = None,
    ) -> None:
        self.client = client
        self.failure_sink = failure_sink if failure_sink is not None else client.failure_sink

    async def translate_subtree(self, root: PageElement, target_language: str) -> PassReport:
        return await self.translate_subtrees([root], target_language)

    async def translate_subtrees(
        self,
        roots: Sequence[PageElement],
        target_language: str,
    ) -> PassReport:
        return await self.run_units(self.collect_units(roots), target_language)

    @staticmethod
    def collect_units(roots: Sequence[PageElement]) -> List[TranslatableUnit]:
        units: List[TranslatableUnit] = []
        for root in roots:
            units.extend(extract_units(root))
        return units

    async def translate_display_leaves(
        self,
        root: PageElement,
        target_language: str,
    ) -> PassReport:
        """Legacy bulk pass over whole display elements."""

        return await self.run_units(extract_display_leaves(root), target_language)

    async def run_units(
        self,
        units: Sequence[TranslatableUnit],
        target_language: str,
    ) -> PassReport:
        start_time = time.time()
        results = await join_all(
            self._translate_unit(unit, target_language) for unit in units
        )

        outcomes: List[UnitOutcome] = []
        for unit, result in zip(units, results):
            if isinstance(result, BaseException):
                self.failure_sink.record(
                    ErrorCategory.WRITE_BACK,
                    f"Could not write translated text at {unit.location}.",
                    str(result),
                )
                outcomes.append(UnitOutcome(unit=unit, error=result))
            else:
                outcomes.append(result)

        return self._summarise(outcomes, target_language, time.time() - start_time)

    async def _translate_unit(
        self,
        unit: TranslatableUnit,
        target_language: str,
    ) -> UnitOutcome:
        resolution = await self.client.resolve(unit.original_text, target_language)
        outcome = UnitOutcome(unit=unit, resolution=resolution)
        if resolution.text != unit.original_text:
            unit.apply(resolution.text)
            outcome.written = True
        return outcome

    @staticmethod
    def _summarise(
        outcomes: Sequence[UnitOutcome],
        target_language: str,
        elapsed: float,
    ) -> PassReport:
        translated = unchanged = fallbacks = failed_writes = 0
        messages: List[str] = []
        for outcome in outcomes:
            if outcome.error is not None:
                failed_writes += 1
                messages.append(
                    f"Could not write translated text at {outcome.unit.location}. "
                    f"({outcome.error})"
                )
            elif outcome.resolution is not None and outcome.resolution.failed:
                fallbacks += 1
                messages.append(f"Kept original text at {outcome.unit.location}.")
            elif outcome.written:
                translated += 1
            else:
                unchanged += 1

        return PassReport(
            target_language=target_language,
            total_units=len(outcomes),
            translated_units=translated,
            unchanged_units=unchanged,
            fallback_units=fallbacks,
            failed_writes=failed_writes,
            elapsed_seconds=elapsed,
            error_messages=messages,
        )
