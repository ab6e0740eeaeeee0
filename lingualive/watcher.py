"""Translates content inserted into a document after the initial pass."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Set

from bs4.element import PageElement

from .dispatcher import TranslationDispatcher
from .errors import ErrorCategory, WatcherError
from .language import LanguageState
from .structures import PassReport
from .tree import MutationBatch, Subscription, TreeChangeObserver, is_within


class MutationWatcher:
    """Feeds newly inserted nodes, and only those, to the dispatcher.

    Every batch becomes its own asyncio task, so passes may overlap in time.
    Nodes nested under another node of the same batch are left to that
    ancestor's pass, and a batch's units are extracted when it is delivered.
    Content added later, even inside a subtree whose pass is still pending,
    therefore belongs to a later batch only.
    """

    def __init__(
        self,
        observer: TreeChangeObserver,
        dispatcher: TranslationDispatcher,
        language_state: LanguageState,
    ) -> None:
        self.observer = observer
        self.dispatcher = dispatcher
        self.language_state = language_state
        self.reports: List[PassReport] = []
        self._subscription: Optional[Subscription] = None
        self._pending: Set["asyncio.Task[PassReport]"] = set()

    @property
    def connected(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def connect(self) -> None:
        if self.connected:
            return
        self._subscription = self.observer.on_nodes_inserted(self._on_batch)

    def disconnect(self) -> None:
        if self._subscription is not None:
            self._subscription.disconnect()
            self._subscription = None

    def collect_inserted(self, batch: MutationBatch) -> List[PageElement]:
        """Return the top-level nodes added by a batch, in insertion order."""

        root = self.observer.root
        candidates: List[PageElement] = []
        seen: Set[int] = set()
        for mutation in batch:
            for node in mutation.added_nodes:
                if id(node) in seen:
                    continue
                seen.add(id(node))
                if is_within(node, root):
                    candidates.append(node)

        added_ids = {id(node) for node in candidates}
        return [
            node
            for node in candidates
            if not any(id(parent) in added_ids for parent in node.parents)
        ]

    def _on_batch(self, batch: MutationBatch) -> None:
        nodes = self.collect_inserted(batch)
        if not nodes:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise WatcherError(
                "Inserted content can only be translated inside a running event loop."
            ) from exc

        target_language = self.language_state.get()
        units = self.dispatcher.collect_units(nodes)
        task = loop.create_task(self.dispatcher.run_units(units, target_language))
        self._pending.add(task)
        task.add_done_callback(self._finished)

    def _finished(self, task: "asyncio.Task[PassReport]") -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.dispatcher.failure_sink.record(
                ErrorCategory.OTHER,
                "Translation of inserted content stopped unexpectedly.",
                repr(exc),
            )
            return
        self.reports.append(task.result())

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> List[PassReport]:
        """Wait until every scheduled pass, including ones they trigger, is done."""

        collected_from = len(self.reports)
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        return self.reports[collected_from:]
