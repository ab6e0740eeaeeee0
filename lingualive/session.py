"""High-level orchestration of a translated page."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, Iterable, List, Optional, Set

from .client import TranslationClient
from .dispatcher import TranslationDispatcher
from .errors import ErrorCategory, LinguaLiveError
from .language import (
    DEFAULT_LANGUAGE,
    LanguageSelector,
    LanguageState,
    normalise_language,
)
from .structures import PassReport
from .tree import DEFAULT_PARSER, DocumentTree
from .watcher import MutationWatcher


ContentLoader = Callable[[DocumentTree], Any]
BusyHandler = Callable[[bool], Any]


class PageSession:
    """Coordinates loading, the full-page pass, and the mutation watcher.

    The session keeps the page's original markup. A load parses it, lets
    content loaders (such as a gallery renderer) populate the tree, starts
    watching for insertions, and translates the whole page when the target
    language differs from the page's own. A language change persists the
    new code and reloads, dropping the old tree together with whatever its
    unfinished passes were about to write.
    """

    def __init__(
        self,
        markup: str,
        *,
        client: TranslationClient,
        language_state: LanguageState,
        selector: Optional[LanguageSelector] = None,
        page_language: str = DEFAULT_LANGUAGE,
        loaders: Iterable[ContentLoader] = (),
        features: str = DEFAULT_PARSER,
        bulk_mode: bool = False,
    ) -> None:
        self.markup = markup
        self.client = client
        self.dispatcher = TranslationDispatcher(client)
        self.language_state = language_state
        self.selector = selector
        self.page_language = normalise_language(page_language)
        self.loaders: List[ContentLoader] = list(loaders)
        self.features = features
        self.bulk_mode = bulk_mode

        self.tree: Optional[DocumentTree] = None
        self.watcher: Optional[MutationWatcher] = None
        self.last_report: Optional[PassReport] = None
        self.load_count = 0
        self.busy = False

        self._busy_handlers: List[BusyHandler] = []
        self._reload_tasks: Set["asyncio.Task[Optional[PassReport]]"] = set()

        self.language_state.bind_reload(self._schedule_reload)
        if self.selector is not None:
            self.selector.on_change(self._on_selector_change)

    # --- Lifecycle ----------------------------------------------------------

    async def load(self) -> Optional[PassReport]:
        """Build the page and translate it; None when no pass was needed."""

        self.load_count += 1
        generation = self.load_count

        tree = DocumentTree.parse(self.markup, features=self.features)
        self.tree = tree
        target_language = self.language_state.get()
        if self.selector is not None:
            self.selector.value = target_language

        for loader in self.loaders:
            result = loader(tree)
            if inspect.isawaitable(result):
                await result

        watcher = MutationWatcher(tree, self.dispatcher, self.language_state)
        watcher.connect()
        self.watcher = watcher

        if target_language == self.page_language:
            self.last_report = None
            return None

        self._set_busy(True, generation)
        try:
            if self.bulk_mode:
                report = await self.dispatcher.translate_display_leaves(
                    tree.root, target_language
                )
            else:
                report = await self.dispatcher.translate_subtree(tree.root, target_language)
        finally:
            self._set_busy(False, generation)

        if generation == self.load_count:
            self.last_report = report
        return report

    async def reload(self) -> Optional[PassReport]:
        if self.watcher is not None:
            self.watcher.disconnect()
        return await self.load()

    async def settle(self) -> List[PassReport]:
        """Wait for pending reloads and for the current watcher's passes."""

        while self._reload_tasks:
            await asyncio.gather(*list(self._reload_tasks), return_exceptions=True)
        if self.watcher is None:
            return []
        return await self.watcher.drain()

    async def aclose(self) -> None:
        if self.watcher is not None:
            self.watcher.disconnect()
        await self.client.aclose()

    # --- Legacy bulk mode ---------------------------------------------------

    async def translate_visible_elements(
        self,
        target_language: Optional[str] = None,
    ) -> PassReport:
        """Translate whole display elements in one coarse pass."""

        tree = self._require_tree()
        language = normalise_language(target_language or self.language_state.get())
        generation = self.load_count
        self._set_busy(True, generation)
        try:
            report = await self.dispatcher.translate_display_leaves(tree.root, language)
        finally:
            self._set_busy(False, generation)
        self.last_report = report
        return report

    # --- Busy signal --------------------------------------------------------

    def on_busy(self, handler: BusyHandler) -> Callable[[], None]:
        self._busy_handlers.append(handler)

        def _unsubscribe() -> None:
            if handler in self._busy_handlers:
                self._busy_handlers.remove(handler)

        return _unsubscribe

    def _set_busy(self, busy: bool, generation: int) -> None:
        # A pass that belongs to an abandoned load must not clear the flag
        # raised by the current one.
        if generation != self.load_count or self.busy == busy:
            return
        self.busy = busy
        for handler in list(self._busy_handlers):
            handler(busy)

    # --- Rendering ----------------------------------------------------------

    def render(self) -> str:
        return self._require_tree().render()

    def _require_tree(self) -> DocumentTree:
        if self.tree is None:
            raise LinguaLiveError("The page has not been loaded yet.")
        return self.tree

    # --- Language changes ---------------------------------------------------

    def _on_selector_change(self, code: str) -> None:
        self.language_state.set(code)

    def _schedule_reload(self, code: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise LinguaLiveError(
                "Changing the language reloads the page and needs a running event loop."
            ) from exc
        task = loop.create_task(self.reload())
        self._reload_tasks.add(task)
        task.add_done_callback(self._reload_finished)

    def _reload_finished(self, task: "asyncio.Task[Optional[PassReport]]") -> None:
        self._reload_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.client.failure_sink.record(
                ErrorCategory.OTHER,
                "Reloading the page after a language change failed.",
                repr(exc),
            )
