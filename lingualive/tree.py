"""HTML document wrapper that reports structural insertions to subscribers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PageElement, Tag

DEFAULT_PARSER = "html.parser"


@dataclass(frozen=True)
class Mutation:
    """Nodes added under one parent by a single insertion call."""

    target: Tag
    added_nodes: Tuple[PageElement, ...]


MutationBatch = Sequence[Mutation]
InsertionHandler = Callable[[MutationBatch], None]


class Subscription:
    """Handle returned by `on_nodes_inserted`; call `disconnect` to stop."""

    def __init__(self, cancel: Callable[[], None]) -> None:
        self._cancel: Optional[Callable[[], None]] = cancel

    @property
    def active(self) -> bool:
        return self._cancel is not None

    def disconnect(self) -> None:
        if self._cancel is None:
            return
        cancel, self._cancel = self._cancel, None
        cancel()


class TreeChangeObserver(ABC):
    """Capability to watch a document root for inserted nodes."""

    @property
    @abstractmethod
    def root(self) -> Tag:
        """The node under which insertions are reported."""

    @abstractmethod
    def on_nodes_inserted(self, handler: InsertionHandler) -> Subscription:
        """Register a handler that receives each batch of insertions."""


def is_within(node: PageElement, root: PageElement) -> bool:
    """Return True when node is root or one of its descendants."""

    if node is root:
        return True
    return any(parent is root for parent in node.parents)


class DocumentTree(TreeChangeObserver):
    """A BeautifulSoup document whose insertion methods notify observers.

    Only insertions made through this class are observed. Write-backs of
    translated text go straight to the bs4 nodes and are never reported,
    so translating a subtree cannot feed itself back into the watcher.
    """

    def __init__(self, soup: BeautifulSoup) -> None:
        self.soup = soup
        self._handlers: List[InsertionHandler] = []
        self._batch_depth = 0
        self._pending: List[Mutation] = []

    @classmethod
    def parse(cls, markup: str, *, features: str = DEFAULT_PARSER) -> "DocumentTree":
        return cls(BeautifulSoup(markup, features))

    @property
    def root(self) -> Tag:
        return self.soup.body or self.soup

    def render(self) -> str:
        return str(self.soup)

    # --- Observation ------------------------------------------------------

    def on_nodes_inserted(self, handler: InsertionHandler) -> Subscription:
        self._handlers.append(handler)

        def _cancel() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return Subscription(_cancel)

    @contextmanager
    def batch(self) -> Iterator["DocumentTree"]:
        """Group insertions so subscribers receive them as one batch."""

        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._pending:
                pending, self._pending = self._pending, []
                self._deliver(pending)

    # --- Construction helpers ---------------------------------------------

    def new_tag(
        self,
        name: str,
        attrs: Optional[dict] = None,
        string: Optional[str] = None,
    ) -> Tag:
        tag = self.soup.new_tag(name, attrs=attrs or {})
        if string is not None:
            tag.string = string
        return tag

    def fragment(self, markup: str) -> List[PageElement]:
        """Parse markup into detached top-level nodes."""

        parsed = BeautifulSoup(markup, DEFAULT_PARSER)
        nodes = list(parsed.contents)
        for node in nodes:
            node.extract()
        return nodes

    # --- Observed insertions ----------------------------------------------

    def append(self, parent: Tag, *nodes: PageElement | str) -> List[PageElement]:
        return self.insert(parent, len(parent.contents), *nodes)

    def insert(
        self,
        parent: Tag,
        position: int,
        *nodes: PageElement | str,
    ) -> List[PageElement]:
        added = [self._as_node(node) for node in nodes]
        for offset, node in enumerate(added):
            parent.insert(position + offset, node)
        self._record(parent, added)
        return added

    def insert_markup(
        self,
        parent: Tag,
        markup: str,
        position: Optional[int] = None,
    ) -> List[PageElement]:
        nodes = self.fragment(markup)
        if position is None:
            return self.append(parent, *nodes)
        return self.insert(parent, position, *nodes)

    def insert_before(self, reference: PageElement, *nodes: PageElement | str) -> List[PageElement]:
        parent = self._parent_of(reference)
        added = [self._as_node(node) for node in nodes]
        for node in added:
            reference.insert_before(node)
        self._record(parent, added)
        return added

    def insert_after(self, reference: PageElement, *nodes: PageElement | str) -> List[PageElement]:
        parent = self._parent_of(reference)
        added = [self._as_node(node) for node in nodes]
        for node in reversed(added):
            reference.insert_after(node)
        self._record(parent, added)
        return added

    def replace_children(self, parent: Tag, markup: str) -> List[PageElement]:
        """Clear parent and insert freshly parsed markup, like setting innerHTML."""

        parent.clear()
        return self.insert_markup(parent, markup)

    # --- Internal helpers -------------------------------------------------

    @staticmethod
    def _as_node(node: PageElement | str) -> PageElement:
        if isinstance(node, PageElement):
            return node
        return NavigableString(node)

    @staticmethod
    def _parent_of(reference: PageElement) -> Tag:
        parent = reference.parent
        if parent is None:
            raise ValueError("Reference node is not attached to a document.")
        return parent

    def _record(self, parent: Tag, added: Sequence[PageElement]) -> None:
        if not added:
            return
        mutation = Mutation(target=parent, added_nodes=tuple(added))
        if self._batch_depth:
            self._pending.append(mutation)
        else:
            self._deliver([mutation])

    def _deliver(self, batch: List[Mutation]) -> None:
        for handler in list(self._handlers):
            handler(batch)
