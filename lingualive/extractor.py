"""Extraction of translatable units from an HTML tree."""

from __future__ import annotations

from enum import Enum, auto
from typing import List

from bs4.element import NavigableString, PageElement, PreformattedString, Tag

from .structures import TextSetter, TranslatableUnit, UnitKind


SKIPPED_TAGS = frozenset({"script", "style", "noscript", "template"})
FIELD_TAGS = frozenset({"input", "textarea"})

# Input types whose value attribute is submitted data, not visible text.
NON_TEXT_INPUT_TYPES = frozenset(
    {
        "hidden",
        "password",
        "checkbox",
        "radio",
        "file",
        "email",
        "url",
        "tel",
        "number",
        "range",
        "color",
        "date",
        "datetime-local",
        "month",
        "week",
        "time",
        "image",
    }
)

DISPLAY_SELECTOR = "p, h1, h2, h3, span, a, li, button"


class NodeKind(Enum):
    """Closed set of node classifications driving extraction."""

    TEXT = auto()
    FIELD = auto()
    OPTION_LIST = auto()
    CONTAINER = auto()
    SKIP = auto()


def _tag_name(node: PageElement | None) -> str:
    name = getattr(node, "name", None)
    return name.lower() if isinstance(name, str) else ""


def classify(node: PageElement) -> NodeKind:
    """Decide once how a node takes part in extraction."""

    if isinstance(node, NavigableString):
        # Comments, doctype, CDATA and processing instructions.
        if isinstance(node, PreformattedString):
            return NodeKind.SKIP
        if _tag_name(node.parent) in SKIPPED_TAGS:
            return NodeKind.SKIP
        return NodeKind.TEXT
    if isinstance(node, Tag):
        name = _tag_name(node)
        if name in SKIPPED_TAGS:
            return NodeKind.SKIP
        if name in FIELD_TAGS:
            return NodeKind.FIELD
        if name == "select":
            return NodeKind.OPTION_LIST
        return NodeKind.CONTAINER
    return NodeKind.SKIP


def describe(node: PageElement) -> str:
    """Return a readable tag path such as ``body > div#menu > p > #text``."""

    parts: List[str] = []
    current: PageElement | None = node
    while current is not None:
        if isinstance(current, NavigableString):
            parts.append("#text")
        elif isinstance(current, Tag) and current.name != "[document]":
            label = current.name
            element_id = current.get("id")
            if isinstance(element_id, str) and element_id:
                label = f"{label}#{element_id}"
            parts.append(label)
        current = current.parent
    return " > ".join(reversed(parts)) or "document"


def _is_blank(text: str | None) -> bool:
    return not text or not text.strip()


def _replace_string(node: NavigableString) -> TextSetter:
    def _setter(translated: str) -> None:
        node.replace_with(NavigableString(translated))

    return _setter


def _set_attribute(element: Tag, attribute: str) -> TextSetter:
    def _setter(translated: str) -> None:
        element[attribute] = translated

    return _setter


def _set_string(element: Tag) -> TextSetter:
    def _setter(translated: str) -> None:
        element.string = translated

    return _setter


def _text_units(node: NavigableString) -> List[TranslatableUnit]:
    text = str(node)
    if _is_blank(text):
        return []
    return [
        TranslatableUnit(
            kind=UnitKind.TEXT_CONTENT,
            node=node,
            original_text=text,
            setter=_replace_string(node),
            location=describe(node),
        )
    ]


def _field_units(element: Tag) -> List[TranslatableUnit]:
    units: List[TranslatableUnit] = []
    location = describe(element)

    placeholder = element.get("placeholder")
    if isinstance(placeholder, str) and not _is_blank(placeholder):
        units.append(
            TranslatableUnit(
                kind=UnitKind.PLACEHOLDER,
                node=element,
                original_text=placeholder,
                setter=_set_attribute(element, "placeholder"),
                location=location,
            )
        )

    if _tag_name(element) == "textarea":
        value = element.get_text()
        setter = _set_string(element)
    else:
        input_type = str(element.get("type") or "text").lower()
        if input_type in NON_TEXT_INPUT_TYPES:
            return units
        raw_value = element.get("value")
        value = raw_value if isinstance(raw_value, str) else None
        setter = _set_attribute(element, "value")

    if not _is_blank(value):
        units.append(
            TranslatableUnit(
                kind=UnitKind.VALUE,
                node=element,
                original_text=value,  # type: ignore[arg-type]
                setter=setter,
                location=location,
            )
        )
    return units


def _option_units(select: Tag) -> List[TranslatableUnit]:
    units: List[TranslatableUnit] = []
    for index, option in enumerate(select.find_all("option")):
        # Same whitespace handling as a browser's option label.
        label = " ".join(option.get_text().split())
        if not label:
            continue
        units.append(
            TranslatableUnit(
                kind=UnitKind.OPTION_LABEL,
                node=option,
                original_text=label,
                setter=_set_string(option),
                location=f"{describe(select)} option {index + 1}",
            )
        )
    return units


def extract_units(root: PageElement) -> List[TranslatableUnit]:
    """Collect translatable units under root in depth-first pre-order."""

    units: List[TranslatableUnit] = []
    stack: List[PageElement] = [root]
    while stack:
        node = stack.pop()
        kind = classify(node)
        if kind is NodeKind.TEXT:
            units.extend(_text_units(node))  # type: ignore[arg-type]
        elif kind is NodeKind.FIELD:
            units.extend(_field_units(node))  # type: ignore[arg-type]
        elif kind is NodeKind.OPTION_LIST:
            units.extend(_option_units(node))  # type: ignore[arg-type]
        elif kind is NodeKind.CONTAINER:
            stack.extend(reversed(node.contents))  # type: ignore[attr-defined]
    return units


def extract_display_leaves(root: PageElement) -> List[TranslatableUnit]:
    """Coarse whole-element extraction used by the legacy bulk pass.

    Selects common display elements that have no child elements and
    translates each one's full text at once.
    """

    if not isinstance(root, Tag):
        return []

    units: List[TranslatableUnit] = []
    for element in root.select(DISPLAY_SELECTOR):
        if element.find(True, recursive=False) is not None:
            continue
        text = element.get_text()
        if _is_blank(text):
            continue
        units.append(
            TranslatableUnit(
                kind=UnitKind.TEXT_CONTENT,
                node=element,
                original_text=text,
                setter=_set_string(element),
                location=describe(element),
            )
        )
    return units
