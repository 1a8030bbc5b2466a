"""
ttmlscene/tree.py

Thin adapter over xml.etree.ElementTree.
Exposes the minimal node capability set the ingester needs: node name,
ordered (attribute-name, value) pairs, ordered children and text content.

Namespaces are stripped from element and attribute names ('tts:color' -> 'color').
Text runs (ElementTree's .text / .tail) become '#text' children in document
order, so mixed content keeps its ordering.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from .errors import MalformedDocument

TEXT_NODE = "#text"


@dataclass(frozen=True)
class MarkupNode:
    name: str
    attributes: Tuple[Tuple[str, str], ...] = ()
    children: Tuple['MarkupNode', ...] = ()
    text: Optional[str] = None

    @property
    def is_text(self) -> bool:
        return self.name == TEXT_NODE

    def get_attr(self, name: str) -> Optional[str]:
        for k, v in self.attributes:
            if k == name:
                return v
        return None

    def find_child(self, name: str) -> Optional['MarkupNode']:
        for child in self.children:
            if child.name == name:
                return child
        return None

    def iter_children(self, name: str) -> Iterator['MarkupNode']:
        return (c for c in self.children if c.name == name)


def _strip_ns(tag: str) -> str:
    return tag.split('}', 1)[1] if '}' in tag else tag


def _convert(element) -> MarkupNode:
    children = []
    if element.text:
        children.append(MarkupNode(name=TEXT_NODE, text=element.text))
    for child in element:
        # Comments and processing instructions carry a callable tag
        if isinstance(child.tag, str):
            children.append(_convert(child))
        if child.tail:
            children.append(MarkupNode(name=TEXT_NODE, text=child.tail))

    attributes = tuple((_strip_ns(k), v) for k, v in element.attrib.items())
    return MarkupNode(name=_strip_ns(element.tag), attributes=attributes, children=tuple(children))


def parse_markup(data: bytes) -> MarkupNode:
    """
    Parses a byte buffer into a MarkupNode tree.
    Raises MalformedDocument if the bytes are not well-formed XML.
    """
    if not data or not data.strip():
        raise MalformedDocument("Empty document")
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise MalformedDocument(f"Failed to parse document: {e}") from e
    return _convert(root)


def from_element(element) -> MarkupNode:
    """Wraps an already parsed ElementTree element."""
    return _convert(element)
