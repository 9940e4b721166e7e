"""Typed document tree for BILLSTATUS XML.

The raw markup is parsed with BeautifulSoup's ``xml`` builder (lxml) and
converted into four explicit node kinds:

- ``ElementNode``: tag, attributes and child nodes
- ``AttributeNode``: one ``name="value"`` pair
- ``TextNode``: non-blank character data
- ``ListNode``: an ordered sequence of nodes (e.g. every ``<item>`` under
  ``<legislativeSubjects>``)

Conversion keeps repeated sibling elements as ordinary ``children`` in
document order; a ``ListNode`` only comes from ``ElementNode.find_all``.

Tag and attribute names are lower-cased during conversion, so lookups are
case-insensitive (``policyArea`` and ``policyarea`` are the same node).
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction


@dataclass(frozen=True)
class TextNode:
    value: str


@dataclass(frozen=True)
class AttributeNode:
    name: str
    value: str


@dataclass(frozen=True)
class ListNode:
    items: tuple[Node, ...] = ()


@dataclass(frozen=True)
class ElementNode:
    tag: str
    attributes: tuple[AttributeNode, ...] = ()
    children: tuple[Node, ...] = ()

    def attribute(self, name: str) -> str | None:
        for attr in self.attributes:
            if attr.name == name:
                return attr.value
        return None

    def child(self, tag: str) -> ElementNode | None:
        """First child element named *tag*."""
        for node in self.children:
            if isinstance(node, ElementNode) and node.tag == tag:
                return node
        return None

    def find_all(self, tag: str) -> ListNode:
        """Every direct child element named *tag*."""
        return ListNode(
            tuple(n for n in self.children if isinstance(n, ElementNode) and n.tag == tag)
        )

    @property
    def is_scalar(self) -> bool:
        """True for ``<tag>text</tag>``: no attributes and no child elements."""
        return not self.attributes and all(isinstance(n, TextNode) for n in self.children)

    @property
    def text(self) -> str:
        return "".join(n.value for n in self.children if isinstance(n, TextNode)).strip()


Node = Union[ElementNode, AttributeNode, TextNode, ListNode, None]


def walk(node: Node) -> Iterator[Node]:
    """Depth-first, pre-order traversal over every node kind.

    Elements yield themselves, then their attributes, then each child
    subtree in document order.  Lists yield themselves and then each item.
    Text, attribute and ``None`` nodes are leaves.
    """
    if node is None:
        return
    yield node
    if isinstance(node, ElementNode):
        yield from node.attributes
        for child in node.children:
            yield from walk(child)
    elif isinstance(node, ListNode):
        for item in node.items:
            yield from walk(item)


def _convert(tag: Tag) -> ElementNode:
    attributes = tuple(
        AttributeNode(name=str(key).lower(), value=" ".join(v) if isinstance(v, list) else str(v))
        for key, v in tag.attrs.items()
    )
    children: list[Node] = []
    for child in tag.children:
        if isinstance(child, Tag):
            children.append(_convert(child))
        elif isinstance(child, (Comment, Declaration, Doctype, ProcessingInstruction)):
            continue
        elif isinstance(child, NavigableString):
            text = str(child)
            if text.strip():
                children.append(TextNode(text))
    return ElementNode(tag=tag.name.lower(), attributes=attributes, children=tuple(children))


def parse_document(markup: bytes | str) -> ElementNode | None:
    """Parse BILLSTATUS markup into a tree; ``None`` if there is no root element.

    The result holds element, attribute and text nodes only.
    """
    soup = BeautifulSoup(markup, "xml")
    root = soup.find(True)
    if root is None:
        return None
    return _convert(root)
