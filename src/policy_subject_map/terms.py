"""Harvest policy areas and CRS subject terms from a parsed BILLSTATUS tree.

Subject markup has changed shape across BILLSTATUS schema versions
(``<billSubjects><legislativeSubjects><item><name>``, bare
``<legislativeSubjects>``, attribute-style ``<subject name="..."/>``), so
instead of following one fixed path the extractor walks the whole
``<subjects>`` region and collects every node that looks like a term.
"""

from __future__ import annotations

from .document import ElementNode, Node, walk

# Attributes that conventionally carry a term's display name.  The first one
# present on an element wins.
TERM_ATTRIBUTES: tuple[str, ...] = ("name", "term", "label")


def _element_terms(element: ElementNode) -> list[str]:
    found: list[str] = []
    for key in TERM_ATTRIBUTES:
        value = element.attribute(key)
        if value is not None:
            if value.strip():
                found.append(value.strip())
            break
    for child in element.find_all("name").items:
        if isinstance(child, ElementNode) and child.is_scalar and child.text:
            found.append(child.text)
    return found


def extract_terms(node: Node) -> set[str]:
    """Every term-like string anywhere under *node*.

    An element contributes its ``name``/``term``/``label`` attribute and any
    scalar ``<name>`` child; traversal continues into every child either way,
    since terms can nest at any depth.  ``None`` and unexpected shapes yield
    an empty set.
    """
    terms: set[str] = set()
    for current in walk(node):
        if isinstance(current, ElementNode):
            terms.update(_element_terms(current))
    return terms


def _bill(root: ElementNode | None) -> ElementNode | None:
    if root is None or root.tag != "billstatus":
        return None
    return root.child("bill")


def extract_policy_area(root: ElementNode | None) -> str | None:
    """The bill's single policy area, or ``None`` if absent or blank.

    Accepts ``<policyArea>Energy</policyArea>``, ``<policyArea name="Energy"/>``
    and ``<policyArea><name>Energy</name></policyArea>``.
    """
    bill = _bill(root)
    node = bill.child("policyarea") if bill is not None else None
    if node is None:
        return None
    if node.is_scalar:
        value = node.text
    else:
        value = node.attribute("name")
        if value is None:
            name = node.child("name")
            value = name.text if name is not None else None
    if value is None:
        return None
    return value.strip() or None


def extract_subject_terms(root: ElementNode | None) -> set[str]:
    bill = _bill(root)
    if bill is None:
        return set()
    return extract_terms(bill.child("subjects"))
