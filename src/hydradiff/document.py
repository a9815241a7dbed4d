"""
Minimal document interface consumed by the structure builder.

The builder only needs to walk elements, read tag names and attributes, and
collect text. Anything offering those four capabilities can be analyzed;
BeautifulSoup trees are adapted by SoupNode.
"""

from typing import Iterable, Protocol, runtime_checkable

from bs4 import BeautifulSoup
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction, Tag


@runtime_checkable
class DocumentNode(Protocol):
    """An element in a parsed document."""

    @property
    def tag_name(self) -> str:
        """Lowercase tag name ("[document]" for a document root)."""
        ...

    def get_attribute(self, name: str) -> str | None:
        ...

    def children(self) -> Iterable["DocumentNode"]:
        """Element children in document order (text nodes excluded)."""
        ...

    def text_content(self) -> str:
        ...


class SoupNode:
    """DocumentNode adapter around a BeautifulSoup tag."""

    __slots__ = ("_tag",)

    # Text inside these never contributes to rendered text
    NON_TEXT_TAGS = frozenset({"script", "style", "template", "noscript"})

    def __init__(self, tag: Tag):
        self._tag = tag

    @property
    def tag(self) -> Tag:
        return self._tag

    @property
    def tag_name(self) -> str:
        return (self._tag.name or "").lower()

    def get_attribute(self, name: str) -> str | None:
        value = self._tag.get(name)
        if value is None:
            return None
        # Multi-valued attributes (class, rel) come back as lists
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def children(self) -> Iterable["SoupNode"]:
        for child in self._tag.children:
            if isinstance(child, Tag):
                yield SoupNode(child)

    def text_content(self) -> str:
        """Concatenated descendant text, like the DOM textContent property."""
        parts = []
        for text in self._tag.find_all(string=True):
            parent = text.parent
            if parent is not None and parent.name in self.NON_TEXT_TAGS:
                continue
            if isinstance(text, (Comment, Declaration, Doctype, ProcessingInstruction)):
                continue
            parts.append(str(text))
        # Inline markup must not split words
        return "".join(parts)

    def __repr__(self) -> str:
        return f"SoupNode(<{self.tag_name}>)"


def parse_document(html: str) -> SoupNode:
    """
    Parse HTML text into a document root.

    Args:
        html: HTML string to parse

    Returns:
        SoupNode wrapping the parsed document
    """
    return SoupNode(BeautifulSoup(html, "lxml"))


def as_document_node(document) -> DocumentNode | None:
    """
    Coerce a supported document object into a DocumentNode.

    Returns:
        A DocumentNode, or None if the object offers no usable interface
    """
    if isinstance(document, Tag):  # BeautifulSoup is a Tag subclass
        return SoupNode(document)
    if isinstance(document, DocumentNode):
        return document
    return None


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and trim."""
    return " ".join(text.split())
