"""
Visible text extraction.

Supplies the visible word count that the hidden-content scorer compares
against. Only text a non-script reader would actually see is counted.
"""

import re
from dataclasses import dataclass

from bs4 import BeautifulSoup, Comment
from bs4.element import Tag


@dataclass
class VisibleText:
    text: str

    @property
    def word_count(self) -> int:
        return len(self.text.split())


class VisibleTextExtractor:
    """
    Extracts the text of a page that is visible without running scripts.

    Scripts, styles, SVG internals, comments and hidden elements are ignored.
    """

    IGNORED_TAGS = [
        "script",
        "style",
        "noscript",
        "template",
        "iframe",
        "svg",
        "head",
    ]

    HIDDEN_STYLE_RE = re.compile(r"display\s*:\s*none|visibility\s*:\s*hidden")

    def extract(self, html: str) -> VisibleText:
        """
        Extract visible text from HTML.

        Args:
            html: HTML string to parse

        Returns:
            VisibleText with normalized text
        """
        soup = BeautifulSoup(html, "lxml")

        for tag in soup.find_all(self.IGNORED_TAGS):
            tag.decompose()

        for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
            comment.extract()

        # Iterate over a snapshot since decompose() mutates the tree
        for element in list(soup.find_all(True)):
            if element.decomposed:
                continue
            if self._is_hidden(element):
                element.decompose()

        text = " ".join(soup.get_text(" ").split())
        return VisibleText(text=text)

    def _is_hidden(self, element: Tag) -> bool:
        """Check the element's own attributes for the common hiding patterns."""
        if element.attrs is None:
            return False

        style = (element.get("style") or "").lower()
        aria_hidden = (element.get("aria-hidden") or "").lower()

        return (
            element.has_attr("hidden")
            or aria_hidden == "true"
            or bool(self.HIDDEN_STYLE_RE.search(style))
        )


def count_visible_words(html: str) -> int:
    """Count words visible in HTML without running scripts."""
    return VisibleTextExtractor().extract(html).word_count
