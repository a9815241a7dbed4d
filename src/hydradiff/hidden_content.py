"""
Hidden content scoring for streaming server-rendered pages.

Some frameworks stream server-rendered content into hidden placeholders
and only reveal it once scripts run. Crawlers and AI tools that do not run
scripts never see that content. Detection is signature based: a page
that matches no known framework is scored as having no hidden content.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from bs4 import BeautifulSoup
from bs4.element import Tag

from .document import SoupNode
from .errors import InvalidInputError
from .models import HiddenContentAnalysis

logger = logging.getLogger(__name__)

DEFAULT_HIGH_THRESHOLD = 10.0

SEVERITY_NONE = "none"
SEVERITY_LOW = "low"
SEVERITY_HIGH = "high"


@dataclass(frozen=True)
class FrameworkDetector:
    """
    Detects one framework and knows where it hides streamed content.

    Attributes:
        name: Framework name for display
        detect: Predicate over the parsed document
        hidden_selector: CSS selector matching hidden content containers
    """

    name: str
    detect: Callable[[BeautifulSoup], bool]
    hidden_selector: str

    def hidden_content_selector(self) -> str:
        return self.hidden_selector


NEXTJS_STREAMING_SELECTOR = 'div[hidden][id^="S:"]'
NEXTJS_SCRIPT_MARKERS = ("self.__next_f", "$RC", "__NEXT_DATA__")


def _detect_nextjs(soup: BeautifulSoup) -> bool:
    """Next.js App Router: streaming placeholders, flight scripts or /_next/ assets."""
    if soup.select_one(NEXTJS_STREAMING_SELECTOR) is not None:
        return True

    for script in soup.find_all("script"):
        content = script.string or ""
        if any(marker in content for marker in NEXTJS_SCRIPT_MARKERS):
            return True
        if script.get("id") == "__NEXT_DATA__":
            return True

    return (
        soup.select_one('script[src*="/_next/"]') is not None
        or soup.select_one('link[href*="/_next/"]') is not None
    )


NEXTJS_DETECTOR = FrameworkDetector(
    name="Next.js",
    detect=_detect_nextjs,
    hidden_selector=NEXTJS_STREAMING_SELECTOR,
)

# Checked in order; the first match wins
DEFAULT_DETECTORS: tuple[FrameworkDetector, ...] = (NEXTJS_DETECTOR,)


def count_words(text: str) -> int:
    return len(text.split())


def _element_word_count(element: Tag) -> int:
    # Comments such as the <!--$--> streaming markers are not words
    return count_words(SoupNode(element).text_content())


def count_hidden_words(soup: BeautifulSoup, selector: str) -> int:
    """
    Count words inside elements matching selector.

    Matches nested inside another match are only counted once.
    """
    matched = soup.select(selector)
    matched_ids = {id(element) for element in matched}

    total = 0
    for element in matched:
        if any(id(parent) in matched_ids for parent in element.parents):
            continue
        total += _element_word_count(element)
    return total


def calculate_severity(hidden_percentage: float, high_threshold: float = DEFAULT_HIGH_THRESHOLD) -> str:
    """
    Map a hidden percentage to a severity.

    - 0% = none
    - below high_threshold = low
    - at or above high_threshold = high
    """
    if hidden_percentage <= 0:
        return SEVERITY_NONE
    if hidden_percentage < high_threshold:
        return SEVERITY_LOW
    return SEVERITY_HIGH


def calculate_hidden_percentage(hidden_word_count: int, visible_word_count: int) -> float:
    """Share of all words that are hidden, clamped to [0, 100]."""
    hidden = max(hidden_word_count, 0)
    visible = max(visible_word_count, 0)
    total = hidden + visible
    if total == 0:
        return 0.0
    return min(max(round((hidden / total) * 100, 2), 0.0), 100.0)


def analyze_hidden_content(
    html: str,
    visible_word_count: int,
    detectors: Sequence[FrameworkDetector] = DEFAULT_DETECTORS,
    high_threshold: float = DEFAULT_HIGH_THRESHOLD,
) -> HiddenContentAnalysis:
    """
    Analyze HTML for content hidden from non-script consumers.

    Args:
        html: Raw HTML string as served, before scripts run
        visible_word_count: Word count of the visible/extracted content
        detectors: Framework detectors to try, in order
        high_threshold: Percentage at or above which severity is "high"

    Returns:
        HiddenContentAnalysis with framework detection and metrics

    Raises:
        InvalidInputError: If html is not a string or visible_word_count is
            not an integer
    """
    if not isinstance(html, str):
        raise InvalidInputError("html", f"HTML must be a string, got {type(html).__name__}")
    if not isinstance(visible_word_count, int) or isinstance(visible_word_count, bool):
        raise InvalidInputError(
            "visible_word_count",
            f"visible_word_count must be an integer, got {type(visible_word_count).__name__}",
        )

    visible_word_count = max(visible_word_count, 0)
    soup = BeautifulSoup(html, "lxml")

    framework = None
    hidden_word_count = 0
    for detector in detectors:
        if detector.detect(soup):
            framework = detector.name
            hidden_word_count = count_hidden_words(soup, detector.hidden_content_selector())
            break

    hidden_percentage = calculate_hidden_percentage(hidden_word_count, visible_word_count)

    logger.debug(
        "Hidden content: framework=%s hidden=%d visible=%d (%.2f%%)",
        framework,
        hidden_word_count,
        visible_word_count,
        hidden_percentage,
    )

    return HiddenContentAnalysis(
        framework_detected=framework,
        hidden_word_count=hidden_word_count,
        visible_word_count=visible_word_count,
        hidden_percentage=hidden_percentage,
        severity=calculate_severity(hidden_percentage, high_threshold),
    )
