"""
Unit tests for hidden content scoring.
"""

import pytest

from hydradiff.errors import InvalidInputError
from hydradiff.hidden_content import (
    NEXTJS_DETECTOR,
    FrameworkDetector,
    analyze_hidden_content,
    calculate_hidden_percentage,
    calculate_severity,
)
from hydradiff.text import count_visible_words


def words(count: int, word: str = "word") -> str:
    return " ".join([word] * count)


def streamed_page(hidden_words: int, visible_words: int) -> str:
    return f"""
    <html>
    <body>
        <main><p>{words(visible_words, "visible")}</p></main>
        <div hidden id="S:0"><p>{words(hidden_words, "hidden")}</p></div>
        <script>self.__next_f.push([1, "payload"])</script>
    </body>
    </html>
    """


class TestNextjsStreaming:
    """Tests for Next.js streaming placeholders."""

    def test_half_hidden_is_high(self):
        """Test 500 hidden words against 500 visible words."""
        html = streamed_page(hidden_words=500, visible_words=500)

        result = analyze_hidden_content(html, count_visible_words(html))

        assert count_visible_words(html) == 500
        assert result.framework_detected == "Next.js"
        assert result.hidden_word_count == 500
        assert result.visible_word_count == 500
        assert result.hidden_percentage == 50.0
        assert result.severity == "high"
        assert result.has_hidden_content is True

    def test_low_severity(self):
        """Test a small share of hidden content."""
        html = streamed_page(hidden_words=5, visible_words=95)

        result = analyze_hidden_content(html, 95)

        assert result.hidden_percentage == 5.0
        assert result.severity == "low"

    def test_threshold_boundary_is_high(self):
        """Test that exactly reaching the threshold is high."""
        html = streamed_page(hidden_words=10, visible_words=90)

        result = analyze_hidden_content(html, 90)

        assert result.hidden_percentage == 10.0
        assert result.severity == "high"

    def test_custom_threshold(self):
        """Test that the high threshold is configurable."""
        html = streamed_page(hidden_words=10, visible_words=90)

        result = analyze_hidden_content(html, 90, high_threshold=25.0)

        assert result.severity == "low"

    def test_nested_placeholders_counted_once(self):
        """Test that a placeholder inside another is not double counted."""
        html = f"""
        <div hidden id="S:0">
            {words(3)}
            <div hidden id="S:1">{words(4)}</div>
        </div>
        """

        result = analyze_hidden_content(html, 0)

        assert result.hidden_word_count == 7
        assert result.hidden_percentage == 100.0

    def test_script_text_inside_placeholder_ignored(self):
        """Test that inline scripts inside a placeholder add no words."""
        html = f"""
        <div hidden id="S:0">
            <p>{words(6)}</p>
            <script>self.__next_f.push([1, "lots of payload words here"])</script>
        </div>
        """

        result = analyze_hidden_content(html, 6)

        assert result.hidden_word_count == 6

    def test_suspense_comment_markers_ignored(self):
        """Test that <!--$--> boundary comments are not counted as words."""
        html = """
        <div hidden id="S:0"><!--$--><p>alpha beta</p><!--/$--></div>
        <script>self.__next_f.push([1, "payload"])</script>
        """

        result = analyze_hidden_content(html, 2)

        assert result.hidden_word_count == 2
        assert result.hidden_percentage == 50.0

    def test_inline_markup_does_not_split_words(self):
        """Test that words broken up by inline tags count once."""
        html = '<div hidden id="S:0"><p>e<b>x</b>ample <em>text</em></p></div>'

        result = analyze_hidden_content(html, 0)

        assert result.hidden_word_count == 2

    def test_hidden_div_without_streaming_id_ignored(self):
        """Test that ordinary hidden elements are not streamed content."""
        html = f"""
        <script src="/_next/static/chunks/main.js"></script>
        <div hidden id="modal">{words(20)}</div>
        """

        result = analyze_hidden_content(html, 100)

        assert result.framework_detected == "Next.js"
        assert result.hidden_word_count == 0
        assert result.severity == "none"


class TestFrameworkDetection:
    """Tests for framework signatures."""

    @pytest.mark.parametrize(
        "html",
        [
            '<div hidden id="S:2">x</div>',
            "<script>self.__next_f.push([0])</script>",
            '<script>$RC("B:0", "S:0")</script>',
            '<script id="__NEXT_DATA__" type="application/json">{}</script>',
            '<script src="/_next/static/chunks/app.js"></script>',
            '<link rel="preload" href="/_next/static/css/app.css">',
        ],
    )
    def test_nextjs_signatures(self, html):
        """Test each Next.js signature on its own."""
        result = analyze_hidden_content(f"<html><head></head><body>{html}</body></html>", 10)

        assert result.framework_detected == "Next.js"

    def test_no_framework(self):
        """Test that a plain page has nothing hidden."""
        html = f'<html><body><p>{words(50)}</p><div hidden id="S:0">{words(50)}</div></body></html>'

        result = analyze_hidden_content(html, 50, detectors=())

        assert result.framework_detected is None
        assert result.hidden_word_count == 0
        assert result.hidden_percentage == 0.0
        assert result.severity == "none"

    def test_plain_page_with_default_detectors(self):
        """Test a static page without framework markers."""
        result = analyze_hidden_content(f"<html><body><p>{words(50)}</p></body></html>", 50)

        assert result.framework_detected is None
        assert result.severity == "none"

    def test_first_matching_detector_wins(self):
        """Test that detectors are tried in order."""
        custom = FrameworkDetector(
            name="Custom",
            detect=lambda soup: soup.select_one("[data-custom-root]") is not None,
            hidden_selector="section[hidden][data-slot]",
        )
        html = f"""
        <div data-custom-root></div>
        <section hidden data-slot="main">{words(8)}</section>
        <div hidden id="S:0">{words(2)}</div>
        """

        result = analyze_hidden_content(html, 8, detectors=(custom, NEXTJS_DETECTOR))

        assert result.framework_detected == "Custom"
        assert result.hidden_word_count == 8
        assert result.hidden_percentage == 50.0


class TestScoring:
    """Tests for percentage and severity calculation."""

    def test_zero_denominator(self):
        """Test that no words at all scores zero."""
        assert calculate_hidden_percentage(0, 0) == 0.0

        result = analyze_hidden_content('<div hidden id="S:0"></div>', 0)

        assert result.hidden_percentage == 0.0
        assert result.severity == "none"

    def test_negative_visible_count_is_clamped(self):
        """Test that a negative visible count is treated as zero."""
        result = analyze_hidden_content(f'<div hidden id="S:0">{words(4)}</div>', -10)

        assert result.visible_word_count == 0
        assert result.hidden_percentage == 100.0

    def test_percentage_rounding(self):
        """Test that percentages are rounded to two decimals."""
        assert calculate_hidden_percentage(1, 2) == 33.33
        assert calculate_hidden_percentage(2, 1) == 66.67

    @pytest.mark.parametrize(
        "percentage,expected",
        [(0.0, "none"), (0.01, "low"), (9.99, "low"), (10.0, "high"), (100.0, "high")],
    )
    def test_severity(self, percentage, expected):
        """Test severity boundaries at the default threshold."""
        assert calculate_severity(percentage) == expected


class TestInvalidInput:
    """Tests for rejected inputs."""

    def test_html_must_be_string(self):
        """Test that non-string HTML raises InvalidInputError."""
        with pytest.raises(InvalidInputError) as exc_info:
            analyze_hidden_content(None, 10)

        assert exc_info.value.argument == "html"

    @pytest.mark.parametrize("count", [None, 1.5, "10", True])
    def test_visible_count_must_be_integer(self, count):
        """Test that non-integer visible counts raise InvalidInputError."""
        with pytest.raises(InvalidInputError) as exc_info:
            analyze_hidden_content("<p>x</p>", count)

        assert exc_info.value.argument == "visible_word_count"
