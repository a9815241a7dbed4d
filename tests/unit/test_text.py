"""
Unit tests for visible text extraction.
"""

from hydradiff.text import VisibleTextExtractor, count_visible_words


class TestVisibleTextExtractor:
    """Tests for VisibleTextExtractor class."""

    def test_extract_basic_content(self):
        """Test basic text extraction."""
        html = """
        <html>
        <head><title>Test</title></head>
        <body>
            <h1>Main Heading</h1>
            <p>This is a test paragraph with some text content.</p>
        </body>
        </html>
        """
        result = VisibleTextExtractor().extract(html)

        assert "Main Heading" in result.text
        assert "This is a test paragraph with some text content." in result.text
        # Title lives in <head> and is not page content
        assert "Test" not in result.text.split()

    def test_ignore_scripts_and_styles(self):
        """Test that scripts and styles are ignored."""
        html = """
        <html>
        <body>
            <h1>Visible Heading</h1>
            <script>var x = "this should be ignored";</script>
            <style>.hidden { display: none; }</style>
            <p>This is visible content.</p>
        </body>
        </html>
        """
        result = VisibleTextExtractor().extract(html)

        assert "this should be ignored" not in result.text.lower()
        assert "display: none" not in result.text.lower()
        assert "This is visible content" in result.text

    def test_ignore_html_comments(self):
        """Test that HTML comments are ignored."""
        html = """
        <html>
        <body>
            <!-- This is a comment that should be ignored -->
            <p>This is visible content.</p>
        </body>
        </html>
        """
        result = VisibleTextExtractor().extract(html)

        assert "comment" not in result.text
        assert result.text == "This is visible content."

    def test_hidden_elements_not_extracted(self):
        """Test that hidden elements are not included."""
        html = """
        <html>
        <body>
            <p>This is visible.</p>
            <p style="display: none;">This is hidden via style.</p>
            <p style="visibility:hidden">This is invisible.</p>
            <div hidden id="S:0"><p>Streamed but hidden.</p></div>
            <span aria-hidden="true">Decorative</span>
        </body>
        </html>
        """
        result = VisibleTextExtractor().extract(html)

        assert result.text == "This is visible."

    def test_ignored_tags(self):
        """Test that svg, iframe, noscript and template content is dropped."""
        html = """
        <html>
        <body>
            <svg><text>circle label</text></svg>
            <iframe src="https://example.com/ad"></iframe>
            <noscript><p>This content only shows without JS.</p></noscript>
            <template><p>Template content</p></template>
            <p>This is regular content.</p>
        </body>
        </html>
        """
        result = VisibleTextExtractor().extract(html)

        assert result.text == "This is regular content."

    def test_normalize_whitespace(self):
        """Test whitespace normalization."""
        html = """
        <html>
        <body>
            <p>This  has    multiple     spaces.</p>
            <p>And&#10;newlines.</p>
        </body>
        </html>
        """
        result = VisibleTextExtractor().extract(html)

        assert "This has multiple spaces." in result.text
        assert "  " not in result.text

    def test_nested_elements(self):
        """Test extraction from nested HTML elements."""
        html = "<div><div><p><span>Nested text content</span></p></div></div>"
        result = VisibleTextExtractor().extract(html)

        assert result.text == "Nested text content"

    def test_empty_html(self):
        """Test extraction from empty HTML."""
        result = VisibleTextExtractor().extract("<html><body></body></html>")

        assert result.text == ""
        assert result.word_count == 0


class TestCountVisibleWords:
    """Tests for count_visible_words."""

    def test_word_count_calculation(self):
        """Test word count calculation."""
        html = """
        <html>
        <body>
            <p>This is a test.</p>
            <p>It has multiple words.</p>
        </body>
        </html>
        """
        assert count_visible_words(html) == 9

    def test_adjacent_elements_do_not_merge_words(self):
        """Test that text in sibling elements is counted separately."""
        assert count_visible_words("<ul><li>One</li><li>Two</li></ul>") == 2

    def test_malformed_html(self):
        """Test counting in malformed HTML."""
        html = "<h1>Heading<p>Missing closing tag<div>Nested <span>content</div>"

        assert count_visible_words(html) == 6
