"""
Unit tests for the command line interface.
"""

import json
from datetime import datetime

import pytest

from hydradiff.job_runner import ACCESSIBILITY, ALL_ANALYSES, STRUCTURE
from hydradiff.models import (
    AriaNode,
    HeadingDiff,
    HeadingInfo,
    JobResult,
    PageAnalysis,
    SnapshotDiff,
    StructureComparison,
)
from hydradiff_cli import main as cli


class FakeRunner:
    instances = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.urls = None
        FakeRunner.instances.append(self)

    def run_job(self, urls):
        self.urls = urls
        analyses = [
            PageAnalysis(
                url=url,
                final_url=url,
                http_status=200,
                structure_diff=StructureComparison(
                    headings=HeadingDiff(added=(HeadingInfo(2, "Reviews"),))
                ),
                snapshot_diff=SnapshotDiff(added=(AriaNode(role="button", name="Buy"),)),
            )
            for url in urls
        ]
        return JobResult(
            started_at=datetime(2024, 1, 1, 12, 0, 0),
            finished_at=datetime(2024, 1, 1, 12, 0, 3),
            urls_processed=len(urls),
            urls_succeeded=len(urls),
            urls_failed=0,
            results=analyses,
        )


@pytest.fixture
def fake_runner(monkeypatch):
    FakeRunner.instances = []
    monkeypatch.setattr(cli, "ComparisonRunner", FakeRunner)
    return FakeRunner


class TestParseArguments:
    """Tests for argument parsing."""

    def test_defaults(self):
        """Test default option values."""
        args = cli.parse_arguments(["structure", "https://example.com"])

        assert args.command == "structure"
        assert args.urls == ["https://example.com"]
        assert args.json is False
        assert args.input_file is None

    def test_options(self):
        """Test explicit options."""
        args = cli.parse_arguments(
            ["a11y", "https://a.com", "https://b.com", "--json", "-c", "5", "-t", "10", "-w", "load"]
        )

        assert args.urls == ["https://a.com", "https://b.com"]
        assert args.json is True
        assert args.concurrency == 5
        assert args.timeout == 10
        assert args.wait_strategy == "load"

    def test_unknown_command(self):
        """Test that unknown commands exit with a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            cli.parse_arguments(["speed", "https://example.com"])

        assert exc_info.value.code == 2


class TestMain:
    """Tests for the main entry point."""

    def test_json_output(self, fake_runner, capsys):
        """Test that --json prints a machine readable payload."""
        cli.main(["structure", "https://example.com", "--json"])

        payload = json.loads(capsys.readouterr().out)
        assert payload["urls_processed"] == 1
        result = payload["results"][0]
        assert result["structure"]["headings"]["added"] == [
            {
                "level": 2,
                "text": "Reviews",
                "has_content": True,
                "content": {"word_count": 0, "paragraphs": 0, "lists": 0},
            }
        ]
        assert result["accessibility"]["added"] == [{"role": "button", "name": "Buy"}]

    def test_command_selects_analyses(self, fake_runner, capsys):
        """Test that each command maps to its analyses and options are forwarded."""
        cli.main(["a11y", "https://example.com", "--json", "-t", "5"])
        cli.main(["all", "https://example.com", "--json"])

        first, second = fake_runner.instances
        assert first.kwargs["analyses"] == (ACCESSIBILITY,)
        assert first.kwargs["fetch_timeout"] == 5000
        assert second.kwargs["analyses"] == ALL_ANALYSES

    def test_summary_output(self, fake_runner, capsys):
        """Test the human readable report."""
        cli.main(["structure", "https://example.com"])

        out = capsys.readouterr().out
        assert "HYDRATION DIFFERENCE REPORT" in out
        assert "Headings ONLY after JavaScript (1)" in out
        assert "h2 Reviews" in out
        assert "Skip links" in out
        assert 'button "Buy"' in out

    def test_urls_from_file(self, fake_runner, tmp_path, capsys):
        """Test reading URLs from an input file, skipping comments."""
        url_file = tmp_path / "urls.txt"
        url_file.write_text("# pages\nhttps://a.com\n\nhttps://b.com\n", encoding="utf-8")

        cli.main(["structure", "-i", str(url_file), "--json"])

        assert fake_runner.instances[0].urls == ["https://a.com", "https://b.com"]
        assert fake_runner.instances[0].kwargs["analyses"] == (STRUCTURE,)

    def test_missing_input_file(self, fake_runner, tmp_path):
        """Test that a missing input file exits with an error."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["structure", "-i", str(tmp_path / "missing.txt")])

        assert exc_info.value.code == 1

    def test_no_urls(self, fake_runner, capsys):
        """Test that running without URLs exits with a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["structure"])

        assert exc_info.value.code == 2
        assert "No URLs" in capsys.readouterr().err
