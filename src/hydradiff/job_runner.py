"""
Job runner for orchestrating the full static-versus-hydrated comparison.

Manages fetching, rendering, model building and diffing for multiple URLs.
"""

import asyncio
import logging
from datetime import datetime
from typing import List

from .aria_differ import diff_accessibility_snapshots
from .aria_snapshot import DEFAULT_INDENT_UNIT, parse_accessibility_snapshot
from .differ import diff_structure
from .document import parse_document
from .fetcher import BrowserFetcher, RawHTMLFetcher
from .hidden_content import DEFAULT_HIGH_THRESHOLD, analyze_hidden_content
from .models import JobResult, PageAnalysis, RenderedFetchResult, URLInput
from .structure import build_structure_model
from .text import count_visible_words

logger = logging.getLogger(__name__)

STRUCTURE = "structure"
ACCESSIBILITY = "accessibility"
HIDDEN = "hidden"
ALL_ANALYSES = (STRUCTURE, ACCESSIBILITY, HIDDEN)


class ComparisonRunner:
    """
    Orchestrates the full pipeline for comparing renderings of many URLs.

    The static rendering is the raw HTML as served (and, for the
    accessibility tree, the page loaded with JavaScript disabled). The
    hydrated rendering is the page after scripts have run.
    """

    def __init__(
        self,
        max_concurrency: int = 3,
        fetch_timeout: int = 30000,
        render_timeout: int = 30000,
        user_agent: str | None = None,
        wait_strategy: str = "network_idle",
        analyses: tuple[str, ...] = ALL_ANALYSES,
        snapshot_indent: int = DEFAULT_INDENT_UNIT,
        high_threshold: float = DEFAULT_HIGH_THRESHOLD,
    ):
        """
        Initialize the job runner.

        Args:
            max_concurrency: Maximum number of URLs to process concurrently
            fetch_timeout: Timeout for HTTP fetches in milliseconds
            render_timeout: Timeout for browser rendering in milliseconds
            user_agent: Custom User-Agent header (optional)
            wait_strategy: Wait strategy for rendering ('network_idle', 'load', 'timeout')
            analyses: Which analyses to run (structure, accessibility, hidden)
            snapshot_indent: Indent unit of accessibility snapshots
            high_threshold: Hidden percentage at which severity becomes high
        """
        unknown = set(analyses) - set(ALL_ANALYSES)
        if unknown:
            raise ValueError(f"Unknown analyses: {', '.join(sorted(unknown))}")

        self.max_concurrency = max_concurrency
        self.fetch_timeout = fetch_timeout
        self.render_timeout = render_timeout
        self.analyses = tuple(analyses)
        self.snapshot_indent = snapshot_indent
        self.high_threshold = high_threshold

        capture_snapshot = ACCESSIBILITY in self.analyses
        self.raw_fetcher = RawHTMLFetcher(user_agent=user_agent)
        self.static_renderer = BrowserFetcher(
            user_agent=user_agent,
            wait_strategy=wait_strategy,
            javascript_enabled=False,
            capture_snapshot=capture_snapshot,
        )
        self.hydrated_renderer = BrowserFetcher(
            user_agent=user_agent,
            wait_strategy=wait_strategy,
            javascript_enabled=True,
            capture_snapshot=capture_snapshot,
        )

    async def run_job_async(self, urls: List[str]) -> JobResult:
        """
        Run a job asynchronously.

        Args:
            urls: List of URLs to process

        Returns:
            JobResult containing all analyses
        """
        started_at = datetime.now()
        validated_urls = self._validate_and_deduplicate(urls)
        logger.info("Processing %d URLs", len(validated_urls))

        semaphore = asyncio.Semaphore(self.max_concurrency)
        tasks = [self._process_url(url, semaphore) for url in validated_urls]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        analyses: List[PageAnalysis] = []
        for url, result in zip(validated_urls, results):
            if isinstance(result, Exception):
                logger.error("Processing %s failed: %s", url, result)
                analyses.append(
                    PageAnalysis(
                        url=url,
                        final_url=url,
                        http_status=0,
                        fetch_errors=[f"Unexpected error: {str(result)}"],
                    )
                )
            else:
                analyses.append(result)

        urls_succeeded = sum(1 for analysis in analyses if analysis.success)

        return JobResult(
            started_at=started_at,
            finished_at=datetime.now(),
            urls_processed=len(validated_urls),
            urls_succeeded=urls_succeeded,
            urls_failed=len(analyses) - urls_succeeded,
            results=analyses,
        )

    def run_job(self, urls: List[str]) -> JobResult:
        """
        Run a job synchronously.

        Convenience method that wraps run_job_async.
        """
        return asyncio.run(self.run_job_async(urls))

    def _validate_and_deduplicate(self, urls: List[str]) -> List[str]:
        """
        Validate and deduplicate URLs, keeping first-seen order.

        Args:
            urls: List of URLs to validate

        Returns:
            List of validated, deduplicated URLs
        """
        validated: List[str] = []

        for url in urls:
            url = url.strip()
            if not url or url in validated:
                continue

            try:
                URLInput(url)
            except ValueError:
                logger.warning("Skipping invalid URL: %s", url)
                continue
            validated.append(url)

        return validated

    async def _process_url(self, url: str, semaphore: asyncio.Semaphore) -> PageAnalysis:
        """
        Process a single URL through the full pipeline.

        Args:
            url: URL to process
            semaphore: Semaphore for concurrency control

        Returns:
            PageAnalysis containing results
        """
        async with semaphore:
            raw_fetch, raw_error = await self.raw_fetcher.fetch(url, timeout=self.fetch_timeout)
            if raw_fetch is None:
                return PageAnalysis(
                    url=url,
                    final_url=url,
                    http_status=0,
                    fetch_errors=[raw_error or "No response"],
                )

            analysis = PageAnalysis(
                url=url,
                final_url=raw_fetch.url,
                http_status=raw_fetch.status_code,
            )

            hydrated, static = await self._render(url, analysis)

            if STRUCTURE in self.analyses and hydrated is not None:
                self._compare_structure(analysis, raw_fetch.html, raw_fetch.url, hydrated)

            if ACCESSIBILITY in self.analyses and hydrated is not None and static is not None:
                self._compare_snapshots(analysis, static, hydrated)

            if HIDDEN in self.analyses:
                self._score_hidden_content(analysis, raw_fetch.html)

            return analysis

    async def _render(
        self, url: str, analysis: PageAnalysis
    ) -> tuple[RenderedFetchResult | None, RenderedFetchResult | None]:
        """Render the hydrated page and, when needed, the static page concurrently."""
        needs_hydrated = STRUCTURE in self.analyses or ACCESSIBILITY in self.analyses
        needs_static = ACCESSIBILITY in self.analyses
        if not needs_hydrated:
            return None, None

        renders = [self.hydrated_renderer.fetch(url, timeout=self.render_timeout)]
        if needs_static:
            renders.append(self.static_renderer.fetch(url, timeout=self.render_timeout))
        outcomes = await asyncio.gather(*renders)

        results = []
        for result, error in outcomes:
            if error:
                analysis.render_errors.append(error)
            results.append(result)

        hydrated = results[0]
        static = results[1] if needs_static else None
        return hydrated, static

    def _compare_structure(
        self,
        analysis: PageAnalysis,
        static_html: str,
        static_url: str,
        hydrated: RenderedFetchResult,
    ) -> None:
        try:
            analysis.static_structure = build_structure_model(
                parse_document(static_html), base_url=static_url
            )
            analysis.hydrated_structure = build_structure_model(
                parse_document(hydrated.html), base_url=hydrated.url
            )
            analysis.structure_diff = diff_structure(
                analysis.static_structure, analysis.hydrated_structure
            )
        except Exception as e:
            logger.exception("Structure comparison failed for %s", analysis.url)
            analysis.analysis_errors.append(f"Structure comparison failed: {str(e)}")

    def _compare_snapshots(
        self,
        analysis: PageAnalysis,
        static: RenderedFetchResult,
        hydrated: RenderedFetchResult,
    ) -> None:
        if static.aria_snapshot is None or hydrated.aria_snapshot is None:
            analysis.render_errors.append("Accessibility snapshot was not captured")
            return

        try:
            analysis.static_snapshot = parse_accessibility_snapshot(
                static.aria_snapshot, indent_unit=self.snapshot_indent
            )
            analysis.hydrated_snapshot = parse_accessibility_snapshot(
                hydrated.aria_snapshot, indent_unit=self.snapshot_indent
            )
            analysis.snapshot_diff = diff_accessibility_snapshots(
                analysis.static_snapshot, analysis.hydrated_snapshot
            )
        except Exception as e:
            logger.exception("Accessibility comparison failed for %s", analysis.url)
            analysis.analysis_errors.append(f"Accessibility comparison failed: {str(e)}")

    def _score_hidden_content(self, analysis: PageAnalysis, static_html: str) -> None:
        try:
            analysis.hidden_content = analyze_hidden_content(
                static_html,
                count_visible_words(static_html),
                high_threshold=self.high_threshold,
            )
        except Exception as e:
            logger.exception("Hidden content analysis failed for %s", analysis.url)
            analysis.analysis_errors.append(f"Hidden content analysis failed: {str(e)}")
