"""
Fetcher implementations for retrieving web pages.

Provides raw HTML fetching (no browser) and browser rendering with
JavaScript enabled or disabled, optionally capturing the accessibility
snapshot of the rendered page.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

import httpx
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .models import RawFetchResult, RenderedFetchResult

logger = logging.getLogger(__name__)

DEFAULT_BOT_USER_AGENT = "Mozilla/5.0 (compatible; hydradiff/0.1; +https://example.com/bot)"
DEFAULT_BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

WAIT_STRATEGIES = ("network_idle", "load", "timeout")


class Fetcher(ABC):
    """
    Abstract base class for fetchers.

    Fetchers never raise for network or rendering problems; they return a
    (result, error_message) tuple with exactly one side set.
    """

    @abstractmethod
    async def fetch(self, url: str, timeout: int = 30000) -> tuple:
        """
        Fetch a URL.

        Args:
            url: The URL to fetch
            timeout: Timeout in milliseconds

        Returns:
            Tuple of (result, None) on success, or (None, error_message)
        """


class RawHTMLFetcher(Fetcher):
    """
    Fetches URLs without JavaScript execution.

    Uses httpx for HTTP requests. Follows redirects and captures response metadata.
    Represents what non-JS crawlers and AI tools see.
    """

    def __init__(self, user_agent: str | None = None, follow_redirects: bool = True):
        """
        Initialize the raw HTML fetcher.

        Args:
            user_agent: Custom User-Agent header (optional)
            follow_redirects: Whether to follow HTTP redirects
        """
        self.user_agent = user_agent or DEFAULT_BOT_USER_AGENT
        self.follow_redirects = follow_redirects

    async def fetch(
        self, url: str, timeout: int = 30000
    ) -> tuple[RawFetchResult | None, str | None]:
        """
        Fetch URL without JavaScript execution.

        Args:
            url: The URL to fetch
            timeout: Timeout in milliseconds

        Returns:
            Tuple of (RawFetchResult, None) on success, or (None, error_message) on failure
        """
        loop = asyncio.get_running_loop()
        start_time = loop.time()
        logger.info("Fetching raw HTML: %s", url)

        try:
            async with httpx.AsyncClient(
                follow_redirects=self.follow_redirects,
                timeout=timeout / 1000.0,
                headers={"User-Agent": self.user_agent},
            ) as client:
                response = await client.get(url)

                result = RawFetchResult(
                    url=str(response.url),
                    original_url=url,
                    status_code=response.status_code,
                    headers=dict(response.headers),
                    html=response.text,
                    fetch_time_ms=int((loop.time() - start_time) * 1000),
                )
                logger.debug("Raw fetch of %s returned %d", url, response.status_code)
                return result, None

        except httpx.TimeoutException:
            logger.warning("Raw fetch of %s timed out after %dms", url, timeout)
            return None, f"Timeout after {timeout}ms"
        except httpx.HTTPError as e:
            logger.warning("Raw fetch of %s failed: %s", url, e)
            return None, f"HTTP error: {str(e)}"
        except Exception as e:
            logger.exception("Unexpected error fetching %s", url)
            return None, f"Unexpected error: {str(e)}"


class BrowserFetcher(Fetcher):
    """
    Loads URLs in headless Chromium through Playwright.

    With javascript_enabled=False the browser still builds an accessibility
    tree for the static markup, which is how the static snapshot is taken.
    """

    def __init__(
        self,
        user_agent: str | None = None,
        wait_strategy: str = "network_idle",
        headless: bool = True,
        javascript_enabled: bool = True,
        capture_snapshot: bool = False,
    ):
        """
        Initialize the browser fetcher.

        Args:
            user_agent: Custom User-Agent header (optional)
            wait_strategy: Wait strategy ('network_idle', 'load', or 'timeout')
            headless: Whether to run browser in headless mode
            javascript_enabled: Whether page scripts may run
            capture_snapshot: Whether to capture the ARIA snapshot of <body>
        """
        if wait_strategy not in WAIT_STRATEGIES:
            raise ValueError(
                f"Unknown wait strategy: {wait_strategy}. Use one of {', '.join(WAIT_STRATEGIES)}"
            )
        self.user_agent = user_agent or DEFAULT_BROWSER_USER_AGENT
        self.wait_strategy = wait_strategy
        self.headless = headless
        self.javascript_enabled = javascript_enabled
        self.capture_snapshot = capture_snapshot

    async def fetch(
        self, url: str, timeout: int = 30000
    ) -> tuple[RenderedFetchResult | None, str | None]:
        """
        Load URL in the browser.

        Args:
            url: The URL to fetch
            timeout: Timeout in milliseconds

        Returns:
            Tuple of (RenderedFetchResult, None) on success, or (None, error_message) on failure
        """
        from playwright.async_api import async_playwright

        loop = asyncio.get_running_loop()
        start_time = loop.time()
        mode = "hydrated" if self.javascript_enabled else "static"
        logger.info("Rendering %s (%s)", url, mode)

        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(headless=self.headless)
                try:
                    context = await browser.new_context(
                        user_agent=self.user_agent,
                        java_script_enabled=self.javascript_enabled,
                    )
                    page = await context.new_page()

                    response = await page.goto(url, wait_until="domcontentloaded", timeout=timeout)
                    if not response:
                        return None, "No response received"

                    await self._wait_for_content(page, timeout)

                    html = await page.content()
                    snapshot = None
                    if self.capture_snapshot:
                        snapshot = await page.locator("body").aria_snapshot(timeout=timeout)

                    result = RenderedFetchResult(
                        url=page.url,
                        original_url=url,
                        html=html,
                        success=True,
                        fetch_time_ms=int((loop.time() - start_time) * 1000),
                        javascript_enabled=self.javascript_enabled,
                        aria_snapshot=snapshot,
                    )
                    return result, None

                except PlaywrightTimeoutError:
                    logger.warning("Render of %s (%s) timed out after %dms", url, mode, timeout)
                    return None, f"Render timeout after {timeout}ms"
                except Exception as e:
                    logger.warning("Render of %s (%s) failed: %s", url, mode, e)
                    return None, f"Render error: {str(e)}"
                finally:
                    await browser.close()

        except Exception as e:
            logger.exception("Browser initialization failed")
            return None, f"Browser initialization error: {str(e)}"

    async def _wait_for_content(self, page: Page, timeout: int):
        """
        Apply wait strategy to ensure content is loaded.

        Args:
            page: Playwright Page object
            timeout: Timeout in milliseconds
        """
        if self.wait_strategy == "load":
            await page.wait_for_load_state("load", timeout=timeout)

        elif self.wait_strategy == "timeout":
            # Wait half of the total timeout
            await asyncio.sleep(timeout / 2000.0)

        else:
            # Wait until network is mostly idle (no more than 2 connections for 500ms)
            try:
                await page.wait_for_load_state("networkidle", timeout=timeout)
            except PlaywrightTimeoutError:
                # Keep whatever rendered by domcontentloaded
                pass
