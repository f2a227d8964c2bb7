"""Capture provider — renders a page with Playwright and writes a screenshot."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Protocol
from urllib.parse import urlparse

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    async_playwright,
)

from pagediff.models.config import CaptureConfig

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36"
)


class CaptureError(RuntimeError):
    """A page could not be rendered to an image (navigation, timeout, no output)."""


class CaptureProvider(Protocol):
    async def capture(self, resource: Any, location: str, output_path: Path) -> Path:
        ...


@dataclass
class CaptureSession:
    """State that lives for one run and is shared by every capture in it."""
    consent_origins: set[str] = field(default_factory=set)
    captures: int = 0

    def consent_pending(self, location: str) -> bool:
        return _origin(location) not in self.consent_origins

    def mark_consent(self, location: str) -> None:
        self.consent_origins.add(_origin(location))


def _origin(location: str) -> str:
    parsed = urlparse(location)
    return f"{parsed.scheme}://{parsed.netloc}"


async def launch_browser(playwright: Playwright, headless: bool = True) -> Browser:
    """Launch Chromium with the automation banner flag disabled."""
    return await playwright.chromium.launch(
        headless=headless,
        args=["--disable-blink-features=AutomationControlled"],
    )


async def create_capture_context(
    browser: Browser,
    config: CaptureConfig,
) -> BrowserContext:
    """Create the single browser context every pooled page lives in.

    If ``config.storage_state`` names a saved Playwright session (cookies +
    localStorage), the context is seeded with it.
    """
    context_kwargs: dict = {
        "viewport": {"width": config.viewport.width, "height": config.viewport.height},
        "user_agent": config.user_agent or DEFAULT_USER_AGENT,
    }
    if config.storage_state:
        if not Path(config.storage_state).exists():
            raise FileNotFoundError(f"Storage state file not found: {config.storage_state}")
        context_kwargs["storage_state"] = config.storage_state
    return await browser.new_context(**context_kwargs)


class PlaywrightCapture:
    """Owns the browser for a run and captures pages into image files."""

    def __init__(self, config: CaptureConfig, session: Optional[CaptureSession] = None):
        self.config = config
        self.session = session or CaptureSession()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None

    async def start(self, page_count: int) -> list[Page]:
        """Launch the browser and open ``page_count`` pages for the pool."""
        logger.debug("Launching Chromium (headless=%s)...", self.config.headless)
        self._playwright = await async_playwright().start()
        self._browser = await launch_browser(self._playwright, headless=self.config.headless)
        self._context = await create_capture_context(self._browser, self.config)
        pages = [await self._context.new_page() for _ in range(page_count)]
        logger.info("Browser ready with %d pages", len(pages))
        return pages

    async def close(self) -> None:
        if self._context:
            await self._context.close()
            self._context = None
        if self._browser:
            await self._browser.close()
            self._browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    async def capture(self, resource: Page, location: str, output_path: Path) -> Path:
        """Navigate ``resource`` to ``location`` and save a screenshot to ``output_path``."""
        page = resource
        cfg = self.config
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        logger.debug("Capturing %s -> %s", location, output_path)

        try:
            await page.goto(location, wait_until=cfg.wait_until, timeout=cfg.navigation_timeout_ms)
            if cfg.consent_selector and self.session.consent_pending(location):
                await self._dismiss_consent(page, location)
            if cfg.style_overrides:
                await page.add_style_tag(content=cfg.style_overrides)
            if cfg.scroll_to_bottom:
                await page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")
            if cfg.settle_ms:
                await page.wait_for_timeout(cfg.settle_ms)

            screenshot_kwargs: dict = {
                "path": str(output_path),
                "full_page": cfg.full_page,
                "type": cfg.image_format,
            }
            if cfg.image_format == "jpeg":
                screenshot_kwargs["quality"] = cfg.jpeg_quality
            await page.screenshot(**screenshot_kwargs)
        except PlaywrightError as e:
            raise CaptureError(f"Failed to capture {location}: {e}") from e

        if not output_path.exists() or output_path.stat().st_size == 0:
            raise CaptureError(f"No screenshot written for {location}")

        self.session.captures += 1
        return output_path

    async def _dismiss_consent(self, page: Page, location: str) -> None:
        try:
            button = page.locator(self.config.consent_selector).first
            if await button.is_visible():
                await button.click()
                await page.wait_for_timeout(500)
                self.session.mark_consent(location)
                logger.debug("Accepted consent banner on %s", location)
        except PlaywrightError as e:
            # Banner missing or not clickable; try again on the next capture
            logger.debug("Consent banner not dismissed on %s: %s", location, e)
