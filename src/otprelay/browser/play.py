"""Playwright browser utilities for driving the panel."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Sequence

from playwright.async_api import Page, async_playwright

from otprelay.utils.logging import get_logger


logger = get_logger("Browser")


class BrowserFactory:
    """Launches a fresh headless Chromium and hands out a single page."""

    DEFAULT_LAUNCH_ARGS = [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
    ]

    def __init__(
        self,
        *,
        headless: bool = True,
        viewport: tuple[int, int] = (1280, 800),
        extra_launch_args: Sequence[str] | None = None,
    ) -> None:
        self.headless = headless
        self.viewport = viewport
        self._launch_args = list(self.DEFAULT_LAUNCH_ARGS)
        if extra_launch_args:
            for arg in extra_launch_args:
                if arg not in self._launch_args:
                    self._launch_args.append(arg)

    @property
    def launch_args(self) -> list[str]:
        return list(self._launch_args)

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        """Yield a page in a new browser; everything is torn down on exit."""
        pw = await async_playwright().start()
        try:
            logger.info("Launching Chromium (headless=%s)", self.headless)
            browser = await pw.chromium.launch(
                headless=self.headless,
                args=self._launch_args,
            )
            try:
                width, height = self.viewport
                context = await browser.new_context(viewport={"width": width, "height": height})
                # minimal stealth: remove webdriver flag
                await context.add_init_script(
                    "Object.defineProperty(navigator, 'webdriver', {get: () => undefined})"
                )
                page = await context.new_page()
                logger.info("Browser initialized")
                yield page
            finally:
                await browser.close()
        finally:
            await pw.stop()
