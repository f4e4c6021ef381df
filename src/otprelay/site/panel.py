"""Playwright-driven session against the OTP panel.

The session logs in with the configured credentials, lists the rendered
message rows and reads the text of each. All navigation failures surface as
``PanelError`` subclasses so the monitor can tell them apart from errors on
a single message.
"""

from __future__ import annotations

from contextlib import AsyncExitStack
from pathlib import Path
from typing import List, Optional

from playwright.async_api import ElementHandle, Error as PlaywrightError, Page

from otprelay.browser.play import BrowserFactory
from otprelay.core.settings import RelaySettings
from otprelay.utils.artifacts import save_screenshot
from otprelay.utils.logging import get_logger


logger = get_logger("PanelSession")


class PanelError(RuntimeError):
    """Session-fatal failure talking to the panel."""


class PanelLoginError(PanelError):
    pass


class PanelNavigationError(PanelError):
    pass


class PanelSessionClosed(PanelError):
    pass


class PanelSession:
    def __init__(self, settings: RelaySettings, browser: Optional[BrowserFactory] = None) -> None:
        self.settings = settings
        self.selectors = settings.selectors
        self.browser = browser or BrowserFactory(
            headless=settings.browser.headless,
            viewport=(settings.browser.viewport_width, settings.browser.viewport_height),
            extra_launch_args=settings.browser.launch_args,
        )
        self._stack: Optional[AsyncExitStack] = None
        self._page: Optional[Page] = None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise PanelSessionClosed("Panel session is not initialized")
        return self._page

    @property
    def is_closed(self) -> bool:
        return self._page is None or self._page.is_closed()

    async def initialize(self) -> None:
        logger.info("Starting panel session")
        stack = AsyncExitStack()
        self._page = await stack.enter_async_context(self.browser.page())
        self._stack = stack

    async def login(self) -> None:
        page = self.page
        browser_settings = self.settings.browser
        logger.info("Logging into panel")
        try:
            await page.goto(
                str(self.settings.panel_url),
                wait_until="networkidle",
                timeout=browser_settings.navigation_timeout_ms,
            )
            await page.wait_for_selector(
                self.selectors.login_username,
                timeout=browser_settings.selector_timeout_ms,
            )
            await page.fill(self.selectors.login_username, self.settings.panel_username)
            await page.fill(self.selectors.login_password, self.settings.panel_password)
            async with page.expect_navigation(
                wait_until="networkidle",
                timeout=browser_settings.navigation_timeout_ms,
            ):
                await page.click(self.selectors.login_button)
        except PlaywrightError as exc:
            raise PanelLoginError(f"Login failed: {exc}") from exc
        logger.info("Login successful")

    async def list_message_elements(self) -> List[ElementHandle]:
        return await self.page.query_selector_all(self.selectors.messages)

    async def read_text(self, handle: ElementHandle) -> Optional[str]:
        text_el = await handle.query_selector(self.selectors.message_text)
        if text_el is None:
            return None
        text = await text_el.text_content()
        if text is None:
            return None
        return text.strip() or None

    async def reload(self) -> None:
        try:
            await self.page.reload(
                wait_until="networkidle",
                timeout=self.settings.browser.navigation_timeout_ms,
            )
        except PlaywrightError as exc:
            raise PanelNavigationError(f"Reload failed: {exc}") from exc

    async def capture_failure(self, label: str) -> Optional[Path]:
        """Screenshot the current page when an artifacts directory is configured."""
        root = self.settings.artifacts_dir
        if root is None or self.is_closed:
            return None
        try:
            path = await save_screenshot(self.page, root, label)
        except (PlaywrightError, OSError) as exc:
            logger.warning("Could not capture failure screenshot: %s", exc)
            return None
        logger.info("Failure screenshot saved to %s", path)
        return path

    async def close(self) -> None:
        stack, self._stack = self._stack, None
        self._page = None
        if stack is not None:
            await stack.aclose()
