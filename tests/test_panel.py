from __future__ import annotations

from contextlib import asynccontextmanager
from typing import List, Optional

import pytest
from playwright.async_api import Error as PlaywrightError

from otprelay.site.panel import (
    PanelLoginError,
    PanelNavigationError,
    PanelSession,
    PanelSessionClosed,
)

from conftest import build_settings


class FakeText:
    def __init__(self, text: Optional[str]) -> None:
        self._text = text

    async def text_content(self) -> Optional[str]:
        return self._text


class FakeRow:
    def __init__(self, text: Optional[str], *, has_text_el: bool = True) -> None:
        self._text_el = FakeText(text) if has_text_el else None
        self.queried: List[str] = []

    async def query_selector(self, selector: str):
        self.queried.append(selector)
        return self._text_el


class FakePage:
    def __init__(self, rows=(), *, fail_on: Optional[str] = None) -> None:
        self.rows = list(rows)
        self.fail_on = fail_on
        self.calls: List[tuple] = []
        self.closed = False

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if self.fail_on == name:
            raise PlaywrightError(f"{name} timed out")

    def is_closed(self) -> bool:
        return self.closed

    async def goto(self, url, **kwargs):
        self._record("goto", url)

    async def wait_for_selector(self, selector, **kwargs):
        self._record("wait_for_selector", selector)

    async def fill(self, selector, value):
        self._record("fill", selector, value)

    async def click(self, selector):
        self._record("click", selector)

    @asynccontextmanager
    async def expect_navigation(self, **kwargs):
        self._record("expect_navigation")
        yield

    async def query_selector_all(self, selector):
        self._record("query_selector_all", selector)
        return self.rows

    async def reload(self, **kwargs):
        self._record("reload")


class FakeBrowser:
    def __init__(self, page: FakePage) -> None:
        self._page = page
        self.exited = False

    @asynccontextmanager
    async def page(self):
        try:
            yield self._page
        finally:
            self.exited = True


async def open_session(page: FakePage, **overrides) -> tuple:
    browser = FakeBrowser(page)
    session = PanelSession(build_settings(**overrides), browser=browser)
    await session.initialize()
    return session, browser


@pytest.mark.asyncio
async def test_login_fills_credentials_and_submits():
    page = FakePage()
    session, _ = await open_session(page)

    await session.login()

    assert page.calls == [
        ("goto", "https://panel.example.com/login"),
        ("wait_for_selector", 'input[name="username"]'),
        ("fill", 'input[name="username"]', "operator"),
        ("fill", 'input[name="password"]', "hunter2"),
        ("expect_navigation",),
        ("click", 'button[type="submit"]'),
    ]


@pytest.mark.asyncio
async def test_login_failure_is_wrapped():
    session, _ = await open_session(FakePage(fail_on="wait_for_selector"))

    with pytest.raises(PanelLoginError, match="wait_for_selector timed out"):
        await session.login()


@pytest.mark.asyncio
async def test_read_text_strips_and_handles_missing_elements():
    rows = [FakeRow("  Your OTP for +12025550199 is 834921 \n"), FakeRow("   "), FakeRow(None, has_text_el=False)]
    session, _ = await open_session(FakePage(rows), selectors={"message_text": "td.body"})

    handles = await session.list_message_elements()

    assert [await session.read_text(handle) for handle in handles] == [
        "Your OTP for +12025550199 is 834921",
        None,
        None,
    ]
    assert rows[0].queried == ["td.body"]


@pytest.mark.asyncio
async def test_reload_failure_is_navigation_error():
    session, _ = await open_session(FakePage(fail_on="reload"))

    with pytest.raises(PanelNavigationError):
        await session.reload()


@pytest.mark.asyncio
async def test_close_releases_browser_and_is_idempotent():
    session, browser = await open_session(FakePage())
    assert not session.is_closed

    await session.close()
    await session.close()

    assert browser.exited is True
    assert session.is_closed
    with pytest.raises(PanelSessionClosed):
        await session.list_message_elements()


@pytest.mark.asyncio
async def test_capture_failure_skipped_without_artifacts_dir():
    session, _ = await open_session(FakePage())
    assert await session.capture_failure("session-fatal") is None
