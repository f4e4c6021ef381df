from __future__ import annotations

import asyncio
import signal

import pytest

from otprelay.agents.monitor import MonitorAgent
from otprelay.core.runtime import RelayRuntime
from otprelay.services.forwarder import OtpForwarder
from otprelay.site.panel import PanelSession

from conftest import build_settings


def test_runtime_wires_components_from_settings(tmp_path):
    settings = build_settings(
        audit_log_path=str(tmp_path / "forwarded.jsonl"),
        browser={"headless": False, "launch_args": ["--lang=en-US"]},
    )
    runtime = RelayRuntime(settings)

    assert isinstance(runtime.forwarder, OtpForwarder)
    assert runtime.forwarder.endpoint_url == "https://receiver.example.com/otp"
    assert isinstance(runtime.agent, MonitorAgent)
    assert runtime.agent.seen.max_size == 1000

    session = runtime.agent._session_factory()
    assert isinstance(session, PanelSession)
    assert session.is_closed
    assert session.browser.headless is False
    assert session.browser.launch_args[-1] == "--lang=en-US"
    assert "--no-sandbox" in session.browser.launch_args


def test_runtime_builds_with_unwritable_audit_path(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    settings = build_settings(audit_log_path=str(blocker / "forwarded.jsonl"))

    runtime = RelayRuntime(settings)

    assert runtime.forwarder.endpoint_url == "https://receiver.example.com/otp"


class IdleAgent(MonitorAgent):
    async def run(self) -> None:
        while not await self.wait(1):
            pass


class ClosingForwarder:
    closed = False

    async def send(self, otp, raw_message):  # pragma: no cover - not reached
        raise AssertionError("no messages expected")

    async def close(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_run_forever_returns_after_stop_request():
    settings = build_settings()
    forwarder = ClosingForwarder()
    agent = IdleAgent(settings, session_factory=lambda: None, forwarder=forwarder)
    runtime = RelayRuntime(settings, agent=agent, forwarder=forwarder)

    task = asyncio.create_task(runtime.run_forever())
    await asyncio.sleep(0.05)
    runtime._on_signal(signal.SIGTERM)
    await asyncio.wait_for(task, timeout=5)

    assert forwarder.closed is True
