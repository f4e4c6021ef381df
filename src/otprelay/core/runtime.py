"""Runtime orchestration for the relay process."""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING, Optional

from otprelay.core.settings import RelaySettings
from otprelay.utils.logging import get_logger

if TYPE_CHECKING:
    from otprelay.agents.monitor import MonitorAgent
    from otprelay.services.forwarder import OtpForwarder


class RelayRuntime:
    """Builds the monitor agent from settings and runs it until a shutdown signal."""

    def __init__(
        self,
        settings: RelaySettings,
        *,
        agent: Optional["MonitorAgent"] = None,
        forwarder: Optional["OtpForwarder"] = None,
    ) -> None:
        self.settings = settings
        self.logger = get_logger("RelayRuntime")
        self.forwarder = forwarder or self._build_forwarder()
        self.agent = agent or self._build_agent()

    def _build_forwarder(self) -> "OtpForwarder":
        from otprelay.services.audit_logger import AuditLogger
        from otprelay.services.forwarder import OtpForwarder

        audit_logger = None
        if self.settings.audit_log_path:
            audit_logger = AuditLogger(self.settings.audit_log_path)
            self.logger.info("Auditing forwarded OTPs to %s", audit_logger.path)
        return OtpForwarder(
            str(self.settings.endpoint_url),
            self.settings.secret_token,
            timeout=self.settings.forward_timeout_seconds,
            audit_logger=audit_logger,
        )

    def _build_agent(self) -> "MonitorAgent":
        from otprelay.agents.monitor import MonitorAgent
        from otprelay.browser.play import BrowserFactory
        from otprelay.site.panel import PanelSession

        browser_settings = self.settings.browser
        browser = BrowserFactory(
            headless=browser_settings.headless,
            viewport=(browser_settings.viewport_width, browser_settings.viewport_height),
            extra_launch_args=browser_settings.launch_args,
        )
        if browser_settings.launch_args:
            self.logger.info("Custom Chromium flags: %s", browser_settings.launch_args)
        return MonitorAgent(
            self.settings,
            session_factory=lambda: PanelSession(self.settings, browser),
            forwarder=self.forwarder,
        )

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError):
                # add_signal_handler is unavailable on Windows event loops
                self.logger.debug("Signal handler for %s not installed", sig.name)

    def _on_signal(self, sig: signal.Signals) -> None:
        self.logger.info("Received %s, shutting down", sig.name)
        self.agent.request_stop()

    async def run_forever(self) -> None:
        self._install_signal_handlers()
        await self.agent.start()
        self.logger.info("Relay is running. Press Ctrl+C to exit.")
        try:
            if self.agent.task is not None:
                await self.agent.task
        finally:
            await self.agent.stop()
            await self.forwarder.close()
