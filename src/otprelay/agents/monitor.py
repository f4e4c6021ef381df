"""Monitor agent: polls the panel and forwards newly seen OTPs."""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, Sequence

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, wait_fixed

from otprelay.agents.base import BaseAgent
from otprelay.core.dedup import SeenMessages, message_fingerprint
from otprelay.core.models import ForwardResult, MonitorState, ParsedOtp
from otprelay.core.settings import RelaySettings
from otprelay.services.otp_parser import OtpMessageParser
from otprelay.site.panel import PanelSessionClosed


PREVIEW_LENGTH = 50


class MessageSource(Protocol):
    """What the monitor needs from a panel session."""

    @property
    def is_closed(self) -> bool:
        ...

    async def initialize(self) -> None:
        ...

    async def login(self) -> None:
        ...

    async def list_message_elements(self) -> Sequence[Any]:
        ...

    async def read_text(self, handle: Any) -> Optional[str]:
        ...

    async def reload(self) -> None:
        ...

    async def capture_failure(self, label: str) -> Any:
        ...

    async def close(self) -> None:
        ...


class Forwarder(Protocol):
    async def send(self, otp: ParsedOtp, raw_message: str) -> ForwardResult:
        ...


SessionFactory = Callable[[], MessageSource]


class MonitorAgent(BaseAgent):
    """Logs into the panel, polls for messages and restarts on session failure.

    Every restart opens a brand new session; the set of seen messages lives
    on the agent and survives restarts within the process.
    """

    def __init__(
        self,
        settings: RelaySettings,
        *,
        session_factory: SessionFactory,
        forwarder: Forwarder,
        parser: Optional[OtpMessageParser] = None,
        seen: Optional[SeenMessages] = None,
    ) -> None:
        super().__init__()
        self.settings = settings
        self._session_factory = session_factory
        self._forwarder = forwarder
        self._parser = parser or OtpMessageParser()
        if seen is None:
            seen = SeenMessages(settings.dedup_max_size, settings.dedup_trim_to)
        self.seen = seen
        self.state = MonitorState.DISCONNECTED
        self.restarts = 0

    async def run(self) -> None:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(Exception),
            wait=wait_fixed(self.settings.restart_backoff_seconds),
            stop=self._stop_requested,
            sleep=self.wait,
            before_sleep=self._log_restart,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    await self._run_session()
        except Exception as exc:
            if not self.should_stop():
                raise
            self.logger.info("Stopped after session error: %s", exc)

    def _stop_requested(self, retry_state: RetryCallState) -> bool:
        return self.should_stop()

    def _log_restart(self, retry_state: RetryCallState) -> None:
        self.restarts += 1
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        self.logger.error(
            "[session-fatal] %s: %s; retrying in %.1f seconds",
            type(exc).__name__,
            exc,
            delay,
        )

    def _set_state(self, state: MonitorState) -> None:
        if state is not self.state:
            self.logger.debug("State %s -> %s", self.state.value, state.value)
            self.state = state

    async def _run_session(self) -> None:
        if self.should_stop():
            return
        session = self._session_factory()
        self._set_state(MonitorState.DISCONNECTED)
        try:
            await session.initialize()
            self._set_state(MonitorState.LOGGING_IN)
            await session.login()
            self._set_state(MonitorState.MONITORING)
            await self.monitor(session)
        except Exception:
            self._set_state(MonitorState.DISCONNECTED)
            await session.capture_failure("session-fatal")
            raise
        finally:
            await self._close_session(session)
        self._set_state(MonitorState.DISCONNECTED)

    async def _close_session(self, session: MessageSource) -> None:
        try:
            await session.close()
        except Exception as exc:
            self.logger.warning("Error closing panel session: %s", exc)

    async def monitor(self, session: MessageSource) -> None:
        """Poll until stopped, reloading the view every ``refresh_every`` polls."""
        interval = self.settings.poll_interval_seconds
        self.logger.info("Monitoring started - checking every %ss", f"{interval:g}")
        refresh_counter = 0
        while not self.should_stop():
            await self.check_for_new_messages(session)
            if await self.wait(interval):
                break
            refresh_counter += 1
            if refresh_counter >= self.settings.refresh_every:
                self.logger.info("Refreshing panel view")
                await session.reload()
                refresh_counter = 0

    async def check_for_new_messages(self, session: MessageSource) -> int:
        """Scan the panel once; returns the number of new messages processed."""
        try:
            handles = await session.list_message_elements()
        except Exception as exc:
            if session.is_closed:
                raise PanelSessionClosed(f"Panel page is gone: {exc}") from exc
            self.logger.error("Error checking messages: %s", exc)
            return 0

        processed = 0
        for handle in handles:
            try:
                text = await session.read_text(handle)
                if text and await self.process_message(text):
                    processed += 1
            except Exception as exc:
                self.logger.error("Skipping message: %s", exc)
        return processed

    async def process_message(self, text: str) -> bool:
        """Parse and forward ``text`` unless it was seen before."""
        fingerprint = message_fingerprint(text)
        if fingerprint in self.seen:
            return False

        self.logger.info("New message: %s...", text[:PREVIEW_LENGTH])
        try:
            otp = self._parser.parse(text)
            if otp:
                self.logger.info("Parsed - Phone: %s, OTP: %s", otp.phone_number, otp.otp_code)
                await self._forwarder.send(otp, text)
        finally:
            # processed even when forwarding failed; there is no forward retry
            self.seen.add(fingerprint)
        return True
