"""Relay parsed OTPs to the remote receiver endpoint."""

from __future__ import annotations

from typing import Optional

import httpx

from otprelay.core.models import ForwardRequest, ForwardResult, ParsedOtp
from otprelay.services.audit_logger import AuditLogger
from otprelay.utils.logging import get_logger


class OtpForwarder:
    """POSTs each OTP to the receiver with a bearer token.

    Failures never propagate: a transport error or an unreadable response is
    logged and reported back as an unsuccessful ``ForwardResult``.
    """

    def __init__(
        self,
        endpoint_url: str,
        secret_token: str,
        *,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
        audit_logger: Optional[AuditLogger] = None,
    ) -> None:
        self.endpoint_url = endpoint_url
        self.timeout = timeout
        self._secret_token = secret_token
        self._client = client
        self._audit = audit_logger
        self.logger = get_logger("Forwarder")

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def send(self, otp: ParsedOtp, raw_message: str) -> ForwardResult:
        body = ForwardRequest.from_parsed(otp, raw_message)
        headers = {
            "Authorization": f"Bearer {self._secret_token}",
            "Content-Type": "application/json",
        }
        client = self._ensure_client()
        try:
            response = await client.post(
                self.endpoint_url,
                content=body.model_dump_json(),
                headers=headers,
            )
        except httpx.HTTPError as exc:
            self.logger.error("Error sending OTP for %s: %s", otp.phone_number, exc)
            result = ForwardResult(success=False, message=str(exc))
        except Exception as exc:
            self.logger.exception("Unexpected error sending OTP for %s: %s", otp.phone_number, exc)
            result = ForwardResult(success=False, message=str(exc))
        else:
            result = self._interpret(response)

        if self._audit:
            try:
                await self._audit.log_forward(otp, result)
            except OSError:
                self.logger.warning("Failed to persist audit record to %s", self._audit.path, exc_info=True)
        return result

    def _interpret(self, response: httpx.Response) -> ForwardResult:
        try:
            result = ForwardResult.model_validate(response.json())
        except ValueError as exc:
            self.logger.error(
                "Unreadable response from OTP receiver (HTTP %s): %s",
                response.status_code,
                exc,
            )
            return ForwardResult(success=False, message=f"HTTP {response.status_code}: {exc}")
        if result.success:
            self.logger.info("OTP forwarded to user %s", result.delivered_to)
        else:
            self.logger.warning("OTP not delivered: %s", result.message)
        return result

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
