"""Structured audit logger writing JSON Lines for every forward attempt."""

from __future__ import annotations

import asyncio
import datetime as dt
import json
from pathlib import Path
from typing import Any, Dict

from otprelay.core.models import ForwardResult, ParsedOtp


def mask_code(code: str) -> str:
    """Keep only the last two digits of an OTP code."""
    if len(code) <= 2:
        return "*" * len(code)
    return "*" * (len(code) - 2) + code[-2:]


class AuditLogger:
    """Persist one record per forwarded OTP so deliveries can be traced later."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def log_forward(self, otp: ParsedOtp, result: ForwardResult) -> None:
        record = {
            "timestamp": dt.datetime.now(dt.timezone.utc).isoformat(),
            "event": "otp_forwarded" if result.success else "otp_not_delivered",
            "phone_number": otp.phone_number,
            "otp_code": mask_code(otp.otp_code),
            "delivered_to": result.delivered_to,
            "message": result.message,
        }
        async with self._lock:
            await asyncio.to_thread(self._append_line, record)

    def _append_line(self, record: Dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(record, ensure_ascii=True))
            fh.write("\n")
