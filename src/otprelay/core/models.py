"""Data models shared across the relay."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MonitorState(str, Enum):
    """Lifecycle of a panel monitoring session."""

    DISCONNECTED = "disconnected"
    LOGGING_IN = "logging_in"
    MONITORING = "monitoring"


class ParsedOtp(BaseModel):
    """Phone number and OTP code recovered from a panel message."""

    model_config = ConfigDict(frozen=True)

    phone_number: str = Field(pattern=r"^\+?\d+$")
    otp_code: str = Field(pattern=r"^\d{4,8}$")


class ForwardRequest(BaseModel):
    """JSON body posted to the OTP receiver."""

    phone_number: str
    otp_code: str
    raw_message: str

    @classmethod
    def from_parsed(cls, otp: ParsedOtp, raw_message: str) -> "ForwardRequest":
        return cls(phone_number=otp.phone_number, otp_code=otp.otp_code, raw_message=raw_message)


class ForwardResult(BaseModel):
    """Outcome reported by the OTP receiver."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    success: bool
    delivered_to: Optional[str] = None
    message: Optional[str] = None
