"""Service providers used by the monitor agent."""

from .audit_logger import AuditLogger
from .forwarder import OtpForwarder
from .otp_parser import OtpMessageParser, parse_otp_message

__all__ = [
    "AuditLogger",
    "OtpForwarder",
    "OtpMessageParser",
    "parse_otp_message",
]
