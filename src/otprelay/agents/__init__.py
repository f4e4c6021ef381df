"""Agent implementations for monitoring the OTP panel."""

from .base import BaseAgent
from .monitor import MonitorAgent

__all__ = ["BaseAgent", "MonitorAgent"]
