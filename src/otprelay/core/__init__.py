"""Core primitives for the OTP relay."""

from .dedup import SeenMessages, message_fingerprint
from .models import ForwardRequest, ForwardResult, MonitorState, ParsedOtp
from .settings import BrowserSettings, PanelSelectors, RelaySettings, load_settings

__all__ = [
    "SeenMessages",
    "message_fingerprint",
    "ForwardRequest",
    "ForwardResult",
    "MonitorState",
    "ParsedOtp",
    "BrowserSettings",
    "PanelSelectors",
    "RelaySettings",
    "load_settings",
]
