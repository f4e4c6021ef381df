"""OTP relay: polls a web panel for OTP notifications and forwards them."""

__all__ = ["__version__"]

__version__ = "0.1.0"
