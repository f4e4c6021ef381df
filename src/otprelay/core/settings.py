"""Runtime settings loader."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, ValidationError, model_validator

from otprelay.utils.env import get_bool_env, get_list_env, get_str_env


class PanelSelectors(BaseModel):
    """CSS selectors for the panel's login form and message list."""

    model_config = ConfigDict(frozen=True)

    login_username: str = 'input[name="username"]'
    login_password: str = 'input[name="password"]'
    login_button: str = 'button[type="submit"]'
    messages: str = ".message-row"
    message_text: str = ".message-text"


class BrowserSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    headless: bool = True
    launch_args: List[str] = Field(default_factory=list)
    viewport_width: int = 1280
    viewport_height: int = 800
    navigation_timeout_ms: int = Field(default=60_000, gt=0)
    selector_timeout_ms: int = Field(default=30_000, gt=0)


class RelaySettings(BaseModel):
    """Process-wide configuration, loaded once and never mutated."""

    model_config = ConfigDict(frozen=True)

    panel_url: HttpUrl
    panel_username: str
    panel_password: str = Field(repr=False)
    endpoint_url: HttpUrl
    secret_token: str = Field(repr=False)
    poll_interval_ms: int = Field(default=5000, gt=0)
    refresh_every: int = Field(default=60, ge=1)
    restart_backoff_seconds: float = Field(default=30.0, ge=0)
    forward_timeout_seconds: float = Field(default=5.0, gt=0)
    dedup_max_size: int = Field(default=1000, ge=2)
    dedup_trim_to: int = Field(default=500, ge=1)
    audit_log_path: Optional[Path] = None
    artifacts_dir: Optional[Path] = None
    selectors: PanelSelectors = Field(default_factory=PanelSelectors)
    browser: BrowserSettings = Field(default_factory=BrowserSettings)

    @model_validator(mode="after")
    def _check_dedup_limits(self) -> "RelaySettings":
        if self.dedup_trim_to >= self.dedup_max_size:
            raise ValueError("dedup_trim_to must be smaller than dedup_max_size")
        return self

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000

    @classmethod
    def from_file(cls, path: Path) -> "RelaySettings":
        data = yaml.safe_load(path.read_text()) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Invalid relay settings: {path} must contain a mapping")
        for key in ("audit_log_path", "artifacts_dir"):
            value = data.get(key)
            if value and not Path(value).is_absolute():
                data[key] = (path.parent / value).resolve()
        return cls._validate(data)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RelaySettings":
        data: Dict[str, Any] = {}
        for field_name, env_name in _ENV_FIELDS.items():
            value = get_str_env(env_name, environ=environ)
            if value is not None:
                data[field_name] = value

        selectors = {}
        for field_name, env_name in _SELECTOR_ENV_FIELDS.items():
            value = get_str_env(env_name, environ=environ)
            if value is not None:
                selectors[field_name] = value
        data["selectors"] = selectors

        data["browser"] = {
            "headless": get_bool_env("OTPRELAY_HEADLESS", default=True, environ=environ),
            "launch_args": get_list_env("OTPRELAY_BROWSER_ARGS", environ=environ),
        }
        return cls._validate(data)

    @classmethod
    def _validate(cls, data: Mapping[str, Any]) -> "RelaySettings":
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid relay settings: {exc}") from exc


_ENV_FIELDS = {
    "panel_url": "PANEL_URL",
    "panel_username": "PANEL_USERNAME",
    "panel_password": "PANEL_PASSWORD",
    "endpoint_url": "OTP_RECEIVER_URL",
    "secret_token": "OTP_RECEIVER_SECRET",
    "poll_interval_ms": "CHECK_INTERVAL_MS",
    "refresh_every": "OTPRELAY_REFRESH_EVERY",
    "restart_backoff_seconds": "OTPRELAY_RESTART_BACKOFF",
    "forward_timeout_seconds": "OTPRELAY_FORWARD_TIMEOUT",
    "audit_log_path": "OTPRELAY_AUDIT_LOG",
    "artifacts_dir": "OTPRELAY_ARTIFACTS",
}

_SELECTOR_ENV_FIELDS = {
    "login_username": "PANEL_SELECTOR_LOGIN_USERNAME",
    "login_password": "PANEL_SELECTOR_LOGIN_PASSWORD",
    "login_button": "PANEL_SELECTOR_LOGIN_BUTTON",
    "messages": "PANEL_SELECTOR_MESSAGES",
    "message_text": "PANEL_SELECTOR_MESSAGE_TEXT",
}


def load_settings(environ: Optional[Mapping[str, str]] = None) -> RelaySettings:
    """Load settings from ``OTPRELAY_CONFIG`` if set, otherwise from the environment."""
    source = os.environ if environ is None else environ
    config_path = get_str_env("OTPRELAY_CONFIG", environ=source)
    if config_path:
        return RelaySettings.from_file(Path(config_path))
    return RelaySettings.from_env(source)
