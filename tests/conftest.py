from __future__ import annotations

import pytest

from otprelay.core.settings import RelaySettings


def build_settings(**overrides) -> RelaySettings:
    data = {
        "panel_url": "https://panel.example.com/login",
        "panel_username": "operator",
        "panel_password": "hunter2",
        "endpoint_url": "https://receiver.example.com/otp",
        "secret_token": "s3cret",
        "poll_interval_ms": 1,
        "restart_backoff_seconds": 0.01,
    }
    data.update(overrides)
    return RelaySettings.model_validate(data)


@pytest.fixture
def settings() -> RelaySettings:
    return build_settings()
