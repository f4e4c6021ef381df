from __future__ import annotations

from pathlib import Path

import pydantic
import pytest

from otprelay.core.settings import RelaySettings, load_settings


BASE_ENV = {
    "PANEL_URL": "https://panel.example.com/login",
    "PANEL_USERNAME": "operator",
    "PANEL_PASSWORD": "hunter2",
    "OTP_RECEIVER_URL": "https://receiver.example.com/otp",
    "OTP_RECEIVER_SECRET": "s3cret",
}


def test_from_env_applies_defaults():
    settings = RelaySettings.from_env(BASE_ENV)

    assert settings.panel_username == "operator"
    assert settings.poll_interval_ms == 5000
    assert settings.poll_interval_seconds == 5
    assert settings.refresh_every == 60
    assert settings.restart_backoff_seconds == 30
    assert settings.dedup_max_size == 1000
    assert settings.dedup_trim_to == 500
    assert settings.selectors.messages == ".message-row"
    assert settings.selectors.message_text == ".message-text"
    assert settings.browser.headless is True
    assert settings.audit_log_path is None


def test_from_env_reads_overrides():
    env = dict(BASE_ENV)
    env.update(
        {
            "CHECK_INTERVAL_MS": "2500",
            "PANEL_SELECTOR_MESSAGES": "tr.sms",
            "OTPRELAY_HEADLESS": "false",
            "OTPRELAY_BROWSER_ARGS": '--lang=en-US "--window-size=1280,800"',
            "OTPRELAY_AUDIT_LOG": "/var/log/otprelay.jsonl",
        }
    )
    settings = RelaySettings.from_env(env)

    assert settings.poll_interval_seconds == 2.5
    assert settings.selectors.messages == "tr.sms"
    assert settings.selectors.login_username == 'input[name="username"]'
    assert settings.browser.headless is False
    assert settings.browser.launch_args == ["--lang=en-US", "--window-size=1280,800"]
    assert settings.audit_log_path == Path("/var/log/otprelay.jsonl")


def test_missing_required_values_raise_value_error():
    env = dict(BASE_ENV)
    del env["OTP_RECEIVER_SECRET"]
    with pytest.raises(ValueError, match="secret_token"):
        RelaySettings.from_env(env)


def test_dedup_limits_are_checked():
    env = dict(BASE_ENV)
    with pytest.raises(ValueError):
        RelaySettings.model_validate(
            {**RelaySettings.from_env(env).model_dump(), "dedup_max_size": 100, "dedup_trim_to": 100}
        )


def test_settings_are_immutable():
    settings = RelaySettings.from_env(BASE_ENV)
    with pytest.raises(pydantic.ValidationError):
        settings.poll_interval_ms = 1


def test_secrets_are_hidden_from_repr():
    text = repr(RelaySettings.from_env(BASE_ENV))
    assert "hunter2" not in text
    assert "s3cret" not in text


def test_from_file_resolves_relative_paths(tmp_path):
    config = tmp_path / "relay.yml"
    config.write_text(
        "\n".join(
            [
                "panel_url: https://panel.example.com/login",
                "panel_username: operator",
                "panel_password: hunter2",
                "endpoint_url: https://receiver.example.com/otp",
                "secret_token: s3cret",
                "audit_log_path: logs/forwarded.jsonl",
                "refresh_every: 12",
                "selectors:",
                "  message_text: td.body",
            ]
        )
    )
    settings = RelaySettings.from_file(config)

    assert settings.audit_log_path == (tmp_path / "logs" / "forwarded.jsonl").resolve()
    assert settings.refresh_every == 12
    assert settings.selectors.message_text == "td.body"


def test_load_settings_prefers_config_file(tmp_path):
    config = tmp_path / "relay.yml"
    config.write_text(
        "panel_url: https://file.example.com/\n"
        "panel_username: from-file\n"
        "panel_password: x\n"
        "endpoint_url: https://receiver.example.com/otp\n"
        "secret_token: y\n"
    )
    env = dict(BASE_ENV, OTPRELAY_CONFIG=str(config))

    assert load_settings(env).panel_username == "from-file"
    assert load_settings(BASE_ENV).panel_username == "operator"
