"""Tests for configuration loading."""

import json

import pytest
import yaml
from pydantic import ValidationError

from config.settings import (
    AppConfig,
    NotificationConfig,
    get_default_config,
    get_template_config,
)


def test_default_config_is_created_from_template(tmp_path) -> None:
    config_path = tmp_path / "registration_config.json"

    config = get_default_config(config_path)

    assert config_path.exists()
    assert config.notifications.send_timeout_seconds == 30.0
    assert config.notifications.max_concurrent_sends == 5
    assert config.notifications.alert_cache_ttl_seconds == 60.0
    assert config.email.enabled is False
    assert config.registration.max_photo_bytes == 5 * 1024 * 1024


def test_example_config_is_copied_when_present(tmp_path) -> None:
    example = get_template_config().model_dump(mode="json")
    example["notifications"]["admin_recipients"] = ["admin@club.test"]
    (tmp_path / "registration_config.example.json").write_text(json.dumps(example))

    config = get_default_config(tmp_path / "registration_config.json")

    assert config.notifications.admin_recipients == ["admin@club.test"]


def test_missing_sections_are_rejected(tmp_path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"database": {"path": "x.db"}}))

    with pytest.raises(ValueError, match="Missing required config sections"):
        AppConfig.load_from_file(config_path)


def test_missing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        AppConfig.load_from_file(tmp_path / "absent.json")


def test_concurrency_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        NotificationConfig(max_concurrent_sends=0)


def test_unknown_activity_log_rejected() -> None:
    with pytest.raises(ValidationError):
        NotificationConfig(activity_log="syslog")


def test_save_to_file_writes_yaml(tmp_path) -> None:
    config = AppConfig(notifications=NotificationConfig(admin_recipients=["a@club.test"]))
    output = tmp_path / "out" / "config.yaml"

    config.save_to_file(output)

    data = yaml.safe_load(output.read_text())
    assert data["notifications"]["admin_recipients"] == ["a@club.test"]
