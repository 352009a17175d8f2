"""Tests for structured logging configuration."""

import json

import pytest
import structlog

from device_spine.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def restore_structlog():
    yield
    structlog.reset_defaults()


def test_json_output_is_ecs_compatible(capsys):
    configure_logging(level="INFO", json_format=True, service="device-spine-test")

    get_logger("device_spine.test").info("device_merged", source="fetch", serial_number="ABC123")

    line = capsys.readouterr().out.strip().splitlines()[-1]
    record = json.loads(line)
    assert record["event"] == "device_merged"
    assert record["serial_number"] == "ABC123"
    assert record["service.name"] == "device-spine-test"
    assert record["log.level"] == "info"
    assert "@timestamp" in record


def test_level_filters_debug(capsys):
    configure_logging(level="INFO", json_format=True)

    get_logger("device_spine.test").debug("noisy")

    assert "noisy" not in capsys.readouterr().out
