"""Settings parsing and logging setup."""
from __future__ import annotations

import json
import logging

import pytest
from pydantic import ValidationError

from biva_api.core.config import Settings
from biva_api.core.logging import JsonFormatter, setup_logging


def test_cors_origins_accept_comma_separated_string():
    settings = Settings(cors_allow_origins="https://biva.ao, https://admin.biva.ao,")

    assert settings.cors_allow_origins == ["https://biva.ao", "https://admin.biva.ao"]


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("postgres://u:p@db:5432/biva", "postgresql+asyncpg://u:p@db:5432/biva"),
        ("postgresql://u:p@db:5432/biva", "postgresql+asyncpg://u:p@db:5432/biva"),
        ("postgresql+asyncpg://u:p@db/biva", "postgresql+asyncpg://u:p@db/biva"),
    ],
)
def test_database_async_url(url, expected):
    assert Settings(database_url=url).database_async_url == expected


def test_log_format_is_validated():
    assert Settings(log_format=" JSON ").log_format == "json"
    with pytest.raises(ValidationError):
        Settings(log_format="xml")


def test_json_formatter_emits_one_object_per_record():
    record = logging.LogRecord("biva_api.test", logging.INFO, __file__, 1, "contract %s active", ("c-1",), None)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "biva_api.test"
    assert payload["message"] == "contract c-1 active"


def test_setup_logging_replaces_root_handlers():
    root = logging.getLogger()
    previous = root.handlers[:]
    previous_level = root.level
    try:
        setup_logging("debug", "json")

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert logging.getLogger("biva_api").level == logging.DEBUG
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    finally:
        for handler in root.handlers[:]:
            root.removeHandler(handler)
        for handler in previous:
            root.addHandler(handler)
        root.setLevel(previous_level)
        logging.getLogger("biva_api").setLevel(logging.NOTSET)
