from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from weatherhub import errors
from weatherhub.config import get_settings
from weatherhub.errors import ErrorKind
from weatherhub.filters import created_within_hours, last_n, parse_get_last
from weatherhub.schemas import WeatherOut

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def _weather(hours_ago: float, naive: bool = False) -> WeatherOut:
    created = NOW - timedelta(hours=hours_ago)
    if naive:
        created = created.replace(tzinfo=None)
    return WeatherOut(id=uuid4(), temperature=1.0, humidity=2.0, city_id=uuid4(), created_at=created)


class TestGetLast:
    @pytest.mark.parametrize("raw, expected", [(None, None), ("", None), ("3", 3), ("-2", -2)])
    def test_parse(self, raw, expected):
        assert parse_get_last(raw) == expected

    def test_rejects_text(self):
        with pytest.raises(errors.InvalidParameter) as excinfo:
            parse_get_last("abc")
        assert excinfo.value.kind is ErrorKind.INVALID_PARAMETER
        assert excinfo.value.message == "get_last must be a number"

    def test_last_n(self):
        assert last_n([1, 2, 3, 4], 2) == [3, 4]
        assert last_n([1, 2], 5) == [1, 2]
        assert last_n([1, 2], 0) == []
        assert last_n([1, 2], -1) == []

    def test_created_within_hours(self):
        rows = [_weather(5), _weather(1.5), _weather(0.5, naive=True)]
        kept = created_within_hours(rows, 2, now=NOW)
        assert kept == rows[1:]

    def test_window_beyond_datetime_range(self):
        rows = [_weather(5), _weather(0.5)]
        assert created_within_hours(rows, 10**9, now=NOW) == rows
        assert created_within_hours(rows, 10**12, now=NOW) == rows
        assert created_within_hours(rows, -(10**12), now=NOW) == []

    def test_boundary_is_exclusive(self):
        rows = [_weather(2)]
        assert created_within_hours(rows, 2, now=NOW) == []


class TestErrorKinds:
    @pytest.mark.parametrize(
        "cls, kind",
        [
            (errors.NotFound, ErrorKind.NOT_FOUND),
            (errors.ReferenceNotFound, ErrorKind.REFERENCE_NOT_FOUND),
            (errors.MissingParameter, ErrorKind.MISSING_PARAMETER),
            (errors.InvalidParameter, ErrorKind.INVALID_PARAMETER),
            (errors.InvalidID, ErrorKind.INVALID_ID),
            (errors.UnsupportedMethod, ErrorKind.UNSUPPORTED_METHOD),
            (errors.DecodeError, ErrorKind.DECODE_ERROR),
            (errors.StoreError, ErrorKind.STORE_ERROR),
        ],
    )
    def test_kind(self, cls, kind):
        exc = cls("boom")
        assert isinstance(exc, errors.ApiError)
        assert exc.kind is kind
        assert str(exc) == "boom"


class TestSettings:
    def test_database_url_wins(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite://")
        monkeypatch.setenv("ALLOWED_ORIGINS", "http://a.example, http://b.example,")
        settings = get_settings()
        assert settings.database_url == "sqlite://"
        assert settings.allowed_origins == ["http://a.example", "http://b.example"]

    def test_postgres_parts(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("ALLOWED_ORIGINS", raising=False)
        monkeypatch.setenv("POSTGRES_USER", "u")
        monkeypatch.setenv("POSTGRES_PASSWORD", "p")
        monkeypatch.setenv("POSTGRES_DB_NAME", "weather")
        monkeypatch.setenv("POSTGRES_DB_HOST", "db")
        monkeypatch.setenv("POSTGRES_SSLMODE", "require")
        monkeypatch.setenv("LISTEN_PORT", "8080")

        settings = get_settings()
        assert settings.database_url == "postgresql+psycopg://u:p@db:5432/weather?sslmode=require"
        assert settings.allowed_origins == []
        assert settings.listen_port == 8080
