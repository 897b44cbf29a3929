"""Tests for the database lifecycle helpers and application settings."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError

from app import database
from app.core.config import Settings, get_settings
from app.core.errors import StoreFailure
from app.database import create_db_and_tables, wait_for_database


def _operational_error():
    return OperationalError("SELECT 1", {}, Exception("connection refused"))


@pytest.mark.unit
class TestWaitForDatabase:
    @pytest.fixture(autouse=True)
    def no_sleep(self, monkeypatch):
        sleeps = []
        monkeypatch.setattr(database, "_sleep", sleeps.append)
        return sleeps

    def test_gives_up_after_retries(self, no_sleep):
        engine = MagicMock()
        engine.connect.side_effect = _operational_error()

        with pytest.raises(StoreFailure) as exc_info:
            wait_for_database(engine, retries=3, interval=0.5)

        assert engine.connect.call_count == 3
        assert no_sleep == [0.5, 0.5]
        assert isinstance(exc_info.value.__cause__, OperationalError)

    def test_recovers_after_failure(self, no_sleep):
        engine = MagicMock()
        engine.connect.side_effect = [_operational_error(), MagicMock()]

        wait_for_database(engine, retries=5, interval=1)

        assert engine.connect.call_count == 2
        assert no_sleep == [1]

    def test_other_errors_are_not_retried(self, no_sleep):
        engine = MagicMock()
        engine.connect.side_effect = RuntimeError("bad url")

        with pytest.raises(RuntimeError):
            wait_for_database(engine, retries=5, interval=1)

        assert engine.connect.call_count == 1
        assert no_sleep == []

    def test_logs_each_retry(self, no_sleep, monkeypatch):
        warnings = []

        class RecordingLogger:
            def warning(self, event, **fields):
                warnings.append((event, fields))

            def info(self, event, **fields):
                pass

        monkeypatch.setattr(database, "logger", RecordingLogger())
        engine = MagicMock()
        engine.connect.side_effect = [_operational_error(), _operational_error(), MagicMock()]

        wait_for_database(engine, retries=3, interval=0)

        assert [event for event, _ in warnings] == ["database.unavailable", "database.unavailable"]
        assert [fields["attempt"] for _, fields in warnings] == [1, 2]


@pytest.mark.integration
class TestCreateTables:
    def test_creates_subscriptions_table(self, engine):
        create_db_and_tables(engine)

        columns = {c["name"] for c in inspect(engine).get_columns("subscriptions")}
        assert columns == {
            "id", "service_name", "price", "user_id", "start_date", "end_date", "created_at", "updated_at",
        }

    def test_lifespan_stores_injected_engine(self, app, client, engine):
        assert app.state.engine is engine


@pytest.mark.unit
class TestSettings:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///./local.db")
        monkeypatch.setenv("DB_ECHO", "true")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("LOG_FORMAT", "JSON")
        monkeypatch.setenv("PORT", "9000")
        get_settings.cache_clear()
        try:
            settings = get_settings()
        finally:
            get_settings.cache_clear()

        assert settings.database_url == "sqlite:///./local.db"
        assert settings.db_echo is True
        assert settings.log_level == "DEBUG"
        assert settings.log_format == "json"
        assert settings.port == 9000

    def test_defaults(self):
        settings = Settings()

        assert settings.db_connect_retries == 30
        assert settings.db_retry_interval == 2.0
        assert settings.port == 8080
