"""Tests for shared common modules — models, database, config, logging."""

import logging
import sqlite3
from datetime import datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from src.common.config import RotationSettings, Settings, get_yourls_signature
from src.common.database import get_connection, init_db
from src.common.logging import setup_logging
from src.common.models import NO_MARKER, GeneratedLink, Marker, RawLinkRecord


class TestMarker:
    def test_percentage_alias(self):
        marker = Marker(id="12345", percentage=40)
        assert marker.target_percentage == 40

    def test_populate_by_name(self):
        assert Marker(id="A", target_percentage=60).target_percentage == 60

    def test_id_stripped(self):
        assert Marker(id="  A ", target_percentage=10).id == "A"

    def test_frozen(self):
        marker = Marker(id="A", target_percentage=10)
        with pytest.raises(PydanticValidationError):
            marker.target_percentage = 20

    @pytest.mark.parametrize("pct", [-1, 100.5])
    def test_percentage_range(self, pct):
        with pytest.raises(PydanticValidationError):
            Marker(id="A", target_percentage=pct)


class TestRawLinkRecord:
    def test_defaults(self):
        record = RawLinkRecord(short_url="https://smkt.us/a", original_url="https://www.aviasales.ru/")
        assert record.raw_marker == NO_MARKER
        assert record.clicks == 0

    def test_negative_clicks_rejected(self):
        with pytest.raises(PydanticValidationError):
            RawLinkRecord(short_url="s", original_url="o", clicks=-3)


class TestGeneratedLink:
    def test_to_dict(self):
        link = GeneratedLink(
            original_url="https://www.aviasales.ru/?marker=A.x",
            short_url="https://smkt.us/1",
            marker_id="A",
            subid="x",
            created_at=datetime(2024, 5, 1, 9, 0),
        )
        assert link.to_dict() == {
            "original_url": "https://www.aviasales.ru/?marker=A.x",
            "short_url": "https://smkt.us/1",
            "marker": "A",
            "subid": "x",
            "created_at": "2024-05-01T09:00:00",
        }


class TestDatabase:
    def test_init_creates_table(self, tmp_path):
        db_path = str(tmp_path / "nested" / "test.db")
        init_db(db_path)

        conn = sqlite3.connect(db_path)
        tables = {
            row[0]
            for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
        conn.close()
        assert "link_analytics" in tables

    def test_init_is_idempotent(self, tmp_path):
        db_path = str(tmp_path / "test.db")
        init_db(db_path)
        init_db(db_path)

    def test_row_factory(self, tmp_path):
        db_path = str(tmp_path / "test.db")
        init_db(db_path)
        conn = get_connection(db_path)
        try:
            conn.execute(
                "INSERT INTO link_analytics (short_url, original_url, created_at, last_updated) "
                "VALUES ('s', 'o', '2024-05-01', '2024-05-01')"
            )
            row = conn.execute("SELECT marker, clicks FROM link_analytics").fetchone()
        finally:
            conn.close()
        assert row["marker"] == NO_MARKER
        assert row["clicks"] == 0


class TestSettings:
    def test_defaults_without_file(self, tmp_path, monkeypatch):
        for var in ("YOURLS_API_URL", "LINK_DOMAIN", "LINK_ROTATOR_DB_PATH"):
            monkeypatch.delenv(var, raising=False)
        loaded = Settings.load(tmp_path / "missing.yaml")
        assert loaded.rotation.link_domain == "aviasales.ru"
        assert loaded.rotation.history_window == 500
        assert loaded.rotation.max_batch_size == 100
        assert loaded.yourls.min_request_interval_seconds == 0.1

    def test_yaml_values(self, tmp_path, monkeypatch):
        monkeypatch.delenv("LINK_DOMAIN", raising=False)
        path = tmp_path / "settings.yaml"
        path.write_text(
            "rotation:\n  history_window: 200\n  link_domain: example.org\n",
            encoding="utf-8",
        )
        loaded = Settings.load(path)
        assert loaded.rotation.history_window == 200
        assert loaded.rotation.link_domain == "example.org"

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "settings.yaml"
        path.write_text("rotation:\n  link_domain: example.org\n", encoding="utf-8")
        monkeypatch.setenv("LINK_DOMAIN", "aviasales.kz")
        monkeypatch.setenv("YOURLS_API_URL", "https://short.test/yourls-api.php")
        monkeypatch.setenv("LINK_ROTATOR_DB_PATH", str(tmp_path / "x.db"))

        loaded = Settings.load(path)
        assert loaded.rotation.link_domain == "aviasales.kz"
        assert loaded.yourls.api_url == "https://short.test/yourls-api.php"
        assert loaded.database.db_path == str(tmp_path / "x.db")

    def test_bundled_settings_load(self, project_root):
        loaded = Settings.load(project_root / "config" / "settings.yaml")
        assert loaded.rotation.percentage_tolerance == 1.0

    @pytest.mark.parametrize("field, value", [
        ("max_batch_size", 101),
        ("max_batch_size", 0),
        ("history_window", 1001),
    ])
    def test_rotation_bounds(self, field, value):
        with pytest.raises(PydanticValidationError):
            RotationSettings(**{field: value})

    def test_out_of_range_yaml_rejected(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("rotation:\n  max_batch_size: 500\n", encoding="utf-8")
        with pytest.raises(PydanticValidationError):
            Settings.load(path)

    def test_signature_required(self, monkeypatch):
        monkeypatch.delenv("YOURLS_SIGNATURE_TOKEN", raising=False)
        with pytest.raises(ValueError):
            get_yourls_signature()


class TestLogging:
    def test_returns_named_logger(self):
        logger = setup_logging(module_name="test.common.logging")
        assert logger.name == "test.common.logging"
        assert len(logger.handlers) == 1

    def test_handler_not_duplicated(self):
        setup_logging(module_name="test.common.dup")
        logger = setup_logging(module_name="test.common.dup")
        assert len(logger.handlers) == 1

    def test_env_level(self, monkeypatch):
        monkeypatch.setenv("LINK_ROTATOR_LOG_LEVEL", "DEBUG")
        logger = setup_logging(module_name="test.common.env_level")
        assert logger.level == logging.DEBUG
