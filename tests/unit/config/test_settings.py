"""Tests for settings loading and logging setup."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from pydantic import ValidationError

from openscout.config.settings import ObservabilitySettings, Settings, get_settings, set_settings
from openscout.observability.logging import setup_logging


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.app_name == "OpenScout"
        assert settings.search.driver == "collection"
        assert settings.search.prefix == ""
        assert settings.search.soft_delete is False
        assert settings.search.per_page == 15
        assert settings.meilisearch.host == "http://localhost:7700"
        assert settings.meilisearch.key is None
        assert settings.observability.log_format == "json"

    def test_environment_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENSCOUT_SEARCH__DRIVER", "MeiliSearch")
        monkeypatch.setenv("OPENSCOUT_SEARCH__PREFIX", "staging_")
        monkeypatch.setenv("OPENSCOUT_SEARCH__SOFT_DELETE", "true")
        monkeypatch.setenv("OPENSCOUT_MEILISEARCH__KEY", "masterKey")

        settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.search.driver == "meilisearch"
        assert settings.search.prefix == "staging_"
        assert settings.search.soft_delete is True
        assert settings.meilisearch.key == "masterKey"

    def test_invalid_page_size(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, search={"per_page": 0})  # type: ignore[call-arg]

    def test_from_yaml(self, tmp_path: Path) -> None:
        config = tmp_path / "openscout.yaml"
        config.write_text(
            "search:\n"
            "  driver: database\n"
            "  per_page: 25\n"
            "meilisearch:\n"
            "  host: http://search:7700\n"
            "  timeout: 5\n"
            "observability:\n"
            "  log_format: console\n"
        )

        settings = Settings.from_yaml(config)

        assert settings.search.driver == "database"
        assert settings.search.per_page == 25
        assert settings.meilisearch.host == "http://search:7700"
        assert settings.meilisearch.timeout == 5.0
        assert settings.observability.log_format == "console"

    def test_from_empty_yaml(self, tmp_path: Path) -> None:
        config = tmp_path / "empty.yaml"
        config.write_text("")
        assert Settings.from_yaml(config).search.driver == "collection"

    def test_from_missing_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            Settings.from_yaml(tmp_path / "missing.yaml")

    def test_global_settings(self, settings: Settings) -> None:
        assert get_settings() is settings

        replacement = Settings(_env_file=None, search={"prefix": "x_"})  # type: ignore[call-arg]
        set_settings(replacement)
        assert get_settings().search.prefix == "x_"


class TestLogging:
    @pytest.fixture(autouse=True)
    def restore_root_logger(self) -> Iterator[None]:
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers = handlers
        root.setLevel(level)

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging(ObservabilitySettings(log_level="debug", log_format="json"))

        logging.getLogger("openscout.test").info("Indexed %d records", 3)

        line = capsys.readouterr().err.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "Indexed 3 records"
        assert event["level"] == "info"
        assert event["logger"] == "openscout.test"

    def test_level_filtering(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging(ObservabilitySettings(log_level="warning"))

        logging.getLogger("openscout.test").info("hidden")

        assert logging.getLogger().level == logging.WARNING
        assert "hidden" not in capsys.readouterr().err

    def test_console_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging(ObservabilitySettings(log_format="console"))
        logging.getLogger("openscout.test").warning("engine degraded")
        assert "engine degraded" in capsys.readouterr().err
