"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from apiparity.config import REQUIRED_FIELDS, ParityConfig, load_config
from apiparity.errors import ConfigurationError, ErrorCode
from apiparity.models import CompareMode


@pytest.fixture
def full_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OLD_URL", "http://old.env")
    monkeypatch.setenv("NEW_URL", "http://new.env")
    monkeypatch.setenv("COLLECTION_ID", "col-env")
    monkeypatch.setenv("API_KEY", "PMAK-env")


class TestLoadConfig:
    """Tests for load_config()."""

    def test_defaults(self) -> None:
        config = load_config()

        assert config.old_url is None
        assert config.sort_arrays is False
        assert config.extended_logs is False
        assert config.mode is None
        assert config.timeout == 30.0
        assert config.collection_api_url == "https://api.postman.com"

    def test_environment(self, full_env) -> None:
        config = load_config()

        assert config.old_url == "http://old.env"
        assert config.new_url == "http://new.env"
        assert config.collection_id == "col-env"
        assert config.api_key == "PMAK-env"
        assert config.missing_required() == []

    def test_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "apiparity.yaml"
        path.write_text(
            "old_url: http://old.file\n"
            "new_url: http://new.file\n"
            "sort_arrays: true\n"
            "timeout: 5\n"
        )

        config = load_config(path)

        assert config.old_url == "http://old.file"
        assert config.sort_arrays is True
        assert config.timeout == 5.0

    def test_environment_beats_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "apiparity.yaml"
        path.write_text("old_url: http://old.file\n")
        monkeypatch.setenv("OLD_URL", "http://old.env")

        assert load_config(path).old_url == "http://old.env"

    def test_overrides_beat_environment(self, full_env) -> None:
        config = load_config(old_url="http://old.cli", request_id=None)

        assert config.old_url == "http://old.cli"
        assert config.new_url == "http://new.env"

    def test_missing_file_is_ignored(self, tmp_path: Path) -> None:
        assert load_config(tmp_path / "absent.yaml").old_url is None

    def test_dotenv_file(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("OLD_URL=http://old.dotenv\nCOLLECTION_ID=col-dotenv\n")

        config = load_config()

        assert config.old_url == "http://old.dotenv"
        assert config.collection_id == "col-dotenv"

    @pytest.mark.parametrize(
        "raw, expected",
        [("true", True), ("TRUE", True), ("1", True), ("yes", True), ("false", False), ("0", False), ("", False)],
    )
    def test_boolean_flags(self, monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
        monkeypatch.setenv("SORT_ARRAYS", raw)
        monkeypatch.setenv("EXTENDED_LOGS", raw)

        config = load_config()

        assert config.sort_arrays is expected
        assert config.extended_logs is expected

    def test_compare_mode(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COMPARE_MODE", "SINGLE")
        assert load_config().mode is CompareMode.SINGLE

    def test_invalid_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OLD_URL", "old.test")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config()

        assert exc_info.value.error_code is ErrorCode.CONFIG_INVALID
        assert "http://" in exc_info.value.message

    def test_invalid_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TIMEOUT", "soon")

        with pytest.raises(ConfigurationError):
            load_config()

    def test_non_positive_timeout(self) -> None:
        with pytest.raises(ConfigurationError):
            load_config(timeout=0)

    def test_invalid_mode(self) -> None:
        with pytest.raises(ConfigurationError):
            load_config(mode="sometimes")


class TestRequiredInputs:
    """Tests for missing input diagnostics."""

    def test_all_missing_in_order(self) -> None:
        assert ParityConfig().missing_required() == list(REQUIRED_FIELDS.values())
        assert list(REQUIRED_FIELDS.values()) == ["COLLECTION_ID", "API_KEY", "OLD_URL", "NEW_URL"]

    def test_blank_values_count_as_missing(self) -> None:
        config = ParityConfig(collection_id="  ", api_key="", old_url="", new_url="http://new.test")
        assert config.missing_required() == ["COLLECTION_ID", "API_KEY", "OLD_URL"]

    def test_validate_required_lists_every_input(self) -> None:
        config = ParityConfig(old_url="http://old.test")

        with pytest.raises(ConfigurationError) as exc_info:
            config.validate_required()

        assert exc_info.value.missing == [
            "COLLECTION_ID is not set",
            "API_KEY is not set",
            "NEW_URL is not set",
        ]
        assert exc_info.value.error_code is ErrorCode.CONFIG_MISSING

    def test_validate_required_passes(self) -> None:
        ParityConfig(
            old_url="http://old.test",
            new_url="http://new.test",
            collection_id="c",
            api_key="k",
        ).validate_required()

    def test_request_id_is_optional(self) -> None:
        config = ParityConfig(
            old_url="http://old.test", new_url="http://new.test", collection_id="c", api_key="k"
        )
        assert config.request_id is None
        assert config.missing_required() == []


class TestBaseUrls:
    """Tests for base_urls."""

    def test_base_urls(self) -> None:
        config = ParityConfig(old_url="http://localhost:3000", new_url="http://localhost:4000")
        assert config.base_urls() == ("http://localhost:3000", "http://localhost:4000")

    def test_base_urls_docker_rewrite(self) -> None:
        config = ParityConfig(
            old_url="http://localhost:3000",
            new_url="https://new.example.com",
            docker_host_rewrite=True,
        )
        assert config.base_urls() == ("http://host.docker.internal:3000", "https://new.example.com")

    def test_base_urls_missing(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            ParityConfig(old_url="http://old.test").base_urls()

        assert exc_info.value.missing == ["NEW_URL is not set"]
