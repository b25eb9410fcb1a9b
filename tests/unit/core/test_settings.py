"""Tests for settings loading and validation."""

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from gitlobster.config.settings import Settings, load_settings
from gitlobster.core.exceptions import ConfigurationError, ConflictingFilterError
from gitlobster.core.models.config import FilterMode, ForceProtocol


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Isolate from GTLBSTR_* variables and any .env in the working directory."""
    for key in list(os.environ):
        if key.startswith("GTLBSTR_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


def make_settings(**kwargs) -> Settings:
    return Settings(fetch_url="https://gitlab.local", fetch_token="token", **kwargs)


@pytest.mark.unit
class TestSettings:
    """Tests for Settings."""

    def test_minimal(self) -> None:
        config = make_settings().to_mirror_config()
        assert config.source.url == "https://gitlab.local"
        assert config.backup is None
        assert config.patterns is None
        assert config.concurrency_limit == 21

    def test_fetch_url_is_required(self) -> None:
        with pytest.raises(ValidationError):
            Settings(fetch_token="token")

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GTLBSTR_FETCH_URL", "https://env.local")
        monkeypatch.setenv("GTLBSTR_FETCH_TOKEN", "env-token")
        monkeypatch.setenv("GTLBSTR_ONLY_MASTER", "true")
        monkeypatch.setenv("GTLBSTR_CONCURRENCY_LIMIT", "4")
        monkeypatch.setenv("GTLBSTR_INCLUDE", '["^team/"]')

        config = load_settings().to_mirror_config()
        assert config.source.url == "https://env.local"
        assert config.only_default_branch is True
        assert config.concurrency_limit == 4
        assert config.patterns is not None
        assert config.patterns.mode == FilterMode.INCLUDE

    def test_explicit_values_override_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GTLBSTR_FETCH_URL", "https://env.local")
        monkeypatch.setenv("GTLBSTR_FETCH_TOKEN", "env-token")
        config = load_settings(fetch_url="https://cli.local").to_mirror_config()
        assert config.source.url == "https://cli.local"
        assert config.source.token == "env-token"

    def test_backup(self) -> None:
        config = make_settings(
            backup_url="https://backup.local",
            backup_token="b",
            backup_group="mirrors",
        ).to_mirror_config()
        assert config.backup is not None
        assert config.backup.group == "mirrors"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"backup_url": "https://backup.local"},
            {"backup_token": "b"},
            {"backup_group": "mirrors"},
        ],
    )
    def test_partial_backup_is_rejected(self, kwargs: dict) -> None:
        with pytest.raises(ConfigurationError, match="--bt and --bu"):
            make_settings(**kwargs).to_mirror_config()

    @pytest.mark.parametrize("url", ["gitlab.local", "ftp://gitlab.local", "https://"])
    def test_malformed_url(self, url: str) -> None:
        with pytest.raises(ConfigurationError):
            Settings(fetch_url=url, fetch_token="token").to_mirror_config()

    def test_include_and_exclude_conflict(self) -> None:
        with pytest.raises(ConflictingFilterError):
            make_settings(include=["a"], exclude=["b"]).to_mirror_config()

    @pytest.mark.parametrize("direction", ["download", "upload"])
    def test_force_protocols_conflict(self, direction: str) -> None:
        settings = make_settings(
            **{f"{direction}_force_http": True, f"{direction}_force_https": True}
        )
        with pytest.raises(ConfigurationError, match=f"--{direction}-force-http"):
            settings.to_mirror_config()

    def test_force_protocols(self) -> None:
        config = make_settings(
            download_force_http=True, upload_force_https=True
        ).to_mirror_config()
        assert config.download_protocol == ForceProtocol.HTTP
        assert config.upload_protocol == ForceProtocol.HTTPS

    def test_concurrency_must_be_positive(self) -> None:
        with pytest.raises(ConfigurationError):
            make_settings(concurrency_limit=0).to_mirror_config()

    def test_objects_per_page_range(self) -> None:
        with pytest.raises(ConfigurationError):
            make_settings(objects_per_page=101).to_mirror_config()

    def test_flag_renames(self, tmp_path: Path) -> None:
        config = make_settings(
            dst=str(tmp_path / "mirror"),
            clear_dst=True,
            only_master=True,
            gitlab_timeout=12,
            continue_on_error=True,
        ).to_mirror_config()
        assert config.destination == tmp_path / "mirror"
        assert config.clear_destination is True
        assert config.only_default_branch is True
        assert config.request_timeout == 12
        assert config.continue_on_error is True
