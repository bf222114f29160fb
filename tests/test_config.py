"""Tests for configuration paths, settings persistence and precedence."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from httpstash.config import (
    atomic_write,
    get_cache_dir,
    get_config_dir,
    load_settings,
    resolve_credential,
    resolve_settings,
    save_settings,
)
from httpstash.exceptions import ConfigError
from httpstash.models import CacheConfig, Settings


@pytest.fixture()
def settings_file(tmp_path: Path) -> Path:
    return tmp_path / "config.json"


# ------------------------------------------------------------------ #
# Directories
# ------------------------------------------------------------------ #


class TestDirectories:
    def test_xdg_dirs(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setattr("httpstash.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
        monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
        assert get_config_dir() == tmp_path / "cfg" / "httpstash"
        assert get_cache_dir() == tmp_path / "cache" / "httpstash"
        assert get_cache_dir().is_dir()

    def test_fallback_dirs(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setattr("httpstash.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".httpstash"
        assert get_cache_dir() == tmp_path / ".httpstash" / "cache"


# ------------------------------------------------------------------ #
# Atomic writes
# ------------------------------------------------------------------ #


class TestAtomicWrite:
    def test_writes_text_and_bytes(self, tmp_path: Path) -> None:
        atomic_write(tmp_path / "a.txt", "héllo")
        atomic_write(tmp_path / "b.bin", b"\x00\x01")
        assert (tmp_path / "a.txt").read_text(encoding="utf-8") == "héllo"
        assert (tmp_path / "b.bin").read_bytes() == b"\x00\x01"

    def test_replaces_and_leaves_no_temp_files(self, tmp_path: Path) -> None:
        target = tmp_path / "f.json"
        atomic_write(target, "1")
        atomic_write(target, "2")
        assert target.read_text() == "2"
        assert [p.name for p in tmp_path.iterdir()] == ["f.json"]

    def test_failure_keeps_previous_content(self, tmp_path: Path, monkeypatch) -> None:
        target = tmp_path / "f.json"
        atomic_write(target, "old")

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("httpstash.config.os.replace", broken_replace)
        with pytest.raises(OSError):
            atomic_write(target, "new")
        monkeypatch.undo()
        assert target.read_text() == "old"
        assert [p.name for p in tmp_path.iterdir()] == ["f.json"]

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        atomic_write(tmp_path / "deep" / "er" / "f.txt", "x")
        assert (tmp_path / "deep" / "er" / "f.txt").read_text() == "x"


# ------------------------------------------------------------------ #
# Settings
# ------------------------------------------------------------------ #


class TestSettings:
    def test_missing_file_gives_defaults(self, settings_file: Path) -> None:
        settings = load_settings(settings_file)
        assert settings.base_url is None
        assert settings.cache.ttl_seconds == 600
        assert settings.cache.namespace == "httpstash_"
        assert settings.cache.clear_on_init is True
        assert settings.request.max_retries == 0
        assert settings.request.single_flight is False

    def test_round_trip(self, settings_file: Path) -> None:
        original = Settings(
            base_url="https://api.example.com",
            cache=CacheConfig(ttl_seconds=30, namespace="App_"),
        )
        save_settings(original, settings_file)
        assert load_settings(settings_file) == original

    def test_invalid_json(self, settings_file: Path) -> None:
        settings_file.write_text("{not json")
        with pytest.raises(ConfigError):
            load_settings(settings_file)

    def test_invalid_values(self, settings_file: Path) -> None:
        settings_file.write_text(json.dumps({"cache": {"ttl_seconds": -5}}))
        with pytest.raises(ConfigError):
            load_settings(settings_file)


class TestResolveSettings:
    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch) -> None:
        monkeypatch.delenv("HTTPSTASH_BASE_URL", raising=False)
        monkeypatch.delenv("HTTPSTASH_CACHE_TTL", raising=False)

    def test_file_value(self, settings_file: Path) -> None:
        save_settings(Settings(base_url="https://file.example.com"), settings_file)
        assert resolve_settings(path=settings_file).base_url == "https://file.example.com"

    def test_env_beats_file(self, settings_file: Path, monkeypatch) -> None:
        save_settings(Settings(base_url="https://file.example.com"), settings_file)
        monkeypatch.setenv("HTTPSTASH_BASE_URL", "https://env.example.com")
        assert resolve_settings(path=settings_file).base_url == "https://env.example.com"

    def test_cli_beats_env(self, settings_file: Path, monkeypatch) -> None:
        monkeypatch.setenv("HTTPSTASH_BASE_URL", "https://env.example.com")
        settings = resolve_settings(cli_base_url="https://cli.example.com", path=settings_file)
        assert settings.base_url == "https://cli.example.com"

    def test_env_ttl(self, settings_file: Path, monkeypatch) -> None:
        monkeypatch.setenv("HTTPSTASH_CACHE_TTL", "45")
        assert resolve_settings(path=settings_file).cache.ttl_seconds == 45.0

    def test_bad_env_ttl(self, settings_file: Path, monkeypatch) -> None:
        monkeypatch.setenv("HTTPSTASH_CACHE_TTL", "soon")
        with pytest.raises(ConfigError, match="HTTPSTASH_CACHE_TTL"):
            resolve_settings(path=settings_file)


class TestResolveCredential:
    def test_env(self, monkeypatch) -> None:
        monkeypatch.setenv("MY_SECRET", "s3cret")
        assert resolve_credential("env:MY_SECRET") == "s3cret"

    def test_file_is_stripped(self, tmp_path: Path) -> None:
        f = tmp_path / "token"
        f.write_text("  tok  \n")
        assert resolve_credential(f"file:{f}") == "tok"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_credential(f"file:{tmp_path / 'nope'}")

    def test_unknown_format(self) -> None:
        with pytest.raises(ConfigError, match="Unknown credential source format"):
            resolve_credential("vault:secret/path")
