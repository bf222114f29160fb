"""Tests for the diskcache-backed ExpiryStore."""

from __future__ import annotations

from pathlib import Path

import pytest

from httpstash.cache import ExpiryStore


class TestExpiryStore:
    def test_record_and_read(self, expiry_store: ExpiryStore) -> None:
        expiry_store.record_write("ns_a", 123.5)
        assert expiry_store.last_write("ns_a") == 123.5

    def test_unknown_name_returns_none(self, expiry_store: ExpiryStore) -> None:
        assert expiry_store.last_write("missing") is None

    def test_default_timestamp_is_now(self, expiry_store: ExpiryStore, monkeypatch) -> None:
        monkeypatch.setattr("httpstash.cache.expiry.time.time", lambda: 42.0)
        expiry_store.record_write("ns_a")
        assert expiry_store.last_write("ns_a") == 42.0

    def test_forget(self, expiry_store: ExpiryStore) -> None:
        expiry_store.record_write("ns_a", 1.0)
        expiry_store.forget("ns_a")
        assert expiry_store.last_write("ns_a") is None

    def test_forget_missing_is_noop(self, expiry_store: ExpiryStore) -> None:
        expiry_store.forget("missing")

    def test_names_filters_by_prefix(self, expiry_store: ExpiryStore) -> None:
        expiry_store.record_write("ns_a", 1.0)
        expiry_store.record_write("ns_b", 2.0)
        expiry_store.record_write("other_c", 3.0)
        assert sorted(expiry_store.names("ns_")) == ["ns_a", "ns_b"]
        assert len(expiry_store.names()) == 3

    def test_persists_across_instances(self, tmp_path: Path) -> None:
        with ExpiryStore(tmp_path / "exp") as store:
            store.record_write("ns_a", 9.0)
        with ExpiryStore(tmp_path / "exp") as store:
            assert store.last_write("ns_a") == 9.0

    def test_close_is_idempotent(self, tmp_path: Path) -> None:
        store = ExpiryStore(tmp_path / "exp")
        store.close()
        store.close()

    def test_closed_store_raises(self, tmp_path: Path) -> None:
        store = ExpiryStore(tmp_path / "exp")
        store.close()
        with pytest.raises(RuntimeError, match="closed"):
            store.last_write("ns_a")

    def test_directory_property(self, tmp_path: Path) -> None:
        with ExpiryStore(tmp_path / "exp") as store:
            assert store.directory == tmp_path / "exp"
            assert store.directory.is_dir()
