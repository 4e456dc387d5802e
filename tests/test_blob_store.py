"""Tests for the local filesystem blob store."""

from unittest.mock import patch

import pytest

from vendor_platform.core.exceptions import StorageError
from vendor_platform.integrations.blob_store import LocalBlobStore, get_blob_store, init_blob_store


@pytest.fixture()
def store(tmp_path):
    return LocalBlobStore(tmp_path / "store")


class TestLocalBlobStore:
    def test_put_get(self, store):
        ref = store.put(b"hello", "greeting.TXT")
        assert ref.endswith(".txt")
        assert store.exists(ref)
        assert store.get(ref) == b"hello"

    def test_references_are_unique(self, store):
        assert store.put(b"a", "x.pdf") != store.put(b"a", "x.pdf")

    def test_no_temp_files_left(self, store):
        store.put(b"data", "a.pdf")
        assert not list(store.base_path.glob("*.tmp"))

    def test_delete_missing_is_fine(self, store):
        store.delete("does-not-exist.pdf")

    def test_delete(self, store):
        ref = store.put(b"bye", "a.pdf")
        store.delete(ref)
        assert not store.exists(ref)

    def test_get_missing_raises(self, store):
        with pytest.raises(StorageError) as exc:
            store.get("missing.pdf")
        assert exc.value.reference == "missing.pdf"

    def test_reference_cannot_escape_root(self, store):
        with pytest.raises(StorageError):
            store.get("../outside.txt")
        assert store.exists("../outside.txt") is False

    def test_write_failure_raises_storage_error(self, store):
        with patch("pathlib.Path.write_bytes", side_effect=OSError(28, "No space left on device")):
            with pytest.raises(StorageError, match="No space left"):
                store.put(b"data", "a.pdf")
        assert not list(store.base_path.glob("*"))


class TestRegistration:
    def test_init_registers_on_app(self, app, tmp_path):
        custom = LocalBlobStore(tmp_path / "custom")
        init_blob_store(app, custom)
        assert get_blob_store() is custom

    def test_default_uses_config_path(self, app, tmp_path):
        app.config["BLOB_STORAGE_PATH"] = str(tmp_path / "configured")
        try:
            store = init_blob_store(app)
        finally:
            app.config["BLOB_STORAGE_PATH"] = ""
        assert store.base_path == tmp_path / "configured"
