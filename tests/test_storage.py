"""Unit tests for storage module."""

import os
import threading
from pathlib import Path
from typing import Protocol
from unittest.mock import Mock

import pytest

from image_store.repositories import InMemoryImageRepository
from image_store.storage import (
    ImageNotFoundError,
    LocalStorageClient,
    StorageClient,
    StorageError,
    StorageInitError,
    StoredImage,
)


class TestStorageClient:
    """Test StorageClient interface."""

    def test_interface_protocol(self):
        """Test that StorageClient is a proper Protocol."""
        assert issubclass(StorageClient, Protocol)

    def test_interface_methods_defined(self):
        """Test that interface has required methods."""
        assert hasattr(StorageClient, 'put')
        assert hasattr(StorageClient, 'get')
        assert hasattr(StorageClient, 'find_filename')
        assert hasattr(StorageClient, 'storage_root')

    def test_runtime_checkable(self):
        """Test that StorageClient can be used with isinstance at runtime."""
        mock_client = Mock(spec=StorageClient)
        assert isinstance(mock_client, StorageClient)

    def test_non_compliant_class(self):
        """Test that non-compliant classes don't match the protocol."""
        class BadClient:
            def put(self, image_id: str, extension: str, content: bytes) -> str:
                return "file"
            # Missing get and find_filename

        assert not isinstance(BadClient(), StorageClient)


class TestLocalStorageClient:
    """Test LocalStorageClient implementation."""

    @pytest.fixture
    def storage_root(self, tmp_path):
        return tmp_path / "images"

    @pytest.fixture
    def storage_client(self, storage_root):
        """Create a LocalStorageClient with temporary directory."""
        return LocalStorageClient(storage_root=str(storage_root))

    def test_init_creates_directory(self, tmp_path):
        """Test that initialization creates the directory and its parents."""
        storage_root = tmp_path / "nested" / "test_images"
        assert not storage_root.exists()

        client = LocalStorageClient(storage_root=storage_root)
        assert storage_root.is_dir()
        assert client.storage_root == storage_root

    def test_init_with_existing_directory(self, tmp_path):
        """Test initialization with existing directory."""
        storage_root = tmp_path / "existing_images"
        storage_root.mkdir()

        LocalStorageClient(storage_root=str(storage_root))
        assert storage_root.exists()

    def test_init_failure_is_fatal(self, tmp_path):
        """Test that an uncreatable root raises StorageInitError."""
        blocker = tmp_path / "blocker"
        blocker.write_bytes(b"not a directory")

        with pytest.raises(StorageInitError, match="Failed to create storage directory"):
            LocalStorageClient(storage_root=blocker / "images")

    def test_init_error_is_not_a_storage_error(self):
        """Test that initialization failures are kept apart from per-request errors."""
        assert not issubclass(StorageInitError, StorageError)

    def test_put_writes_named_file(self, storage_client, storage_root):
        """Test that put stores <id>.<extension> with the exact bytes."""
        filename = storage_client.put("abc-123", "jpg", b"test image content")

        assert filename == "abc-123.jpg"
        assert (storage_root / filename).read_bytes() == b"test image content"

    def test_put_lowercases_extension_and_strips_dot(self, storage_client, storage_root):
        """Test extension handling on put."""
        filename = storage_client.put("abc-123", ".PNG", b"data")

        assert filename == "abc-123.png"
        assert (storage_root / "abc-123.png").exists()

    def test_put_leaves_no_temporary_files(self, storage_client, storage_root):
        """Test that the temporary file is renamed into place."""
        storage_client.put("abc-123", "gif", b"data")

        assert sorted(os.listdir(storage_root)) == ["abc-123.gif"]

    @pytest.mark.parametrize("image_id,extension", [("", "jpg"), ("abc", ""), ("abc", ".")])
    def test_put_rejects_empty_id_or_extension(self, storage_client, image_id, extension):
        with pytest.raises(ValueError):
            storage_client.put(image_id, extension, b"data")

    def test_put_storage_error(self, storage_client, storage_root, monkeypatch):
        """Test StorageError when the write fails, and that nothing is left behind."""
        def mock_replace(src, dst):
            raise OSError("Simulated write failure")

        monkeypatch.setattr("image_store.storage.local.os.replace", mock_replace)

        with pytest.raises(StorageError, match="Failed to save image"):
            storage_client.put("abc-123", "jpg", b"test content")

        assert os.listdir(storage_root) == []

    def test_get_success(self, storage_client):
        """Test reading an image back."""
        storage_client.put("abc-123", "jpg", b"test image content")

        stored = storage_client.get("abc-123")

        assert stored == StoredImage(
            image_id="abc-123",
            content=b"test image content",
            extension="jpg",
            format="jpeg",
        )

    def test_get_not_found(self, storage_client):
        """Test ImageNotFoundError for an unknown ID."""
        with pytest.raises(ImageNotFoundError, match="never-issued-id"):
            storage_client.get("never-issued-id")

    def test_get_requires_separator_after_id(self, storage_client):
        """Test that an ID does not match files of a longer ID it prefixes."""
        storage_client.put("abcd", "png", b"data")

        with pytest.raises(ImageNotFoundError):
            storage_client.get("abc")

    def test_get_is_case_sensitive(self, storage_client):
        storage_client.put("abc", "png", b"data")

        with pytest.raises(ImageNotFoundError):
            storage_client.get("ABC")

    def test_get_ignores_hidden_files(self, storage_client, storage_root):
        """Test that in-progress temporary files are never returned."""
        (storage_root / ".upload-xyz.tmp").write_bytes(b"partial")

        with pytest.raises(ImageNotFoundError):
            storage_client.get(".upload-xyz")

    def test_get_empty_id_not_found(self, storage_client):
        with pytest.raises(ImageNotFoundError):
            storage_client.get("")

    def test_get_listing_failure_is_storage_error(self, storage_client, monkeypatch):
        """Test that a failing directory listing is not reported as not found."""
        def mock_iterdir(self):
            raise PermissionError("Simulated listing failure")

        monkeypatch.setattr(Path, "iterdir", mock_iterdir)

        with pytest.raises(StorageError, match="Failed to read storage directory"):
            storage_client.get("abc-123")

    def test_get_read_failure_is_storage_error(self, storage_client, monkeypatch):
        """Test StorageError when reading the file fails."""
        storage_client.put("abc-123", "jpg", b"content")

        def mock_read_bytes(self):
            raise IOError("Simulated read failure")

        monkeypatch.setattr(Path, "read_bytes", mock_read_bytes)

        with pytest.raises(StorageError, match="Failed to read image"):
            storage_client.get("abc-123")

    def test_find_filename(self, storage_client):
        storage_client.put("abc-123", "webp", b"content")

        assert storage_client.find_filename("abc-123") == "abc-123.webp"
        assert storage_client.find_filename("other") is None

    def test_implements_storage_client_protocol(self, storage_client):
        """Test that LocalStorageClient implements StorageClient protocol."""
        assert isinstance(storage_client, StorageClient)

    @pytest.mark.parametrize("content", [
        b"small image",
        b"x" * 1024 * 1024,  # 1MB
        b"\x00\x01\x02\x03" * 1000,  # Binary data
    ])
    def test_various_content_sizes(self, storage_client, content):
        """Test storage with various content sizes."""
        storage_client.put("sized", "tiff", content)
        assert storage_client.get("sized").content == content

    def test_concurrent_puts_do_not_interfere(self, storage_client):
        """Test that parallel writes with distinct IDs all land intact."""
        payloads = {f"id-{i}": bytes([i]) * (256 * 1024) for i in range(10)}

        threads = [
            threading.Thread(target=storage_client.put, args=(image_id, "png", content))
            for image_id, content in payloads.items()
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        for image_id, content in payloads.items():
            assert storage_client.get(image_id).content == content


class TestLocalStorageClientWithRepository:
    """Test LocalStorageClient resolving IDs through an index."""

    @pytest.fixture
    def repository(self):
        return InMemoryImageRepository()

    @pytest.fixture
    def storage_client(self, tmp_path, repository):
        return LocalStorageClient(storage_root=tmp_path / "images", repository=repository)

    def test_put_records_filename(self, storage_client, repository):
        storage_client.put("abc-123", "JPG", b"content")

        assert repository.get_filename("abc-123") == "abc-123.jpg"

    def test_get_uses_index(self, storage_client, monkeypatch):
        """Test that lookups go through the index instead of a directory scan."""
        storage_client.put("abc-123", "png", b"content")

        def fail_iterdir(self):
            raise AssertionError("directory should not be scanned")

        monkeypatch.setattr(Path, "iterdir", fail_iterdir)

        assert storage_client.get("abc-123").content == b"content"

    def test_get_not_in_index(self, storage_client):
        with pytest.raises(ImageNotFoundError):
            storage_client.get("never-issued-id")

    def test_existing_files_are_indexed_on_startup(self, tmp_path):
        """Test that files already on disk are added to a fresh index."""
        storage_root = tmp_path / "images"
        storage_root.mkdir()
        (storage_root / "old-id.gif").write_bytes(b"old")
        (storage_root / ".upload-abc.tmp").write_bytes(b"partial")

        repository = InMemoryImageRepository()
        client = LocalStorageClient(storage_root=storage_root, repository=repository)

        assert repository.count() == 1
        assert client.get("old-id").content == b"old"

    def test_index_failure_is_storage_error(self, storage_client, repository, monkeypatch):
        """Test that a failing index lookup is not reported as not found."""
        def broken_get_filename(image_id):
            raise RuntimeError("index unavailable")

        monkeypatch.setattr(repository, "get_filename", broken_get_filename)

        with pytest.raises(StorageError, match="Failed to look up image"):
            storage_client.get("abc-123")
