"""Local filesystem implementation of ObjectStorage."""
import hashlib
import json
import logging
from pathlib import Path
from typing import Optional

from config import get_settings

from .base import ObjectStorage, StorageError, StoredObject

logger = logging.getLogger(__name__)

METADATA_DIR = ".meta"


class LocalObjectStorage(ObjectStorage):
    """Local filesystem storage implementation.

    Stores each object as a file named after its key in a configurable
    directory. HTTP metadata and the etag are kept in a JSON sidecar under
    ``.meta/`` so they cannot be addressed as objects themselves.
    """

    def __init__(self, storage_root: Optional[str | Path] = None):
        """Initialize local storage.

        Args:
            storage_root: Root directory for storing images.
                         If not provided, uses the configured storage root from settings.
        """
        settings = get_settings()

        if storage_root is not None:
            self.storage_root = Path(storage_root)
        else:
            self.storage_root = settings.storage_root

        self.metadata_root = self.storage_root / METADATA_DIR
        self._ensure_storage_dir()
        logger.info(f"Initialized LocalObjectStorage with root: {self.storage_root}")

    def _ensure_storage_dir(self) -> None:
        """Ensure the storage directories exist."""
        try:
            self.metadata_root.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured storage directory exists: {self.storage_root}")
        except Exception as e:
            logger.error(f"Failed to create storage directory: {e}")
            raise StorageError(f"Failed to create storage directory: {e}")

    def _paths(self, key: str) -> tuple[Path, Path]:
        if not key:
            raise ValueError("Object key cannot be empty")
        if "/" in key or "\\" in key or key in (".", ".."):
            raise ValueError(f"Invalid object key: {key}")
        return self.storage_root / key, self.metadata_root / f"{key}.json"

    def put(self, key: str, content: bytes, content_type: str) -> StoredObject:
        """Write image content and its metadata sidecar.

        Args:
            key: Storage key.
            content: Raw image bytes to store.
            content_type: MIME type kept as HTTP metadata.

        Returns:
            StoredObject: The written object with an MD5 etag.

        Raises:
            StorageError: If the object cannot be written.
        """
        data_path, meta_path = self._paths(key)
        etag = hashlib.md5(content).hexdigest()

        try:
            data_path.write_bytes(content)
            meta_path.write_text(json.dumps({"content_type": content_type, "etag": etag}))
            logger.debug(f"Saved object to: {data_path}")
        except Exception as e:
            logger.error(f"Failed to save object {key}: {e}")
            raise StorageError(f"Failed to save object: {e}")

        return StoredObject(key=key, body=content, content_type=content_type, etag=etag)

    def get(self, key: str) -> Optional[StoredObject]:
        """Read an object and its metadata from the filesystem.

        Args:
            key: Storage key.

        Returns:
            Optional[StoredObject]: The object, or None if it does not exist.

        Raises:
            StorageError: If the object exists but cannot be read.
        """
        try:
            data_path, meta_path = self._paths(key)
        except ValueError:
            logger.warning(f"Rejected object key: {key!r}")
            return None

        if not data_path.is_file() or not meta_path.is_file():
            logger.debug(f"Object not found: {key}")
            return None

        try:
            content = data_path.read_bytes()
            metadata = json.loads(meta_path.read_text())
            logger.debug(f"Successfully read object from: {data_path}")
        except Exception as e:
            logger.error(f"Failed to read object {key}: {e}")
            raise StorageError(f"Failed to read object: {e}")

        return StoredObject(
            key=key,
            body=content,
            content_type=metadata["content_type"],
            etag=metadata["etag"],
        )
