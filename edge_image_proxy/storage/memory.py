"""In-memory implementation of ObjectStorage."""
import hashlib
import logging
import threading
from typing import Optional

from .base import ObjectStorage, StoredObject

logger = logging.getLogger(__name__)


class InMemoryObjectStorage(ObjectStorage):
    """In-memory implementation of ObjectStorage.

    Objects live in a dictionary and are lost when the process exits.
    Suitable for development and testing.
    """

    def __init__(self):
        """Initialize the in-memory storage."""
        self._objects: dict[str, StoredObject] = {}
        self._lock = threading.Lock()
        logger.info("Initialized InMemoryObjectStorage")

    def put(self, key: str, content: bytes, content_type: str) -> StoredObject:
        """Store an object, replacing any existing one under the same key."""
        if not key:
            raise ValueError("Object key cannot be empty")

        obj = StoredObject(
            key=key,
            body=bytes(content),
            content_type=content_type,
            etag=hashlib.md5(content).hexdigest(),
        )
        with self._lock:
            self._objects[key] = obj
        logger.debug(f"Stored object {key} ({len(content)} bytes)")
        return obj

    def get(self, key: str) -> Optional[StoredObject]:
        """Return the object stored under key, or None."""
        with self._lock:
            return self._objects.get(key)

    def count(self) -> int:
        """Get the number of stored objects."""
        with self._lock:
            return len(self._objects)

    def clear(self) -> None:
        """Remove all objects (useful for testing)."""
        with self._lock:
            self._objects.clear()
        logger.info("Cleared all objects from storage")
