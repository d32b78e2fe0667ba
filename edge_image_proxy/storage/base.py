"""Object storage interface for image persistence."""

from dataclasses import dataclass, field
from typing import MutableMapping, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class StoredObject:
    """An image object as held by the storage backend.

    Attributes:
        key: Storage key in the form ``<id>.<extension>``.
        body: Raw image bytes.
        content_type: MIME type recorded at write time.
        etag: Opaque integrity tag assigned by the backend.
    """

    key: str
    body: bytes = field(repr=False)
    content_type: str
    etag: str

    @property
    def http_etag(self) -> str:
        """Quoted etag, as sent in HTTP headers."""
        return f'"{self.etag}"'

    def write_http_metadata(self, headers: MutableMapping[str, str]) -> None:
        """Copy stored HTTP metadata into a header mapping."""
        headers["content-type"] = self.content_type


@runtime_checkable
class ObjectStorage(Protocol):
    """Abstract interface for image object storage.

    Implementations can use various backends such as local filesystem,
    memory, or a remote bucket. Objects are immutable once written; writing
    an existing key replaces it (last write wins).
    """

    def put(self, key: str, content: bytes, content_type: str) -> StoredObject:
        """Store image content under a key.

        Args:
            key: Storage key.
            content: Raw image bytes to store.
            content_type: MIME type kept as HTTP metadata.

        Returns:
            StoredObject: The written object, including its etag.

        Raises:
            StorageError: If the object cannot be written.
        """
        ...

    def get(self, key: str) -> Optional[StoredObject]:
        """Read an object.

        Args:
            key: Storage key.

        Returns:
            Optional[StoredObject]: The object, or None if it does not exist.

        Raises:
            StorageError: If the object exists but cannot be read.
        """
        ...


class StorageError(Exception):
    """Base exception for storage-related errors."""
    pass
