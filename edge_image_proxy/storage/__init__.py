"""Storage module for image persistence."""

from .base import ObjectStorage, StorageError, StoredObject
from .local import LocalObjectStorage
from .memory import InMemoryObjectStorage

__all__ = [
    "ObjectStorage",
    "StoredObject",
    "StorageError",
    "LocalObjectStorage",
    "InMemoryObjectStorage",
]
