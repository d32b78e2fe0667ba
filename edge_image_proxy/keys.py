"""Storage key generation for ingested images."""
import logging
import time
from typing import Callable, Optional

from sqids import Sqids

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def extension_for(content_type: Optional[str]) -> str:
    """Derive a file extension from a content type.

    The subtype is used with any parameters and structured-syntax suffix
    removed, so ``image/svg+xml; charset=utf-8`` gives ``svg``.

    Args:
        content_type: MIME type of the image, possibly empty.

    Returns:
        str: Lower-cased extension without the leading dot.
    """
    media_type = (content_type or "").split(";", 1)[0].strip()
    if not media_type:
        media_type = DEFAULT_CONTENT_TYPE
    subtype = media_type.split("/")[-1]
    return subtype.split("+", 1)[0].lower()


class KeyGenerator:
    """Generates short identifiers from the current wall-clock time.

    The millisecond timestamp is encoded with Sqids, whose default blocklist
    keeps profane words out of the output. Two calls within the same
    millisecond return the same identifier.
    """

    def __init__(self, sqids: Optional[Sqids] = None, clock: Callable[[], int] = _now_ms):
        self.sqids = sqids or Sqids()
        self.clock = clock

    def generate_key(self) -> str:
        """Encode the current timestamp into a short alphanumeric id."""
        return self.sqids.encode([self.clock()])

    def object_key(self, content_type: Optional[str]) -> str:
        """Build a full storage key ``<id>.<extension>`` for a content type."""
        key = f"{self.generate_key()}.{extension_for(content_type)}"
        logger.debug(f"Generated object key {key} for content type {content_type!r}")
        return key
