"""Cache-aside retrieval of stored images."""
import logging
from typing import Optional

from fastapi import BackgroundTasks, Response

from config import Settings

from .cache import ResponseCache
from .errors import NotFound, StorageFailure
from .storage.base import ObjectStorage, StorageError

logger = logging.getLogger(__name__)


class RetrievalHandler:
    """Serves stored images, consulting the response cache first.

    On a miss the object is read from storage and the built response is
    written back to the cache as a background task, after the response has
    been sent.
    """

    def __init__(self, settings: Settings, storage: ObjectStorage, cache: Optional[ResponseCache]):
        self.settings = settings
        self.storage = storage
        self.cache = cache if settings.cache_enabled else None

    async def retrieve(
        self,
        request_url: str,
        filename: str,
        extension: str,
        background_tasks: BackgroundTasks,
    ) -> Response:
        """Return the image addressed by ``filename.extension``.

        Args:
            request_url: Full inbound URL, used as the cache identity.
            filename: Key id path parameter.
            extension: Key extension path parameter.
            background_tasks: Tasks run after the response is sent.

        Returns:
            Response: The cached or freshly built image response.

        Raises:
            NotFound: If no object exists under the key.
            StorageFailure: If the object cannot be read.
        """
        if self.cache is not None:
            cached = await self.cache.match(request_url)
            if cached is not None:
                logger.info(f"Cache hit for: {request_url}.")
                return cached

        logger.info(
            f"Response for request url: {request_url} not present in cache. "
            "Fetching and caching request."
        )

        key = f"{filename}.{extension}"
        try:
            obj = self.storage.get(key)
        except StorageError as e:
            raise StorageFailure(str(e))

        if obj is None:
            logger.warning(f"Object not found: {key}")
            raise NotFound()

        headers: dict[str, str] = {}
        obj.write_http_metadata(headers)
        headers["etag"] = obj.http_etag
        headers["cache-control"] = f"s-maxage={self.settings.cache_s_maxage}"

        response = Response(content=obj.body, headers=headers)

        if self.cache is not None:
            background_tasks.add_task(self._write_back, request_url, response)

        return response

    async def _write_back(self, request_url: str, response: Response) -> None:
        try:
            await self.cache.put(request_url, response)
        except Exception as e:
            logger.error(f"Failed to cache response for {request_url}: {e}")
