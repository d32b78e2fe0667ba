"""Image ingestion from remote URLs or multipart uploads.

A request is authorized against the shared secret, then classified once
into one of two ingestion modes:

- ``UrlListIngestion``: a JSON array of absolute URLs, each fetched and stored.
- ``MultipartIngestion``: uploaded file parts, all type-checked before any
  of them is stored.

Items are stored one at a time. The first runtime failure aborts the request;
images stored before it are kept and counted in the error message.
"""

import hmac
import logging
from dataclasses import dataclass
from typing import Union

from fastapi import Request
from pydantic import TypeAdapter, ValidationError
from starlette.datastructures import UploadFile

from config import Settings

from .errors import (
    BadRequest,
    PayloadTooLarge,
    ProcessingFailure,
    StorageFailure,
    Unauthorized,
)
from .fetcher import RemoteImageFetcher
from .keys import KeyGenerator
from .schemas import ImageResultEntry
from .storage.base import ObjectStorage, StorageError

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-KEY"

_url_list = TypeAdapter(list[str])


@dataclass(frozen=True)
class UrlListIngestion:
    urls: list[str]


@dataclass(frozen=True)
class MultipartIngestion:
    files: list[UploadFile]


IngestionRequest = Union[UrlListIngestion, MultipartIngestion]


class IngestionHandler:
    """Stores images sent to the upload endpoint."""

    def __init__(
        self,
        settings: Settings,
        storage: ObjectStorage,
        keys: KeyGenerator,
        fetcher: RemoteImageFetcher,
    ):
        self.settings = settings
        self.storage = storage
        self.keys = keys
        self.fetcher = fetcher

    async def ingest(self, request: Request) -> dict[str, ImageResultEntry]:
        """Authorize, classify and store the images carried by a request.

        Args:
            request: The inbound upload request.

        Returns:
            dict[str, ImageResultEntry]: Result entries keyed by source URL
                or uploaded filename.

        Raises:
            Unauthorized: If the credential is missing or wrong.
            BadRequest: If the content type, body or a part is invalid.
            PayloadTooLarge: If an uploaded part exceeds the size limit.
            ProcessingFailure: If fetching or storing an item fails.
        """
        self.authorize(request)
        ingestion = await self.classify(request)

        if isinstance(ingestion, UrlListIngestion):
            return await self._ingest_urls(ingestion)
        return await self._ingest_files(ingestion)

    def authorize(self, request: Request) -> None:
        expected = self.settings.api_key
        supplied = request.headers.get(API_KEY_HEADER)

        if not expected or not supplied:
            logger.warning("Rejected upload without credential")
            raise Unauthorized()
        if not hmac.compare_digest(supplied.encode(), expected.encode()):
            logger.warning("Rejected upload with mismatched credential")
            raise Unauthorized()

    async def classify(self, request: Request) -> IngestionRequest:
        """Decide the ingestion mode from the request's content type."""
        content_type = request.headers.get("content-type") or ""
        media_type = content_type.split(";", 1)[0].strip().lower()

        if media_type == "application/json":
            try:
                urls = _url_list.validate_python(await request.json())
            except (ValueError, ValidationError) as e:
                logger.warning(f"Invalid URL list body: {e}")
                raise BadRequest("Invalid request body")
            return UrlListIngestion(urls=urls)

        if "multipart/form-data" in content_type.lower():
            form = await request.form()
            files = form.getlist(self.settings.upload_field)
            self._validate_parts(files)
            return MultipartIngestion(files=files)

        logger.warning(f"Unsupported upload content type: {content_type!r}")
        raise BadRequest("Invalid content type")

    def _validate_parts(self, parts: list) -> None:
        for part in parts:
            if not isinstance(part, UploadFile) or not (part.content_type or "").startswith("image/"):
                logger.warning(f"Rejected non-image upload part: {getattr(part, 'filename', part)!r}")
                raise BadRequest("Invalid file type")

        for part in parts:
            if part.size is not None and part.size > self.settings.max_upload_size:
                logger.warning(f"Rejected oversized upload part {part.filename!r}: {part.size} bytes")
                raise PayloadTooLarge()

    async def _ingest_urls(self, ingestion: UrlListIngestion) -> dict[str, ImageResultEntry]:
        images: dict[str, ImageResultEntry] = {}
        logger.info(f"Ingesting {len(ingestion.urls)} remote images")

        stored = 0
        try:
            for url in ingestion.urls:
                fetched = await self.fetcher.fetch(url)
                images[url] = self._store(fetched.content, fetched.content_type)
                stored += 1
        except ProcessingFailure as e:
            raise self._partial(e, stored, len(ingestion.urls))

        return images

    async def _ingest_files(self, ingestion: MultipartIngestion) -> dict[str, ImageResultEntry]:
        images: dict[str, ImageResultEntry] = {}
        logger.info(f"Ingesting {len(ingestion.files)} uploaded images")

        stored = 0
        try:
            for upload in ingestion.files:
                content = await upload.read()
                images[upload.filename or ""] = self._store(content, upload.content_type)
                stored += 1
        except ProcessingFailure as e:
            raise self._partial(e, stored, len(ingestion.files))

        return images

    def _store(self, content: bytes, content_type: str) -> ImageResultEntry:
        key = self.keys.object_key(content_type)

        try:
            obj = self.storage.put(key, content, content_type)
        except (StorageError, ValueError) as e:
            logger.error(f"Failed to store {key}: {e}")
            raise StorageFailure(str(e))

        logger.info(f"Stored image {key} ({len(content)} bytes, {content_type})")
        return ImageResultEntry(
            path=self.settings.public_path(key),
            etag=obj.http_etag,
            content_type=content_type,
        )

    def _partial(self, error: ProcessingFailure, stored: int, total: int) -> ProcessingFailure:
        if stored:
            logger.warning(f"Ingestion aborted after storing {stored} of {total} images")
            error.message = f"{error.message} (stored {stored} of {total} images before the failure)"
        return error
