"""Client for fetching remote images during URL-list ingestion."""
import logging
import time
from dataclasses import dataclass, field

import httpx

from config import Settings

from .errors import UpstreamFetchFailure
from .keys import DEFAULT_CONTENT_TYPE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchedImage:
    """Payload and content type of a fetched remote resource."""

    url: str
    content: bytes = field(repr=False)
    content_type: str


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Build the shared outbound HTTP client."""
    return httpx.AsyncClient(
        timeout=settings.fetch_timeout,
        follow_redirects=True,
        headers={"Accept": "image/*,*/*;q=0.8"},
    )


class RemoteImageFetcher:
    """Fetches remote resources over HTTP with a size cap."""

    def __init__(self, client: httpx.AsyncClient, max_size: int):
        self.client = client
        self.max_size = max_size

    async def fetch(self, url: str) -> FetchedImage:
        """Download a remote resource.

        Args:
            url: Absolute URL of the resource.

        Returns:
            FetchedImage: The payload and the response's content type.

        Raises:
            UpstreamFetchFailure: If the request fails, the server answers
                with an error status, or the payload exceeds the size cap.
        """
        logger.debug(f"Fetching remote image: {url}")
        start_time = time.time()

        try:
            async with self.client.stream("GET", url) as response:
                if response.status_code >= 400:
                    logger.error(f"Remote server returned {response.status_code} for {url}")
                    response.raise_for_status()

                chunks = []
                received = 0
                async for chunk in response.aiter_bytes():
                    received += len(chunk)
                    if received > self.max_size:
                        raise UpstreamFetchFailure(
                            f"Remote image {url} exceeds {self.max_size} bytes"
                        )
                    chunks.append(chunk)

                content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"HTTP error fetching {url}: {e}")
            raise UpstreamFetchFailure(f"Failed to fetch {url}: {e}") from e

        elapsed_time = time.time() - start_time
        logger.info(f"Fetched {url} in {elapsed_time:.2f}s ({received} bytes, {content_type})")

        return FetchedImage(url=url, content=b"".join(chunks), content_type=content_type)
