"""FastAPI dependency injection configuration.

Collaborators are built once per application by ``build_state`` and kept on
``app.state``; the dependencies below hand them to each request so tests can
swap any of them through ``app.dependency_overrides``.
"""

import logging
from dataclasses import dataclass

import httpx
from fastapi import Depends, Request

from config import Settings

from .cache import InMemoryResponseCache, ResponseCache
from .fetcher import RemoteImageFetcher, create_http_client
from .ingestion import IngestionHandler
from .keys import KeyGenerator
from .retrieval import RetrievalHandler
from .storage import InMemoryObjectStorage, LocalObjectStorage, ObjectStorage

logger = logging.getLogger(__name__)


@dataclass
class ProxyState:
    settings: Settings
    storage: ObjectStorage
    cache: ResponseCache
    keys: KeyGenerator
    http_client: httpx.AsyncClient


def create_storage(settings: Settings) -> ObjectStorage:
    """Get the storage backend selected by STORAGE_TYPE.

    - "local": Uses LocalObjectStorage (files under STORAGE_ROOT)
    - "memory": Uses InMemoryObjectStorage (data lost on restart)
    """
    if settings.storage_type == "memory":
        logger.info("Created in-memory object storage")
        return InMemoryObjectStorage()

    storage = LocalObjectStorage(settings.storage_root)
    logger.info(f"Created local object storage with root: {settings.storage_root}")
    return storage


def build_state(settings: Settings) -> ProxyState:
    return ProxyState(
        settings=settings,
        storage=create_storage(settings),
        cache=InMemoryResponseCache(max_entries=settings.cache_max_entries),
        keys=KeyGenerator(),
        http_client=create_http_client(settings),
    )


def get_proxy_state(request: Request) -> ProxyState:
    return request.app.state.proxy


def get_app_settings(state: ProxyState = Depends(get_proxy_state)) -> Settings:
    return state.settings


def get_storage(state: ProxyState = Depends(get_proxy_state)) -> ObjectStorage:
    return state.storage


def get_response_cache(state: ProxyState = Depends(get_proxy_state)) -> ResponseCache:
    return state.cache


def get_key_generator(state: ProxyState = Depends(get_proxy_state)) -> KeyGenerator:
    return state.keys


def get_fetcher(
    state: ProxyState = Depends(get_proxy_state),
    settings: Settings = Depends(get_app_settings),
) -> RemoteImageFetcher:
    return RemoteImageFetcher(state.http_client, max_size=settings.max_upload_size)


def get_ingestion_handler(
    settings: Settings = Depends(get_app_settings),
    storage: ObjectStorage = Depends(get_storage),
    keys: KeyGenerator = Depends(get_key_generator),
    fetcher: RemoteImageFetcher = Depends(get_fetcher),
) -> IngestionHandler:
    return IngestionHandler(settings, storage, keys, fetcher)


def get_retrieval_handler(
    settings: Settings = Depends(get_app_settings),
    storage: ObjectStorage = Depends(get_storage),
    cache: ResponseCache = Depends(get_response_cache),
) -> RetrievalHandler:
    return RetrievalHandler(settings, storage, cache)
