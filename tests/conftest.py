"""Shared fixtures for the edge image proxy tests."""
import io
import itertools
import os

# The module-level app reads the environment on import
os.environ.setdefault("STORAGE_TYPE", "memory")

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from config import Settings
from edge_image_proxy.keys import KeyGenerator
from edge_image_proxy.main import create_app

API_KEY = "secret"
DOMAIN = "https://img.example.com"


def create_test_image(fmt: str = "PNG", size: tuple[int, int] = (10, 10), seed: int = 0) -> bytes:
    """Create a small test image in the given format."""
    color = ((seed * 50) % 256, (seed * 100) % 256, (seed * 150) % 256)
    img = Image.new("RGB", size, color=color)
    img_bytes = io.BytesIO()
    img.save(img_bytes, format=fmt)
    return img_bytes.getvalue()


@pytest.fixture
def test_settings(tmp_path):
    """Settings with an API key and in-memory storage."""
    return Settings(
        api_key=API_KEY,
        domain=DOMAIN,
        storage_type="memory",
        storage_root=tmp_path / "images",
        log_level="DEBUG",
    )


@pytest.fixture
def remote_images():
    """URL -> httpx.Response served by the mocked remote web."""
    return {}


@pytest.fixture
def app(test_settings, remote_images):
    """Application wired to a mock remote web and a distinct key per call."""
    def handler(request: httpx.Request) -> httpx.Response:
        response = remote_images.get(str(request.url))
        if response is None:
            return httpx.Response(404, text="missing")
        return response

    app = create_app(test_settings)
    app.state.proxy.http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    app.state.proxy.keys = KeyGenerator(clock=itertools.count(1_700_000_000_000).__next__)
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def storage(app):
    return app.state.proxy.storage
