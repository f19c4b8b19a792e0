from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from tablerender.config import Settings
from tablerender.model import RenderRequest, load_render_request
from tablerender.server import create_app

ROOT = Path(__file__).resolve().parents[1]
DATA_DIR = ROOT / "tests" / "data"

EXAMPLE_REQUEST = DATA_DIR / "example_request.json"


@pytest.fixture(scope="session")
def example_request_bytes() -> bytes:
    if not EXAMPLE_REQUEST.exists():
        raise FileNotFoundError(f"Missing example request: {EXAMPLE_REQUEST}")
    return EXAMPLE_REQUEST.read_bytes()


@pytest.fixture
def example_request(example_request_bytes: bytes) -> RenderRequest:
    return load_render_request(example_request_bytes)


@pytest.fixture
def client() -> Iterator[TestClient]:
    settings = Settings(cors_allowed_origins="https://example.org", service_version="test")
    with TestClient(create_app(settings)) as test_client:
        yield test_client
