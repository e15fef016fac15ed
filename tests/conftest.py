"""Pytest configuration and shared fixtures."""

from typing import Optional

import pytest
from fastapi.testclient import TestClient

from videobg.config.settings import Settings
from videobg.infrastructure.storage.client import StoreError
from videobg.main import create_app

PUBLIC_BASE_URL = "https://bg.example.com"


class FakeObjectStore:
    """
    Records every call so tests can assert on what reached the store.

    Like the mock store, signing an unknown key fails. Set put_error or
    sign_error to make the next calls fail with that message.
    """

    def __init__(self) -> None:
        self.objects: dict[str, dict] = {}
        self.put_calls: list[dict] = []
        self.sign_calls: list[tuple[str, int]] = []
        self.put_error: Optional[str] = None
        self.sign_error: Optional[str] = None

    async def put(self, key, data, content_type, cache_control, metadata) -> None:
        call = {
            "key": key,
            "data": data,
            "content_type": content_type,
            "cache_control": cache_control,
            "metadata": metadata,
        }
        self.put_calls.append(call)
        if self.put_error:
            raise StoreError(self.put_error)
        self.objects[key] = call

    async def sign(self, key: str, ttl_seconds: int) -> str:
        self.sign_calls.append((key, ttl_seconds))
        if self.sign_error:
            raise StoreError(self.sign_error)
        if key not in self.objects:
            raise StoreError(f"NoSuchKey: {key}")
        return f"https://store.example.com/bucket/{key}?X-Amz-Expires={ttl_seconds}"

    @property
    def touched(self) -> bool:
        return bool(self.put_calls or self.sign_calls)


def make_settings(**overrides) -> Settings:
    values = {
        "store_endpoint": "https://account.r2.cloudflarestorage.com",
        "store_access_key_id": "test-access-key",
        "store_secret_access_key": "test-secret-key",
        "store_bucket": "videos",
        "public_base_url": PUBLIC_BASE_URL,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings_factory():
    """Build Settings from test defaults plus keyword overrides."""
    return make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def client(settings, store) -> TestClient:
    """Test client for the full app, backed by the fake store."""
    app = create_app(settings=settings, object_store=store)
    return TestClient(app)
