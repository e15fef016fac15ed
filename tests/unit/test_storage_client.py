"""
Unit tests for the object store adapters.

S3ObjectStore is exercised against botocore's Stubber, so no request
leaves the process. Presigned URLs are computed locally by botocore, so
signing any key (uploaded or not) needs no stubbing.
"""

from urllib.parse import parse_qs, urlparse

import pytest
from botocore.stub import Stubber

from videobg.infrastructure.storage.client import (
    MockObjectStore,
    S3ObjectStore,
    StorageConfig,
    StoreError,
    create_object_store,
)


@pytest.fixture
def config() -> StorageConfig:
    return StorageConfig(
        endpoint_url="https://account.r2.cloudflarestorage.com",
        access_key_id="test-access-key",
        secret_access_key="test-secret-key",
        bucket_name="videos",
    )


@pytest.fixture
def s3_store(config) -> S3ObjectStore:
    return S3ObjectStore(config)


class TestS3ObjectStore:
    """Tests for the boto3-backed store."""

    @pytest.mark.asyncio
    async def test_put_sends_expected_parameters(self, s3_store):
        metadata = {"originalname": "clip.mp4", "uploadedat": "2026-10-18T09:30:00.000Z"}

        with Stubber(s3_store._s3_client) as stubber:
            stubber.add_response(
                "put_object",
                {"ETag": '"abc"'},
                {
                    "Bucket": "videos",
                    "Key": "abc.mp4",
                    "Body": b"bytes",
                    "ContentType": "video/mp4",
                    "CacheControl": "public, max-age=31536000, immutable",
                    "Metadata": metadata,
                },
            )

            await s3_store.put(
                "abc.mp4",
                b"bytes",
                "video/mp4",
                "public, max-age=31536000, immutable",
                metadata,
            )

            stubber.assert_no_pending_responses()

    @pytest.mark.asyncio
    async def test_put_failure_raises_store_error_with_backend_message(self, s3_store):
        with Stubber(s3_store._s3_client) as stubber:
            stubber.add_client_error(
                "put_object",
                service_error_code="AccessDenied",
                service_message="Access Denied",
                http_status_code=403,
            )

            with pytest.raises(StoreError, match="Access Denied"):
                await s3_store.put("abc.mp4", b"bytes", "video/mp4", "no-cache", {})

    @pytest.mark.asyncio
    async def test_sign_uses_path_style_and_ttl(self, s3_store):
        url = await s3_store.sign("abc.mp4", 600)

        parsed = urlparse(url)
        query = parse_qs(parsed.query)

        assert parsed.netloc == "account.r2.cloudflarestorage.com"
        assert parsed.path == "/videos/abc.mp4"
        assert query["X-Amz-Expires"] == ["600"]
        assert query["X-Amz-Algorithm"] == ["AWS4-HMAC-SHA256"]


class TestMockObjectStore:
    """Tests for the in-memory development store."""

    @pytest.mark.asyncio
    async def test_put_then_sign(self):
        store = MockObjectStore()

        await store.put("abc.mp4", b"data", "video/mp4", "no-cache", {"originalname": "a.mp4"})
        url = await store.sign("abc.mp4", 600)

        assert url == "mock://storage/abc.mp4?expires_in=600"
        assert store.objects["abc.mp4"].data == b"data"
        assert store.objects["abc.mp4"].metadata == {"originalname": "a.mp4"}

    @pytest.mark.asyncio
    async def test_sign_unknown_key_fails(self):
        with pytest.raises(StoreError, match="NoSuchKey"):
            await MockObjectStore().sign("missing.mp4", 600)


class TestCreateObjectStore:
    """Tests for the factory."""

    def test_mock_mode_returns_mock(self):
        assert isinstance(create_object_store(mock_mode=True), MockObjectStore)

    def test_config_returns_s3_store(self, config):
        assert isinstance(create_object_store(config=config), S3ObjectStore)

    def test_missing_config_rejected(self):
        with pytest.raises(ValueError, match="config is required"):
            create_object_store()
