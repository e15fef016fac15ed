"""
Object storage integration for uploaded videos.

Supports any S3-compatible service (R2, B2, MinIO, AWS S3).
Includes mock mode for local development without credentials.
"""

from .client import (
    MockObjectStore,
    S3ObjectStore,
    StorageConfig,
    StoreError,
    StoredObject,
    create_object_store,
)

__all__ = [
    "MockObjectStore",
    "S3ObjectStore",
    "StorageConfig",
    "StoreError",
    "StoredObject",
    "create_object_store",
]
