"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from fastapi import Depends, Request

from portfolio.auth import AuthClient, InMemoryAuthClient, PostgresAuthClient
from portfolio.config import get_settings
from portfolio.db import InMemoryStoreClient, PostgresStoreClient, StoreClient
from portfolio.errors import ValidationFailure
from portfolio.files import FileAttachments
from portfolio.projects import ProjectRepository
from portfolio.session_guard import OwnerContext, require_owner
from portfolio.site_config import SiteConfigService
from portfolio.storage import InMemoryStorageClient, S3StorageClient, StorageClient

logger = logging.getLogger(__name__)

_store_client: StoreClient | None = None
_storage_client: StorageClient | None = None
_auth_client: AuthClient | None = None


def get_store_client() -> StoreClient:
    """
    Return a singleton store client so records persist across requests.
    """
    global _store_client
    if _store_client:
        return _store_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _store_client = InMemoryStoreClient()
    else:
        _store_client = PostgresStoreClient(settings.database_url)
    return _store_client


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.s3_endpoint:
        _storage_client = InMemoryStorageClient()
    else:
        _storage_client = S3StorageClient(
            bucket=settings.storage_bucket,
            region=settings.s3_region or "",
            endpoint=settings.s3_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
            public_base_url=settings.storage_public_base_url or "",
        )
    return _storage_client


def get_auth_client() -> AuthClient:
    global _auth_client
    if _auth_client:
        return _auth_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _auth_client = InMemoryAuthClient(
            session_ttl_seconds=settings.session_ttl_seconds
        )
    else:
        _auth_client = PostgresAuthClient(
            settings.database_url, session_ttl_seconds=settings.session_ttl_seconds
        )

    if settings.owner_email and settings.owner_password:
        try:
            _auth_client.create_user(settings.owner_email, settings.owner_password)
            logger.info("Seeded owner account %s", settings.owner_email)
        except ValidationFailure:
            # Already registered.
            pass
    return _auth_client


def reset_clients() -> None:
    """Drop cached clients so the next request rebuilds them (tests)."""
    global _store_client, _storage_client, _auth_client
    _store_client = None
    _storage_client = None
    _auth_client = None


def get_access_token(request: Request) -> str | None:
    token = request.cookies.get(get_settings().session_cookie_name)
    if token:
        return token
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


def get_owner(
    access_token: str | None = Depends(get_access_token),
    auth: AuthClient = Depends(get_auth_client),
) -> OwnerContext:
    return require_owner(auth, access_token)


def get_project_repository(
    store: StoreClient = Depends(get_store_client),
) -> ProjectRepository:
    return ProjectRepository(store)


def get_file_attachments(
    store: StoreClient = Depends(get_store_client),
    storage: StorageClient = Depends(get_storage_client),
) -> FileAttachments:
    return FileAttachments(store, storage)


def get_site_config_service(
    store: StoreClient = Depends(get_store_client),
    storage: StorageClient = Depends(get_storage_client),
) -> SiteConfigService:
    return SiteConfigService(store, storage)
