"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException

from backend.auth import (
    AuthClient,
    AuthServiceError,
    AuthUser,
    HostedAuthClient,
    InMemoryAuthClient,
    extract_bearer_token,
)
from backend.config import StorageConfig, get_settings
from backend.db import DbClient, InMemoryDbClient, PostgresDbClient
from backend.mailer import InMemoryMailer, Mailer, ResendMailer
from backend.storage import (
    InMemoryStorageClient,
    S3ListingClient,
    StorageClient,
    UnconfiguredStorageClient,
)
from shared.signing import InvalidConfiguration
from shared.types import AppRole

_db_client: DbClient | None = None
_storage_client: StorageClient | None = None
_mailer: Mailer | None = None
_auth_client: AuthClient | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so state persists across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _db_client = InMemoryDbClient()
    else:
        _db_client = PostgresDbClient(settings.database_url)
    return _db_client


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _storage_client = InMemoryStorageClient()
        return _storage_client
    try:
        config = StorageConfig.from_settings(settings)
    except InvalidConfiguration as e:
        # Every storage call reports the missing variables.
        return UnconfiguredStorageClient(error=e)
    _storage_client = S3ListingClient(config)
    return _storage_client


def get_mailer() -> Mailer:
    global _mailer
    if _mailer:
        return _mailer

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.resend_api_key:
        _mailer = InMemoryMailer()
    else:
        _mailer = ResendMailer(settings.resend_api_key)
    return _mailer


def get_auth_client() -> AuthClient:
    global _auth_client
    if _auth_client:
        return _auth_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.auth_url:
        _auth_client = InMemoryAuthClient()
    else:
        _auth_client = HostedAuthClient(
            settings.auth_url, settings.auth_api_key or ""
        )
    return _auth_client


def get_current_user(
    authorization: Optional[str] = Header(None),
    auth: AuthClient = Depends(get_auth_client),
) -> AuthUser:
    token = extract_bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Authorization required")
    try:
        user = auth.get_user(token)
    except AuthServiceError as e:
        raise HTTPException(status_code=503, detail="Authentication unavailable") from e
    if not user:
        raise HTTPException(status_code=401, detail="Invalid authentication")
    return user


def require_admin(
    user: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
) -> AuthUser:
    if not db.has_role(user.id, AppRole.ADMIN):
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
