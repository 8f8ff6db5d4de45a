"""
Dependency wiring for the FastAPI app.

Clients are built once per application by ``create_app`` and kept on
``app.state``; the providers below hand them to route handlers.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Header, Request

from socialfeed.config import Settings
from socialfeed.db import DbClient, InMemoryDbClient, SqlDbClient
from socialfeed.errors import Unauthenticated
from socialfeed.security import Identity, PasswordHashing, TokenService
from socialfeed.storage import InMemoryStorageClient, S3StorageClient, StorageClient

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def build_db_client(settings: Settings) -> DbClient:
    if settings.use_in_memory_backends or not settings.database_url:
        logger.info("Using in-memory database backend")
        return InMemoryDbClient()
    return SqlDbClient(settings.database_url)


def build_storage_client(settings: Settings) -> StorageClient:
    if settings.use_in_memory_backends or not settings.s3_bucket:
        logger.info("Using in-memory storage backend")
        return InMemoryStorageClient()
    return S3StorageClient(
        bucket=settings.s3_bucket,
        endpoint=settings.s3_endpoint or "",
        region=settings.s3_region,
        access_key_id=settings.aws_access_key_id or "",
        secret_access_key=settings.aws_secret_access_key or "",
    )


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db_client(request: Request) -> DbClient:
    return request.app.state.db


def get_storage_client(request: Request) -> StorageClient:
    return request.app.state.storage


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_password_hashing(request: Request) -> PasswordHashing:
    return request.app.state.passwords


def require_identity(
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> Identity:
    """
    Resolve the caller from an ``Authorization: Bearer <token>`` header.

    Runs before every protected handler; ownership of individual resources
    is checked by the handlers themselves.
    """
    if not authorization:
        raise Unauthenticated("No token")
    if not authorization.startswith(BEARER_PREFIX):
        raise Unauthenticated("Token invalid")
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise Unauthenticated("No token")
    return Identity(user_id=tokens.verify(token))
