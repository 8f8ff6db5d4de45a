"""
Public profiles, self-service profile updates and a caller's own posts.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from socialfeed.config import Settings
from socialfeed.db import DbClient
from socialfeed.dependencies import get_app_settings, get_db_client, require_identity
from socialfeed.errors import NotFound, ValidationError
from socialfeed.routes.common import (
    ensure_owner,
    ensure_valid_id,
    load_owners,
    pagination,
    post_response,
)
from socialfeed.sanitizer import sanitize_bio, sanitize_name
from socialfeed.schemas import (
    PostListResponse,
    UserProfileResponse,
    UserUpdatedResponse,
    UserUpdateRequest,
)
from socialfeed.security import Identity

router = APIRouter()


@router.get("/{user_id}", response_model=UserProfileResponse)
def get_user(user_id: str, db: DbClient = Depends(get_db_client)):
    ensure_valid_id(user_id, "user")
    user = db.get_user(user_id)
    if not user:
        raise NotFound("User not found")
    return UserProfileResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        avatar=user.avatar,
        bio=user.bio,
        createdAt=user.created_at,
        postCount=db.count_posts(user.id),
    )


@router.put("/{user_id}", response_model=UserUpdatedResponse)
def update_user(
    user_id: str,
    payload: UserUpdateRequest,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    ensure_owner(
        user_id, identity.user_id, "Access denied. You can only update your own profile"
    )
    ensure_valid_id(user_id, "user")

    name = None
    if payload.name is not None:
        name = sanitize_name(payload.name)
        if not name:
            raise ValidationError("Name cannot be empty")
    bio = sanitize_bio(payload.bio) if payload.bio is not None else None

    user = db.update_user(user_id, name=name, avatar=payload.avatar, bio=bio)
    if not user:
        raise NotFound("User not found")
    return UserUpdatedResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        avatar=user.avatar,
        bio=user.bio,
        createdAt=user.created_at,
        updatedAt=user.updated_at,
    )


@router.get("/{user_id}/posts", response_model=PostListResponse)
def get_own_posts(
    user_id: str,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_app_settings),
):
    ensure_owner(
        user_id, identity.user_id, "Access denied. You can only list your own posts"
    )
    limit = min(limit or settings.default_page_limit, settings.max_page_limit)
    posts, total = db.list_posts(user_id=user_id, offset=(page - 1) * limit, limit=limit)
    owners = load_owners(db, [user_id])
    return PostListResponse(
        posts=[post_response(post, owners) for post in posts],
        pagination=pagination(page, limit, total),
    )
