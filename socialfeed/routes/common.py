"""
Helpers shared by the route modules: id checks, text rules and response shaping.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Optional

from socialfeed.db import CommentRecord, DbClient, PostRecord, UserRecord, is_valid_id
from socialfeed.errors import Forbidden, InvalidId, ValidationError
from socialfeed.schemas import (
    CommentResponse,
    OwnerSummary,
    Pagination,
    PostResponse,
)


def ensure_valid_id(value: str, label: str) -> str:
    if not is_valid_id(value):
        raise InvalidId(f"Invalid {label} ID")
    return value


def ensure_owner(owner_id: str, caller_id: str, message: str) -> None:
    if owner_id != caller_id:
        raise Forbidden(message)


def require_text(text: Any, max_length: int, label: str) -> str:
    """Presence and length rules, applied before sanitizing."""
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Text is required")
    if len(text) > max_length:
        raise ValidationError(f"{label} must be {max_length} characters or less")
    return text


def owner_summary(user: Optional[UserRecord]) -> Optional[OwnerSummary]:
    if not user:
        return None
    return OwnerSummary(**user.public_fields())


def load_owners(db: DbClient, user_ids: Iterable[str]) -> dict[str, UserRecord]:
    return db.get_users(user_ids)


def post_response(post: PostRecord, owners: dict[str, UserRecord]) -> PostResponse:
    return PostResponse(
        id=post.id,
        user=owner_summary(owners.get(post.user_id)),
        text=post.text,
        image=post.image,
        likes=list(post.likes),
        commentsCount=post.comments_count,
        edited=post.edited,
        createdAt=post.created_at,
        updatedAt=post.updated_at,
    )


def single_post_response(db: DbClient, post: PostRecord) -> PostResponse:
    return post_response(post, load_owners(db, [post.user_id]))


def comment_response(
    comment: CommentRecord, owners: dict[str, UserRecord]
) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        post=comment.post_id,
        user=owner_summary(owners.get(comment.user_id)),
        text=comment.text,
        edited=comment.edited,
        createdAt=comment.created_at,
        updatedAt=comment.updated_at,
    )


def pagination(page: int, limit: int, total: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit))
