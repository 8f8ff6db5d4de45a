"""
Comment routes. Creating or deleting a comment keeps the parent post's
``commentsCount`` in step.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from socialfeed.db import DbClient
from socialfeed.dependencies import get_db_client, require_identity
from socialfeed.errors import NotFound
from socialfeed.routes.common import (
    comment_response,
    ensure_owner,
    ensure_valid_id,
    load_owners,
    require_text,
)
from socialfeed.sanitizer import COMMENT_MAX_LENGTH, sanitize_comment_text
from socialfeed.schemas import CommentRequest, CommentResponse, MessageResponse
from socialfeed.security import Identity

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/posts/{post_id}/comments", response_model=CommentResponse, status_code=201
)
def create_comment(
    post_id: str,
    payload: CommentRequest,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    text = require_text(payload.text, COMMENT_MAX_LENGTH, "Comment")
    ensure_valid_id(post_id, "post")
    comment = db.create_comment(post_id, identity.user_id, sanitize_comment_text(text))
    if not comment:
        raise NotFound("Post not found")
    return comment_response(comment, load_owners(db, [comment.user_id]))


@router.get("/posts/{post_id}/comments", response_model=list[CommentResponse])
def list_comments(post_id: str, db: DbClient = Depends(get_db_client)):
    ensure_valid_id(post_id, "post")
    if not db.get_post(post_id):
        raise NotFound("Post not found")
    comments = db.list_comments(post_id)
    owners = load_owners(db, {comment.user_id for comment in comments})
    return [comment_response(comment, owners) for comment in comments]


@router.put("/comments/{comment_id}", response_model=CommentResponse)
def edit_comment(
    comment_id: str,
    payload: CommentRequest,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    text = require_text(payload.text, COMMENT_MAX_LENGTH, "Comment")
    ensure_valid_id(comment_id, "comment")
    comment = db.get_comment(comment_id)
    if not comment:
        raise NotFound("Comment not found")
    ensure_owner(
        comment.user_id,
        identity.user_id,
        "Access denied. You can only edit your own comments",
    )

    updated = db.update_comment_text(comment_id, sanitize_comment_text(text))
    if not updated:
        raise NotFound("Comment not found")
    return comment_response(updated, load_owners(db, [updated.user_id]))


@router.delete("/comments/{comment_id}", response_model=MessageResponse)
def delete_comment(
    comment_id: str,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    ensure_valid_id(comment_id, "comment")
    comment = db.get_comment(comment_id)
    if not comment:
        raise NotFound("Comment not found")
    ensure_owner(
        comment.user_id,
        identity.user_id,
        "Access denied. You can only delete your own comments",
    )

    db.delete_comment(comment_id)
    logger.info("User %s deleted comment %s", identity.user_id, comment_id)
    return MessageResponse(msg="Comment removed")
