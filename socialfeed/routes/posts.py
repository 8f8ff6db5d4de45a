"""
Post routes: CRUD, likes, and the image upload/serve proxy.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from socialfeed.config import Settings
from socialfeed.db import DbClient
from socialfeed.dependencies import (
    get_app_settings,
    get_db_client,
    get_storage_client,
    require_identity,
)
from socialfeed.errors import NotFound, ValidationError
from socialfeed.routes.common import (
    ensure_owner,
    ensure_valid_id,
    load_owners,
    pagination,
    post_response,
    require_text,
    single_post_response,
)
from socialfeed.sanitizer import POST_MAX_LENGTH, sanitize_post_text
from socialfeed.schemas import (
    ImageUploadResponse,
    LikeResponse,
    MessageResponse,
    PostCreateRequest,
    PostEditRequest,
    PostListResponse,
    PostResponse,
)
from socialfeed.security import Identity
from socialfeed.storage import ObjectNotFound, StorageClient
from socialfeed.uploads import (
    ALLOWED_IMAGE_TYPES,
    ImageUpload,
    generate_file_name,
    image_proxy_url,
    read_image_upload,
)

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_IMAGE_CONTENT_TYPE = "image/jpeg"


def _ensure_file_name(file_name: str) -> str:
    if not file_name or file_name.startswith(".") or "/" in file_name or "\\" in file_name:
        raise ValidationError("Invalid file name")
    return file_name


@router.post("", response_model=PostResponse, status_code=201)
def create_post(
    payload: PostCreateRequest,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    text = require_text(payload.text, POST_MAX_LENGTH, "Text")
    post = db.create_post(identity.user_id, sanitize_post_text(text), payload.image or None)
    logger.info("User %s created post %s", identity.user_id, post.id)
    return single_post_response(db, post)


@router.get("", response_model=PostListResponse)
def list_posts(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    user_id: Optional[str] = Query(None, alias="userId"),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_app_settings),
):
    limit = min(limit or settings.default_page_limit, settings.max_page_limit)
    if user_id is not None:
        ensure_valid_id(user_id, "user")
    posts, total = db.list_posts(user_id=user_id, offset=(page - 1) * limit, limit=limit)
    owners = load_owners(db, {post.user_id for post in posts})
    return PostListResponse(
        posts=[post_response(post, owners) for post in posts],
        pagination=pagination(page, limit, total),
    )


@router.post("/upload-image", response_model=ImageUploadResponse, status_code=201)
def upload_image(
    identity: Identity = Depends(require_identity),
    upload: ImageUpload = Depends(read_image_upload),
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_app_settings),
):
    file_name = generate_file_name(upload.filename, upload.content_type)
    storage.upload_bytes(
        file_name,
        upload.data,
        content_type=upload.content_type,
        cache_control=settings.image_cache_control,
    )
    logger.info(
        "User %s uploaded image %s (%d bytes)", identity.user_id, file_name, upload.size
    )
    return ImageUploadResponse(
        msg="Image uploaded successfully",
        fileName=file_name,
        imageUrl=image_proxy_url(settings.api_prefix, file_name),
    )


@router.delete("/delete-image/{file_name}", response_model=MessageResponse)
def delete_image(
    file_name: str,
    identity: Identity = Depends(require_identity),
    storage: StorageClient = Depends(get_storage_client),
):
    # Any authenticated caller may delete any image; uploads are not tied to owners.
    storage.delete_object(_ensure_file_name(file_name))
    logger.info("User %s deleted image %s", identity.user_id, file_name)
    return MessageResponse(msg="Image deleted successfully")


@router.get("/image/{file_name}")
def serve_image(
    file_name: str,
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_app_settings),
):
    try:
        stored = storage.get_object(_ensure_file_name(file_name))
    except ObjectNotFound:
        raise NotFound("Image not found")
    content_type = (stored.content_type or "").lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        content_type = DEFAULT_IMAGE_CONTENT_TYPE
    return Response(
        content=stored.body,
        media_type=content_type,
        headers={"Cache-Control": settings.image_cache_control},
    )


@router.get("/{post_id}", response_model=PostResponse)
def get_post(post_id: str, db: DbClient = Depends(get_db_client)):
    ensure_valid_id(post_id, "post")
    post = db.get_post(post_id)
    if not post:
        raise NotFound("Post not found")
    return single_post_response(db, post)


@router.put("/{post_id}", response_model=PostResponse)
def edit_post(
    post_id: str,
    payload: PostEditRequest,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    text = require_text(payload.text, POST_MAX_LENGTH, "Text")
    ensure_valid_id(post_id, "post")
    post = db.get_post(post_id)
    if not post:
        raise NotFound("Post not found")
    ensure_owner(post.user_id, identity.user_id, "Access denied. You can only edit your own posts")

    updated = db.update_post_text(post_id, sanitize_post_text(text))
    if not updated:
        raise NotFound("Post not found")
    return single_post_response(db, updated)


@router.delete("/{post_id}", response_model=MessageResponse)
def delete_post(
    post_id: str,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    ensure_valid_id(post_id, "post")
    post = db.get_post(post_id)
    if not post:
        raise NotFound("Post not found")
    ensure_owner(
        post.user_id, identity.user_id, "Access denied. You can only delete your own posts"
    )

    db.delete_post(post_id)
    logger.info("User %s deleted post %s", identity.user_id, post_id)
    return MessageResponse(msg="Post removed")


@router.post("/{post_id}/like", response_model=LikeResponse)
def toggle_like(
    post_id: str,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    ensure_valid_id(post_id, "post")
    result = db.toggle_like(post_id, identity.user_id)
    if result is None:
        raise NotFound("Post not found")
    likes_count, liked = result
    return LikeResponse(likesCount=likes_count, liked=liked)
