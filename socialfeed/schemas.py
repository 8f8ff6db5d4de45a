"""
Pydantic schemas for requests and responses.

Response field names are the wire names the clients consume.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel


class SignupRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class PublicUser(BaseModel):
    id: str
    name: str
    email: str
    avatar: Optional[str] = None


class AuthResponse(BaseModel):
    token: str
    user: PublicUser


class OwnerSummary(BaseModel):
    id: str
    name: str
    avatar: Optional[str] = None


class UserProfileResponse(BaseModel):
    id: str
    name: str
    email: str
    avatar: Optional[str] = None
    bio: Optional[str] = None
    createdAt: datetime
    postCount: int


class UserUpdateRequest(BaseModel):
    name: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None


class UserUpdatedResponse(BaseModel):
    id: str
    name: str
    email: str
    avatar: Optional[str] = None
    bio: Optional[str] = None
    createdAt: datetime
    updatedAt: datetime


class PostCreateRequest(BaseModel):
    text: Optional[str] = None
    image: Optional[str] = None


class PostEditRequest(BaseModel):
    text: Optional[str] = None


class PostResponse(BaseModel):
    id: str
    # None when the owning account no longer resolves.
    user: Optional[OwnerSummary] = None
    text: str
    image: Optional[str] = None
    likes: list[str]
    commentsCount: int
    edited: bool
    createdAt: datetime
    updatedAt: datetime


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class PostListResponse(BaseModel):
    posts: list[PostResponse]
    pagination: Pagination


class LikeResponse(BaseModel):
    likesCount: int
    liked: bool


class CommentRequest(BaseModel):
    text: Optional[str] = None


class CommentResponse(BaseModel):
    id: str
    post: str
    user: Optional[OwnerSummary] = None
    text: str
    edited: bool
    createdAt: datetime
    updatedAt: datetime


class MessageResponse(BaseModel):
    msg: str


class ImageUploadResponse(BaseModel):
    msg: str
    fileName: str
    imageUrl: str


class HealthResponse(BaseModel):
    status: Literal["OK"]
    message: str


class ProtectedResponse(BaseModel):
    message: str
    user: dict
