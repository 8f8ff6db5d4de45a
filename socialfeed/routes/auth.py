"""
Signup, login and current-user routes.
"""

from __future__ import annotations

import logging
import re

from fastapi import APIRouter, Depends

from socialfeed.db import DbClient, DuplicateKeyError, UserRecord
from socialfeed.dependencies import (
    get_db_client,
    get_password_hashing,
    get_token_service,
    require_identity,
)
from socialfeed.errors import Conflict, InvalidCredentials, Unauthenticated, ValidationError
from socialfeed.sanitizer import sanitize_name
from socialfeed.schemas import (
    AuthResponse,
    LoginRequest,
    PublicUser,
    SignupRequest,
    UserProfileResponse,
)
from socialfeed.security import Identity, PasswordHashing, TokenService

logger = logging.getLogger(__name__)

router = APIRouter()

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _auth_response(user: UserRecord, tokens: TokenService) -> AuthResponse:
    return AuthResponse(
        token=tokens.issue(user.id),
        user=PublicUser(id=user.id, name=user.name, email=user.email, avatar=user.avatar),
    )


@router.post("/signup", response_model=AuthResponse)
def signup(
    payload: SignupRequest,
    db: DbClient = Depends(get_db_client),
    passwords: PasswordHashing = Depends(get_password_hashing),
    tokens: TokenService = Depends(get_token_service),
):
    email = _normalize_email(payload.email or "")
    if not payload.name or not email or not payload.password:
        raise ValidationError("Name, email, and password are required")
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email format")

    name = sanitize_name(payload.name)
    if not name:
        raise ValidationError("Name, email, and password are required")

    if db.get_user_by_email(email):
        raise Conflict("User already exists with this email")
    try:
        user = db.create_user(name, email, passwords.hash(payload.password))
    except DuplicateKeyError:
        # Lost a race with a concurrent signup for the same address.
        raise Conflict("User already exists with this email")

    logger.info("Created user %s", user.id)
    return _auth_response(user, tokens)


@router.post("/login", response_model=AuthResponse)
def login(
    payload: LoginRequest,
    db: DbClient = Depends(get_db_client),
    passwords: PasswordHashing = Depends(get_password_hashing),
    tokens: TokenService = Depends(get_token_service),
):
    email = _normalize_email(payload.email or "")
    if not email or not payload.password:
        raise ValidationError("Email and password are required")

    user = db.get_user_by_email(email)
    if not user or not passwords.verify(payload.password, user.password_hash):
        raise InvalidCredentials("Invalid credentials")
    return _auth_response(user, tokens)


@router.get("/me", response_model=UserProfileResponse)
def me(
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    user = db.get_user(identity.user_id)
    if not user:
        # The token outlived the account it names.
        raise Unauthenticated("Token invalid")
    return UserProfileResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        avatar=user.avatar,
        bio=user.bio,
        createdAt=user.created_at,
        postCount=db.count_posts(user.id),
    )
