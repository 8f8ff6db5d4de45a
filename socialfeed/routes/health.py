"""
Liveness and token-check routes.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from socialfeed.dependencies import require_identity
from socialfeed.schemas import HealthResponse, ProtectedResponse
from socialfeed.security import Identity

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="OK", message="Server is running")


@router.get("/protected", response_model=ProtectedResponse)
def protected(identity: Identity = Depends(require_identity)):
    return ProtectedResponse(
        message="Access granted to protected route",
        user={"id": identity.user_id},
    )
