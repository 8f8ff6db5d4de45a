"""
HTTP routes for the social feed API.
"""

from fastapi import APIRouter

from socialfeed.routes.auth import router as auth_router
from socialfeed.routes.comments import router as comments_router
from socialfeed.routes.health import router as health_router
from socialfeed.routes.posts import router as posts_router
from socialfeed.routes.users import router as users_router

router = APIRouter()

router.include_router(health_router, tags=["health"])
router.include_router(auth_router, prefix="/auth", tags=["auth"])
router.include_router(users_router, prefix="/users", tags=["users"])
router.include_router(posts_router, prefix="/posts", tags=["posts"])
router.include_router(comments_router, tags=["comments"])
