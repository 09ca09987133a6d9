"""
Spark — Main API Router

Aggregates all sub-routers so that ``spark.main`` can mount the entire
API surface with one ``include_router`` call.
"""

from fastapi import APIRouter

from spark.api import auth, discovery, likes, matches, messages, subscriptions, swipes, users

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Auth"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(discovery.router, prefix="/discovery", tags=["Discovery"])
router.include_router(swipes.router, prefix="/swipes", tags=["Swipes"])
router.include_router(matches.router, prefix="/matches", tags=["Matches"])
router.include_router(messages.router, prefix="/messages", tags=["Messages"])
router.include_router(likes.router, prefix="/likes", tags=["Likes"])
router.include_router(subscriptions.router, prefix="/subscriptions", tags=["Subscriptions"])
