"""
API v1 routes.
"""

from fastapi import APIRouter

from lectern.api.v1 import admin, auth, leaderboard, lectures, mastery, quiz, ranks, telemetry, uploads, users

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(lectures.router, prefix="/lectures", tags=["Lectures"])
router.include_router(uploads.router, tags=["Uploads"])
router.include_router(quiz.router, prefix="/quiz", tags=["Quiz"])
router.include_router(mastery.router, prefix="/mastery", tags=["Mastery"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(leaderboard.router, prefix="/leaderboard", tags=["Leaderboard"])
router.include_router(ranks.router, prefix="/ranks", tags=["Ranks"])
router.include_router(admin.router, prefix="/admin", tags=["Admin"])
router.include_router(telemetry.router, prefix="/telemetry", tags=["Telemetry"])
