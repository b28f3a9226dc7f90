"""
Social Service - profiles, profile edits and the follow graph.
"""

import math
import uuid
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lectern.kernel.identity.identity_service import normalize_username
from lectern.kernel.models.progress import QuizAttempt, UserMastery
from lectern.kernel.models.social import Follow
from lectern.kernel.models.user import User
from lectern.logging_config import get_logger

logger = get_logger(__name__)

NAME_MAX = 80
BIO_MAX = 280


class ProfileConflictError(ValueError):
    """Requested username belongs to someone else."""


class UserStats(BaseModel):
    mastered_count: int = 0
    total_attempts: int = 0
    correct_attempts: int = 0
    quiz_accuracy: int = 0


def quiz_accuracy(correct: int, total: int) -> int:
    """Percentage rounded half up; 0 with no attempts."""
    if not total:
        return 0
    return int(math.floor(correct * 100 / total + 0.5))


def clean_profile_update(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Keep only valid profile fields, trimmed and truncated.

    An empty username clears it.
    """
    data: Dict[str, Any] = {}
    if isinstance(payload.get("name"), str):
        data["name"] = payload["name"].strip()[:NAME_MAX]
    if isinstance(payload.get("username"), str):
        data["username"] = normalize_username(payload["username"]) or None
    if isinstance(payload.get("bio"), str):
        data["bio"] = payload["bio"].strip()[:BIO_MAX]
    if isinstance(payload.get("image"), str):
        data["image"] = payload["image"].strip()
    if isinstance(payload.get("leaderboard_opt_out"), bool):
        data["leaderboard_opt_out"] = payload["leaderboard_opt_out"]
    return data


class SocialService:
    """Profile reads/writes and follow relations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def stats(self, user_id: uuid.UUID) -> UserStats:
        mastered_q = select(func.count(UserMastery.id)).where(UserMastery.user_id == user_id)
        mastered = (await self.session.execute(mastered_q)).scalar_one()

        attempts_q = select(QuizAttempt.is_correct, func.count(QuizAttempt.id)).where(
            QuizAttempt.user_id == user_id
        ).group_by(QuizAttempt.is_correct)
        counts = dict((await self.session.execute(attempts_q)).all())
        correct = counts.get(True, 0)
        total = correct + counts.get(False, 0)
        return UserStats(
            mastered_count=mastered,
            total_attempts=total,
            correct_attempts=correct,
            quiz_accuracy=quiz_accuracy(correct, total),
        )

    async def update_profile(self, user: User, payload: Dict[str, Any]) -> User:
        """
        Raises:
            ValueError: If no valid field was given
            ProfileConflictError: If the username is taken
        """
        data = clean_profile_update(payload)
        if not data:
            raise ValueError("No valid fields")

        if data.get("username"):
            q = select(User.id).where(User.username == data["username"], User.id != user.id)
            if (await self.session.execute(q)).scalar_one_or_none() is not None:
                raise ProfileConflictError("Username taken")

        for key, value in data.items():
            setattr(user, key, value)
        await self.session.flush()
        return user

    async def get_by_username(self, username: str) -> Optional[User]:
        q = select(User).where(User.username == normalize_username(username), User.is_active.is_(True))
        return (await self.session.execute(q)).scalar_one_or_none()

    async def follow_counts(self, user_id: uuid.UUID) -> Dict[str, int]:
        followers = (
            await self.session.execute(select(func.count(Follow.id)).where(Follow.following_id == user_id))
        ).scalar_one()
        following = (
            await self.session.execute(select(func.count(Follow.id)).where(Follow.follower_id == user_id))
        ).scalar_one()
        return {"followers": followers, "following": following}

    async def is_following(self, follower_id: uuid.UUID, target_id: uuid.UUID) -> bool:
        q = select(Follow.id).where(Follow.follower_id == follower_id, Follow.following_id == target_id)
        return (await self.session.execute(q)).scalar_one_or_none() is not None

    async def _check_target(self, follower_id: uuid.UUID, target_id: Optional[uuid.UUID]) -> uuid.UUID:
        if target_id is None:
            raise ValueError("target_user_id is required")
        if target_id == follower_id:
            raise ValueError("You cannot follow yourself")
        target = await self.session.get(User, target_id)
        if target is None:
            raise ValueError("User not found")
        return target_id

    async def follow(self, follower_id: uuid.UUID, target_id: Optional[uuid.UUID]) -> None:
        """Idempotent follow."""
        target_id = await self._check_target(follower_id, target_id)
        if await self.is_following(follower_id, target_id):
            return
        self.session.add(Follow(follower_id=follower_id, following_id=target_id))
        await self.session.flush()
        logger.info("Follow", extra={"user_id": str(follower_id), "target_id": str(target_id)})

    async def unfollow(self, follower_id: uuid.UUID, target_id: Optional[uuid.UUID]) -> None:
        """Unfollowing someone you don't follow is a no-op."""
        target_id = await self._check_target(follower_id, target_id)
        await self.session.execute(
            delete(Follow).where(Follow.follower_id == follower_id, Follow.following_id == target_id)
        )
        await self.session.flush()

    async def following_ids(self, follower_id: uuid.UUID) -> List[uuid.UUID]:
        q = select(Follow.following_id).where(Follow.follower_id == follower_id).order_by(Follow.created_at)
        return list((await self.session.execute(q)).scalars().all())
