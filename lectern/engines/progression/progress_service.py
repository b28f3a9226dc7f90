"""
Progress Service - mastery, lecture completion and per-user unlock state (DB-backed).
"""

import uuid
from typing import Iterable, List, Optional, Set

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lectern.config import get_settings
from lectern.engines.progression.unlock import derive_unlocked_index
from lectern.kernel.models.lecture import Lecture, Subtopic
from lectern.kernel.models.progress import EloEvent, LectureCompletion, UserMastery
from lectern.kernel.models.user import User
from lectern.logging_config import get_logger

logger = get_logger(__name__)


class SubtopicState(BaseModel):
    """Subtopic id + mastery flag, in lecture order."""

    id: uuid.UUID
    order: int
    mastered: bool = False


class CompletionResult(BaseModel):
    elo_incremented: bool
    elo: int


class ProgressService:
    """
    Reads and writes learner progress.

    The unlock position is never stored; it is recomputed from mastery rows
    with derive_unlocked_index() every time it is read.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def mastered_ids(self, user_id: uuid.UUID, subtopic_ids: Iterable[uuid.UUID]) -> Set[uuid.UUID]:
        ids = list(subtopic_ids)
        if not ids:
            return set()
        q = select(UserMastery.subtopic_id).where(
            UserMastery.user_id == user_id,
            UserMastery.subtopic_id.in_(ids),
        )
        result = await self.session.execute(q)
        return set(result.scalars().all())

    async def get_owned_lecture(
        self,
        user_id: uuid.UUID,
        lecture_id: uuid.UUID,
        with_questions: bool = False,
    ) -> Optional[Lecture]:
        """Lecture with subtopics loaded, or None if it doesn't exist or isn't the user's."""
        loader = selectinload(Lecture.subtopics)
        if with_questions:
            loader = loader.selectinload(Subtopic.questions)
        q = (
            select(Lecture)
            .where(Lecture.id == lecture_id, Lecture.user_id == user_id)
            .options(loader)
        )
        result = await self.session.execute(q)
        return result.scalar_one_or_none()

    async def subtopic_states(self, user_id: uuid.UUID, lecture: Lecture) -> List[SubtopicState]:
        mastered = await self.mastered_ids(user_id, [s.id for s in lecture.subtopics])
        return [
            SubtopicState(id=s.id, order=s.order, mastered=s.id in mastered)
            for s in lecture.subtopics
        ]

    async def unlocked_index(self, user_id: uuid.UUID, lecture: Lecture) -> int:
        return derive_unlocked_index(await self.subtopic_states(user_id, lecture))

    async def record_mastery(
        self,
        user: User,
        subtopic_id: uuid.UUID,
        elo_delta: Optional[int] = None,
    ) -> int:
        """
        Mark a subtopic mastered and award ELO.

        The mastery row is created at most once; the ELO delta is applied on
        every call.

        Returns:
            The lecture's unlocked index after this mastery.

        Raises:
            LookupError: If the subtopic doesn't belong to one of the user's lectures
        """
        if elo_delta is None:
            elo_delta = get_settings().elo_mastery_default

        q = (
            select(Subtopic)
            .join(Lecture, Subtopic.lecture_id == Lecture.id)
            .where(Subtopic.id == subtopic_id, Lecture.user_id == user.id)
        )
        subtopic = (await self.session.execute(q)).scalar_one_or_none()
        if subtopic is None:
            raise LookupError("Subtopic not found")

        existing = await self.mastered_ids(user.id, [subtopic_id])
        if not existing:
            self.session.add(UserMastery(user_id=user.id, subtopic_id=subtopic_id))

        user.elo = (user.elo or 0) + elo_delta
        self.session.add(EloEvent(user_id=user.id, kind="mastery", ref=str(subtopic_id), delta=elo_delta))
        await self.session.flush()

        lecture = await self.get_owned_lecture(user.id, subtopic.lecture_id)
        unlocked = await self.unlocked_index(user.id, lecture)
        logger.info(
            "Subtopic mastered",
            extra={
                "user_id": str(user.id),
                "subtopic_id": str(subtopic_id),
                "elo_delta": elo_delta,
                "unlocked_index": unlocked,
            },
        )
        return unlocked

    async def complete_lecture(self, user: User, lecture_id: uuid.UUID) -> CompletionResult:
        """
        Record a lecture completion; ELO is awarded only the first time.

        Raises:
            LookupError: If the lecture isn't the user's
        """
        lecture = await self.session.get(Lecture, lecture_id)
        if lecture is None or lecture.user_id != user.id:
            raise LookupError("Lecture not found")

        q = select(LectureCompletion).where(
            LectureCompletion.user_id == user.id,
            LectureCompletion.lecture_id == lecture_id,
        )
        if (await self.session.execute(q)).scalar_one_or_none() is not None:
            return CompletionResult(elo_incremented=False, elo=user.elo)

        delta = get_settings().elo_lecture_complete
        self.session.add(LectureCompletion(user_id=user.id, lecture_id=lecture_id))
        user.elo = (user.elo or 0) + delta
        self.session.add(EloEvent(user_id=user.id, kind="lecture_complete", ref=str(lecture_id), delta=delta))
        await self.session.flush()
        logger.info(
            "Lecture completed",
            extra={"user_id": str(user.id), "lecture_id": str(lecture_id), "elo_delta": delta},
        )
        return CompletionResult(elo_incremented=True, elo=user.elo)
