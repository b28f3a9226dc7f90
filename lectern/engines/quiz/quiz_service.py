"""
Quiz Service - attempts, visible per-question progress, resets and question top-up.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from lectern.engines.progression.streak import bump_daily_streak
from lectern.engines.quiz.validation import clean_question
from lectern.kernel.models.lecture import Lecture, QuizQuestion, Subtopic
from lectern.kernel.models.progress import QuizAttempt, QuizProgress, QuizReset
from lectern.kernel.models.user import User
from lectern.logging_config import get_logger

logger = get_logger(__name__)

# Questions kept per subtopic
REQUIRED_QUESTIONS = 2

_UNSET = object()


class QuizService:
    """
    Quiz state for one learner.

    Attempts are append-only. QuizProgress is what the UI shows; a reset
    writes a marker and clears it, and reads hide anything not updated
    after the latest marker.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_owned_subtopic(self, user_id: uuid.UUID, subtopic_id: uuid.UUID) -> Optional[Subtopic]:
        q = (
            select(Subtopic)
            .join(Lecture, Subtopic.lecture_id == Lecture.id)
            .where(Subtopic.id == subtopic_id, Lecture.user_id == user_id)
        )
        result = await self.session.execute(q)
        return result.scalar_one_or_none()

    async def _require_subtopic(self, user_id: uuid.UUID, subtopic_id: uuid.UUID) -> Subtopic:
        subtopic = await self.get_owned_subtopic(user_id, subtopic_id)
        if subtopic is None:
            raise LookupError("Subtopic not found")
        return subtopic

    async def record_attempt(
        self,
        user: User,
        question_id: uuid.UUID,
        selected_index: int,
        is_correct: bool,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Store an attempt and bump the daily streak.

        Returns:
            The user's streak after the attempt

        Raises:
            LookupError: If the question doesn't exist
        """
        if await self.session.get(QuizQuestion, question_id) is None:
            raise LookupError("Question not found")

        self.session.add(
            QuizAttempt(
                user_id=user.id,
                question_id=question_id,
                selected_index=selected_index,
                is_correct=is_correct,
            )
        )
        streak = bump_daily_streak(user, now)
        await self.session.flush()
        return streak

    async def get_progress(self, user_id: uuid.UUID, subtopic_id: uuid.UUID) -> List[QuizProgress]:
        """Progress rows updated after the latest reset, oldest first."""
        await self._require_subtopic(user_id, subtopic_id)

        reset_q = (
            select(QuizReset.created_at)
            .where(QuizReset.user_id == user_id, QuizReset.subtopic_id == subtopic_id)
            .order_by(QuizReset.created_at.desc())
            .limit(1)
        )
        last_reset = (await self.session.execute(reset_q)).scalar_one_or_none()

        q = select(QuizProgress).where(
            QuizProgress.user_id == user_id,
            QuizProgress.subtopic_id == subtopic_id,
        )
        if last_reset is not None:
            q = q.where(QuizProgress.updated_at > last_reset)
        q = q.order_by(QuizProgress.updated_at.asc())
        result = await self.session.execute(q)
        return list(result.scalars().all())

    async def save_progress(
        self,
        user_id: uuid.UUID,
        subtopic_id: uuid.UUID,
        updates: Sequence[Mapping[str, Any]],
    ) -> int:
        """
        Upsert per-question selection/revealed state.

        Each update is a mapping with `question_id` and optionally
        `selected_index` (int or None) and `revealed` (bool). Keys that are
        absent are left unchanged. Updates for questions outside the subtopic
        are ignored.

        Returns:
            Number of updates applied
        """
        await self._require_subtopic(user_id, subtopic_id)

        valid_q = select(QuizQuestion.id).where(QuizQuestion.subtopic_id == subtopic_id)
        valid = set((await self.session.execute(valid_q)).scalars().all())

        applied = 0
        for update in updates:
            question_id = update.get("question_id")
            if question_id not in valid:
                continue
            selected = update.get("selected_index", _UNSET)
            revealed = update.get("revealed", _UNSET)

            q = select(QuizProgress).where(
                QuizProgress.user_id == user_id,
                QuizProgress.question_id == question_id,
            )
            row = (await self.session.execute(q)).scalar_one_or_none()
            if row is None:
                row = QuizProgress(user_id=user_id, subtopic_id=subtopic_id, question_id=question_id)
                self.session.add(row)
            if selected is not _UNSET:
                row.selected_index = selected
            if isinstance(revealed, bool):
                row.revealed = revealed
            applied += 1

        await self.session.flush()
        return applied

    async def reset(self, user_id: uuid.UUID, subtopic_id: uuid.UUID) -> None:
        """Write a reset marker and clear visible progress. Attempts are kept."""
        await self._require_subtopic(user_id, subtopic_id)
        self.session.add(QuizReset(user_id=user_id, subtopic_id=subtopic_id))
        await self.session.execute(
            delete(QuizProgress).where(
                QuizProgress.user_id == user_id,
                QuizProgress.subtopic_id == subtopic_id,
            )
        )
        await self.session.flush()
        logger.info("Quiz reset", extra={"user_id": str(user_id), "subtopic_id": str(subtopic_id)})

    async def list_questions(self, subtopic_id: uuid.UUID) -> List[QuizQuestion]:
        q = select(QuizQuestion).where(QuizQuestion.subtopic_id == subtopic_id)
        result = await self.session.execute(q)
        return list(result.scalars().all())

    async def top_up_questions(
        self,
        user_id: uuid.UUID,
        subtopic_id: uuid.UUID,
        candidates: Sequence[Dict[str, Any]],
    ) -> List[QuizQuestion]:
        """
        Fill the subtopic up to REQUIRED_QUESTIONS from valid candidates.

        Returns:
            All stored questions for the subtopic
        """
        await self._require_subtopic(user_id, subtopic_id)
        existing = await self.list_questions(subtopic_id)
        missing = REQUIRED_QUESTIONS - len(existing)
        if missing <= 0:
            return existing

        added = 0
        for raw in candidates:
            if added >= missing:
                break
            if not isinstance(raw, Mapping):
                continue
            clean = clean_question(raw)
            if clean is None:
                continue
            self.session.add(
                QuizQuestion(
                    subtopic_id=subtopic_id,
                    prompt=clean.prompt,
                    options=clean.options,
                    answer_index=clean.answer_index,
                    explanation=clean.explanation,
                )
            )
            added += 1

        if added:
            await self.session.flush()
            logger.info("Quiz questions added", extra={"subtopic_id": str(subtopic_id), "count": added})
        return await self.list_questions(subtopic_id)
