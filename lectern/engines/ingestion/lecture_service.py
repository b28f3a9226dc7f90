"""
Lecture Service - ingest text into a lecture and manage a user's lectures.
"""

import uuid
from typing import List

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lectern.ai.breakdown_generator import GeneratedLecture, generate_lecture, link_questions_to_subtopics
from lectern.engines.usage.token_usage import record_token_usage
from lectern.kernel.models.lecture import Lecture, QuizQuestion, Subtopic
from lectern.kernel.models.progress import UserMastery
from lectern.kernel.models.user import User
from lectern.logging_config import get_logger

logger = get_logger(__name__)

MIN_TITLE_LENGTH = 3


class LectureSummary(BaseModel):
    id: uuid.UUID
    title: str
    subtopic_count: int
    mastered_count: int


class LectureService:
    """Creates, lists, renames and deletes lectures owned by a user."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_from_text(self, user: User, text: str, route: str = "lectures") -> Lecture:
        """
        Generate a breakdown for `text` and persist the lecture.

        Subtopics are ordered as generated. Questions are linked with
        link_questions_to_subtopics().
        """
        generated = await generate_lecture(text)
        lecture = self.build_lecture(user.id, text, generated)
        self.session.add(lecture)
        await self.session.flush()

        if generated.tokens_input or generated.tokens_output:
            await record_token_usage(
                self.session,
                user_id=user.id,
                route=route,
                model=generated.model,
                tokens_input=generated.tokens_input,
                tokens_output=generated.tokens_output,
            )

        logger.info(
            "Lecture created",
            extra={
                "lecture_id": str(lecture.id),
                "user_id": str(user.id),
                "subtopics": len(lecture.subtopics),
                "model": generated.model,
            },
        )
        return lecture

    @staticmethod
    def build_lecture(user_id: uuid.UUID, text: str, generated: GeneratedLecture) -> Lecture:
        bd = generated.breakdown
        lecture = Lecture(user_id=user_id, title=(bd.topic or "Untitled")[:255], original_content=text)
        subtopics = [
            Subtopic(
                order=i,
                title=s.title[:255],
                importance=s.importance,
                difficulty=s.difficulty,
                overview=s.overview or "",
            )
            for i, s in enumerate(bd.subtopics)
        ]
        lecture.subtopics = subtopics
        links = link_questions_to_subtopics([s.title for s in subtopics], generated.questions)
        for q, idx in zip(generated.questions, links):
            if idx is None:
                continue
            subtopics[idx].questions.append(
                QuizQuestion(
                    prompt=q.prompt,
                    options=list(q.options),
                    answer_index=q.answer_index,
                    explanation=q.explanation,
                )
            )
        return lecture

    async def list_for_user(self, user_id: uuid.UUID) -> List[LectureSummary]:
        sub_count = (
            select(func.count(Subtopic.id))
            .where(Subtopic.lecture_id == Lecture.id)
            .correlate(Lecture)
            .scalar_subquery()
        )
        mastered_count = (
            select(func.count(UserMastery.id))
            .join(Subtopic, Subtopic.id == UserMastery.subtopic_id)
            .where(Subtopic.lecture_id == Lecture.id, UserMastery.user_id == user_id)
            .correlate(Lecture)
            .scalar_subquery()
        )
        q = (
            select(Lecture.id, Lecture.title, sub_count, mastered_count)
            .where(Lecture.user_id == user_id)
            .order_by(Lecture.created_at.desc())
        )
        result = await self.session.execute(q)
        return [
            LectureSummary(id=r[0], title=r[1], subtopic_count=r[2] or 0, mastered_count=r[3] or 0)
            for r in result.all()
        ]

    async def _owned(self, user_id: uuid.UUID, lecture_id: uuid.UUID) -> Lecture:
        lecture = await self.session.get(Lecture, lecture_id)
        if lecture is None or lecture.user_id != user_id:
            raise LookupError("Lecture not found")
        return lecture

    async def rename(self, user_id: uuid.UUID, lecture_id: uuid.UUID, title: str) -> Lecture:
        """
        Raises:
            ValueError: If the trimmed title is shorter than MIN_TITLE_LENGTH
            LookupError: If the lecture isn't the user's
        """
        title = (title or "").strip()
        if len(title) < MIN_TITLE_LENGTH:
            raise ValueError("Title must be at least 3 characters")
        lecture = await self._owned(user_id, lecture_id)
        lecture.title = title[:255]
        await self.session.flush()
        return lecture

    async def delete(self, user_id: uuid.UUID, lecture_id: uuid.UUID) -> None:
        lecture = await self._owned(user_id, lecture_id)
        await self.session.delete(lecture)
        await self.session.flush()
        logger.info("Lecture deleted", extra={"lecture_id": str(lecture_id), "user_id": str(user_id)})
