"""
Lecture content models - lectures, subtopics and quiz questions.
"""

import uuid
from typing import List

from sqlalchemy import ForeignKey, Index, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lectern.kernel.models.base import Base, TimestampMixin, generate_uuid


class Lecture(Base, TimestampMixin):
    """A lecture ingested by a user: title, source text and ordered subtopics."""

    __tablename__ = "lectures"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=generate_uuid)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="Untitled")
    original_content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    subtopics: Mapped[List["Subtopic"]] = relationship(
        "Subtopic",
        back_populates="lecture",
        order_by="Subtopic.order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Lecture {self.title!r}>"


class Subtopic(Base):
    """One quiz-bearing unit of a lecture."""

    __tablename__ = "subtopics"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=generate_uuid)
    lecture_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("lectures.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    importance: Mapped[str] = mapped_column(String(16), nullable=False, default="medium")
    difficulty: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    overview: Mapped[str] = mapped_column(Text, nullable=False, default="")
    explanation: Mapped[str] = mapped_column(Text, nullable=False, default="")

    lecture: Mapped["Lecture"] = relationship("Lecture", back_populates="subtopics")
    questions: Mapped[List["QuizQuestion"]] = relationship(
        "QuizQuestion",
        back_populates="subtopic",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("ix_subtopics_lecture_order", "lecture_id", "order"),)


class QuizQuestion(Base):
    """Four-option multiple-choice question attached to a subtopic."""

    __tablename__ = "quiz_questions"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=generate_uuid)
    subtopic_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("subtopics.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    answer_index: Mapped[int] = mapped_column(Integer, nullable=False)
    explanation: Mapped[str] = mapped_column(Text, nullable=False, default="")

    subtopic: Mapped["Subtopic"] = relationship("Subtopic", back_populates="questions")
