"""
Quiz and mastery schemas.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from lectern.schemas.lectures import QuestionOut


class QuizAttemptRequest(BaseModel):
    question_id: uuid.UUID
    selected_index: int = Field(..., ge=0, le=3)
    is_correct: bool


class QuizAttemptResponse(BaseModel):
    ok: bool = True
    streak: int


class ProgressUpdate(BaseModel):
    """Only the fields that are sent are applied."""

    question_id: uuid.UUID
    selected_index: Optional[int] = Field(None, ge=0, le=3)
    revealed: Optional[bool] = None


class ProgressSaveRequest(BaseModel):
    subtopic_id: Optional[uuid.UUID] = None
    updates: List[ProgressUpdate] = Field(default_factory=list)


class ProgressItem(BaseModel):
    question_id: uuid.UUID
    selected_index: Optional[int] = None
    revealed: bool
    updated_at: datetime

    class Config:
        from_attributes = True


class ProgressResponse(BaseModel):
    progress: List[ProgressItem]


class QuizResetRequest(BaseModel):
    subtopic_id: Optional[uuid.UUID] = None


class QuestionsTopUpRequest(BaseModel):
    subtopic_id: Optional[uuid.UUID] = None
    questions: List[Dict[str, Any]] = Field(default_factory=list)


class QuestionsResponse(BaseModel):
    questions: List[QuestionOut]


class MasteryRequest(BaseModel):
    subtopic_id: uuid.UUID
    elo_delta: Optional[int] = None


class MasteryResponse(BaseModel):
    ok: bool = True
    unlocked_index: int
    elo: int


class QuizGenerateRequest(BaseModel):
    lesson_md: str = ""
    subtopic_title: str = ""
    difficulty: str = "hard"


class GeneratedQuestion(BaseModel):
    prompt: str
    options: List[str]
    answer_index: int
    explanation: str


class QuizGenerateResponse(BaseModel):
    questions: List[GeneratedQuestion]
    model: str
    fallback: bool
