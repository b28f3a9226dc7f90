"""
Lecture and subtopic schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class LectureCreated(BaseModel):
    lecture_id: uuid.UUID


class LectureRename(BaseModel):
    title: str = ""


class QuestionOut(BaseModel):
    id: uuid.UUID
    prompt: str
    options: List[str]
    answer_index: int
    explanation: str

    class Config:
        from_attributes = True


class SubtopicOut(BaseModel):
    id: uuid.UUID
    order: int
    title: str
    importance: str
    difficulty: int
    overview: str
    explanation: str
    mastered: bool = False
    questions: List[QuestionOut] = Field(default_factory=list)


class LectureDetail(BaseModel):
    id: uuid.UUID
    title: str
    original_content: str
    created_at: Optional[datetime] = None
    subtopics: List[SubtopicOut]
    unlocked_index: int


class LectureListItem(BaseModel):
    id: uuid.UUID
    title: str
    subtopic_count: int
    mastered_count: int


class LectureList(BaseModel):
    lectures: List[LectureListItem]


class LectureCompleteRequest(BaseModel):
    lecture_id: uuid.UUID


class LectureCompleteResponse(BaseModel):
    ok: bool = True
    elo_incremented: bool
    elo: int


class PdfUploadResponse(BaseModel):
    filename: str
    pages: int
    content: str
