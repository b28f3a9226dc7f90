"""
Lecture endpoints: ingestion, listing, detail with unlock state, rename, delete, completion.
"""

import json
import uuid

from fastapi import APIRouter, HTTPException, Request, status

from lectern.api.deps import CurrentUser, DbSession
from lectern.api.v1.uploads import read_pdf_upload
from lectern.engines.ingestion.lecture_service import LectureService
from lectern.engines.progression.progress_service import ProgressService
from lectern.engines.progression.unlock import derive_unlocked_index
from lectern.schemas.common import SuccessResponse
from lectern.schemas.lectures import (
    LectureCompleteRequest,
    LectureCompleteResponse,
    LectureCreated,
    LectureDetail,
    LectureList,
    LectureListItem,
    LectureRename,
    QuestionOut,
    SubtopicOut,
)

router = APIRouter()


async def _json_content(request: Request) -> str:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = {}
    content = body.get("content") if isinstance(body, dict) else None
    text = str(content or "")
    if not text.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Content is required.")
    return text


@router.post("", response_model=LectureCreated, status_code=status.HTTP_201_CREATED)
async def create_lecture(request: Request, user: CurrentUser, db: DbSession):
    """
    Create a lecture from JSON `{"content": ...}` or a multipart PDF in `file`.

    The text is broken down into ordered subtopics with one question each.
    """
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" in content_type:
        _, _, text = await read_pdf_upload(request)
    elif "application/json" in content_type:
        text = await _json_content(request)
    else:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="Unsupported content type.",
        )

    lecture = await LectureService(db).create_from_text(user, text)
    return LectureCreated(lecture_id=lecture.id)


@router.get("", response_model=LectureList)
async def list_lectures(user: CurrentUser, db: DbSession):
    summaries = await LectureService(db).list_for_user(user.id)
    return LectureList(lectures=[LectureListItem(**s.model_dump()) for s in summaries])


@router.post("/complete", response_model=LectureCompleteResponse)
async def complete_lecture(data: LectureCompleteRequest, user: CurrentUser, db: DbSession):
    """Mark a lecture finished. ELO is awarded only on the first completion."""
    try:
        result = await ProgressService(db).complete_lecture(user, data.lecture_id)
    except LookupError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return LectureCompleteResponse(elo_incremented=result.elo_incremented, elo=result.elo)


@router.get("/{lecture_id}", response_model=LectureDetail)
async def get_lecture(lecture_id: uuid.UUID, user: CurrentUser, db: DbSession):
    """Lecture with ordered subtopics, per-user mastery and the unlocked index."""
    progress = ProgressService(db)
    lecture = await progress.get_owned_lecture(user.id, lecture_id, with_questions=True)
    if lecture is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    mastered = await progress.mastered_ids(user.id, [s.id for s in lecture.subtopics])
    subtopics = [
        SubtopicOut(
            id=s.id,
            order=s.order,
            title=s.title,
            importance=s.importance,
            difficulty=s.difficulty,
            overview=s.overview,
            explanation=s.explanation,
            mastered=s.id in mastered,
            questions=[QuestionOut.model_validate(q) for q in s.questions],
        )
        for s in lecture.subtopics
    ]
    return LectureDetail(
        id=lecture.id,
        title=lecture.title,
        original_content=lecture.original_content,
        created_at=lecture.created_at,
        subtopics=subtopics,
        unlocked_index=derive_unlocked_index(subtopics),
    )


@router.patch("/{lecture_id}", response_model=SuccessResponse)
async def rename_lecture(lecture_id: uuid.UUID, data: LectureRename, user: CurrentUser, db: DbSession):
    try:
        lecture = await LectureService(db).rename(user.id, lecture_id, data.title)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return SuccessResponse(data={"id": str(lecture.id), "title": lecture.title})


@router.delete("/{lecture_id}", response_model=SuccessResponse)
async def delete_lecture(lecture_id: uuid.UUID, user: CurrentUser, db: DbSession):
    try:
        await LectureService(db).delete(user.id, lecture_id)
    except LookupError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return SuccessResponse(message="Lecture deleted")
