"""
Mastery endpoint.
"""

from fastapi import APIRouter, HTTPException, status

from lectern.api.deps import CurrentUser, DbSession
from lectern.engines.progression.progress_service import ProgressService
from lectern.schemas.quiz import MasteryRequest, MasteryResponse

router = APIRouter()


@router.post("", response_model=MasteryResponse)
async def master_subtopic(data: MasteryRequest, user: CurrentUser, db: DbSession):
    """
    Mark a subtopic mastered and award ELO.

    Returns the lecture's new unlocked index so the client can advance.
    """
    try:
        unlocked = await ProgressService(db).record_mastery(user, data.subtopic_id, data.elo_delta)
    except LookupError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return MasteryResponse(unlocked_index=unlocked, elo=user.elo)
