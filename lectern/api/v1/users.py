"""
User profile and follow endpoints.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, status

from lectern.api.deps import CurrentUser, DbSession, OptionalUser
from lectern.engines.progression.ranks import get_ranks_safe, pick_rank_for_elo
from lectern.engines.social.social_service import ProfileConflictError, SocialService
from lectern.kernel.identity.admin import is_admin_email
from lectern.schemas.users import (
    FollowingResponse,
    FollowRequest,
    FollowResponse,
    MeResponse,
    ProfileUpdate,
    PublicProfile,
)

router = APIRouter()


async def _me_response(db, user) -> MeResponse:
    stats = await SocialService(db).stats(user.id)
    ranks = await get_ranks_safe(db)
    return MeResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        username=user.username,
        bio=user.bio,
        image=user.image,
        elo=user.elo,
        streak=user.streak,
        last_studied_at=user.last_studied_at,
        leaderboard_opt_out=user.leaderboard_opt_out,
        mastered_count=stats.mastered_count,
        quiz_accuracy=stats.quiz_accuracy,
        is_admin=is_admin_email(user.email),
        rank=pick_rank_for_elo(ranks, user.elo),
    )


@router.get("/me", response_model=MeResponse)
async def get_me(user: CurrentUser, db: DbSession):
    """Own profile with mastery count, quiz accuracy and rank."""
    return await _me_response(db, user)


@router.patch("/me", response_model=MeResponse)
async def update_me(data: ProfileUpdate, user: CurrentUser, db: DbSession):
    try:
        await SocialService(db).update_profile(user, data.model_dump(exclude_none=True))
    except ProfileConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return await _me_response(db, user)


@router.get("/me/following", response_model=FollowingResponse)
async def my_following(user: CurrentUser, db: DbSession):
    return FollowingResponse(following=await SocialService(db).following_ids(user.id))


@router.post("/follow", response_model=FollowResponse)
async def follow(user: CurrentUser, db: DbSession, data: Optional[FollowRequest] = None):
    target_id = data.target_user_id if data else None
    try:
        await SocialService(db).follow(user.id, target_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return FollowResponse(following=True)


@router.delete("/follow", response_model=FollowResponse)
async def unfollow(user: CurrentUser, db: DbSession, data: Optional[FollowRequest] = None):
    target_id = data.target_user_id if data else None
    try:
        await SocialService(db).unfollow(user.id, target_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return FollowResponse(following=False)


@router.get("/{username}", response_model=PublicProfile)
async def get_public_profile(username: str, db: DbSession, viewer: OptionalUser):
    """Public profile by username (case-insensitive)."""
    social = SocialService(db)
    target = await social.get_by_username(username)
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    stats = await social.stats(target.id)
    counts = await social.follow_counts(target.id)
    ranks = await get_ranks_safe(db)
    return PublicProfile(
        id=target.id,
        name=target.name,
        username=target.username,
        bio=target.bio,
        image=target.image,
        elo=target.elo,
        streak=target.streak,
        mastered_count=stats.mastered_count,
        followers=counts["followers"],
        following=counts["following"],
        is_following=bool(viewer) and await social.is_following(viewer.id, target.id),
        rank=pick_rank_for_elo(ranks, target.elo),
    )
