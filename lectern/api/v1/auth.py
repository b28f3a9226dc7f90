"""
Authentication endpoints.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, status

from lectern.api.deps import DbSession, CurrentUser, OptionalUser
from lectern.schemas.auth import (
    UserCreate,
    UserLogin,
    SessionUser,
    SessionResponse,
    TokenResponse,
    RefreshTokenRequest,
    LogoutRequest,
)
from lectern.schemas.common import SuccessResponse
from lectern.kernel.identity.identity_service import IdentityService
from lectern.kernel.identity.jwt import TokenPair

router = APIRouter()


def _token_response(user, token_pair: TokenPair) -> TokenResponse:
    return TokenResponse(
        access_token=token_pair.access_token,
        refresh_token=token_pair.refresh_token,
        token_type=token_pair.token_type,
        expires_in=token_pair.expires_in,
        user=SessionUser.model_validate(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(data: UserCreate, db: DbSession):
    """
    Register a new account.

    Returns access and refresh tokens on success.
    """
    identity_service = IdentityService(db)

    try:
        await identity_service.register_user(
            email=data.email,
            password=data.password,
            name=data.name,
            username=data.username,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )

    result = await identity_service.authenticate(email=data.email, password=data.password)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to authenticate after registration",
        )
    return _token_response(*result)


@router.post("/login", response_model=TokenResponse)
async def login(data: UserLogin, db: DbSession):
    """Authenticate and return tokens."""
    result = await IdentityService(db).authenticate(email=data.email, password=data.password)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return _token_response(*result)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(data: RefreshTokenRequest, db: DbSession):
    """
    Refresh the access token.

    Refresh tokens rotate: the presented token is revoked.
    """
    result = await IdentityService(db).refresh_tokens(refresh_token=data.refresh_token)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )
    return _token_response(*result)


@router.post("/logout", response_model=SuccessResponse)
async def logout(user: CurrentUser, db: DbSession, data: Optional[LogoutRequest] = None):
    """Revoke the given refresh token, or every refresh token with revoke_all."""
    data = data or LogoutRequest()
    await IdentityService(db).logout(
        user_id=user.id,
        refresh_token=data.refresh_token,
        revoke_all=data.revoke_all,
    )
    return SuccessResponse(message="Logged out")


@router.get("/session", response_model=SessionResponse)
async def get_session(user: OptionalUser):
    """Current session user, or `{"user": null}`."""
    return SessionResponse(user=SessionUser.model_validate(user) if user else None)
