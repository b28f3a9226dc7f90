"""
FastAPI dependencies for authentication, authorization, and database sessions.
"""

import uuid
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from lectern.database import get_db
from lectern.kernel.models.user import User
from lectern.kernel.identity.admin import is_admin_email
from lectern.kernel.identity.jwt import verify_access_token
from lectern.kernel.identity.identity_service import IdentityService
from lectern.logging_config import user_id_var


security = HTTPBearer(auto_error=False)

# Function scope: the session commits when the handler returns, before the
# response is sent.
DbSession = Annotated[AsyncSession, Depends(get_db, scope="function")]


async def _user_from_credentials(
    credentials: Optional[HTTPAuthorizationCredentials],
    db: AsyncSession,
) -> Optional[User]:
    if not credentials:
        return None
    payload = verify_access_token(credentials.credentials)
    if not payload:
        return None
    try:
        user_id = uuid.UUID(payload.sub)
    except ValueError:
        return None
    user = await IdentityService(db).get_user_by_id(user_id)
    if not user or not user.is_active:
        return None
    user_id_var.set(str(user.id))
    return user


async def get_current_user_optional(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: DbSession,
) -> Optional[User]:
    """Get current user if authenticated, None otherwise."""
    return await _user_from_credentials(credentials, db)


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: DbSession,
) -> User:
    """Get current authenticated user or raise 401."""
    user = await _user_from_credentials(credentials, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_current_user_optional)]


async def require_admin(user: CurrentUser) -> User:
    """Require the current user's email to be on the ADMIN_EMAILS allow-list."""
    if not is_admin_email(user.email):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden",
        )
    return user


AdminUser = Annotated[User, Depends(require_admin)]
