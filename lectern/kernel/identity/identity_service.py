"""
Identity service for user management operations.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from lectern.kernel.models.user import User, RefreshToken
from lectern.kernel.identity.password import PasswordHasher, hash_password, verify_password
from lectern.kernel.identity.jwt import JWTManager, TokenPair
from lectern.logging_config import get_logger

logger = get_logger(__name__)


def normalize_username(username: str) -> str:
    """Usernames are stored trimmed, lowercased and at most 40 characters."""
    return username.strip()[:40].lower()


class IdentityService:
    """
    Service for user identity operations.

    Handles user registration, authentication, and token management.
    """

    def __init__(self, session: AsyncSession, jwt_manager: Optional[JWTManager] = None):
        self.session = session
        self.jwt_manager = jwt_manager or JWTManager()

    async def register_user(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        username: Optional[str] = None,
    ) -> User:
        """
        Register a new user.

        Raises:
            ValueError: If the email or username is already taken
        """
        if await self.get_user_by_email(email):
            raise ValueError("Email already registered")

        uname = normalize_username(username) if username else None
        if uname and await self.get_user_by_username(uname):
            raise ValueError("Username taken")

        user = User(
            email=email.lower().strip(),
            password_hash=hash_password(password),
            name=name.strip()[:80] if name else None,
            username=uname or None,
        )
        self.session.add(user)
        await self.session.flush()

        logger.info("User registered", extra={"user_id": str(user.id)})
        return user

    async def authenticate(
        self,
        email: str,
        password: str,
    ) -> Optional[tuple[User, TokenPair]]:
        """
        Authenticate a user and return tokens.

        Returns:
            Tuple of (User, TokenPair) if successful, None otherwise
        """
        user = await self.get_user_by_email(email)
        if not user:
            return None

        if not verify_password(password, user.password_hash):
            return None

        if not user.is_active:
            return None

        if PasswordHasher.needs_rehash(user.password_hash):
            user.password_hash = hash_password(password)

        token_pair = await self._issue_tokens(user)
        logger.info("User logged in", extra={"user_id": str(user.id)})
        return user, token_pair

    async def refresh_tokens(self, refresh_token: str) -> Optional[tuple[User, TokenPair]]:
        """
        Refresh tokens using a refresh token.

        Implements refresh token rotation: the presented token is revoked.
        """
        payload = self.jwt_manager.verify_refresh_token(refresh_token)
        if not payload:
            return None

        token_hash = JWTManager.hash_token(refresh_token)
        query = select(RefreshToken).where(
            and_(
                RefreshToken.token_hash == token_hash,
                RefreshToken.revoked.is_(False),
                RefreshToken.expires_at > datetime.now(timezone.utc),
            )
        )
        result = await self.session.execute(query)
        token_record = result.scalar_one_or_none()
        if not token_record:
            return None

        user = await self.get_user_by_id(uuid.UUID(payload.sub))
        if not user or not user.is_active:
            return None

        token_record.revoked = True
        return user, await self._issue_tokens(user)

    async def logout(
        self,
        user_id: uuid.UUID,
        refresh_token: Optional[str] = None,
        revoke_all: bool = False,
    ) -> None:
        """Revoke one refresh token, or all of the user's refresh tokens."""
        if revoke_all:
            query = select(RefreshToken).where(
                and_(
                    RefreshToken.user_id == user_id,
                    RefreshToken.revoked.is_(False),
                )
            )
        elif refresh_token:
            query = select(RefreshToken).where(
                and_(
                    RefreshToken.user_id == user_id,
                    RefreshToken.token_hash == JWTManager.hash_token(refresh_token),
                )
            )
        else:
            return

        result = await self.session.execute(query)
        for token in result.scalars().all():
            token.revoked = True

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """Get a user by ID."""
        return await self.session.get(User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email."""
        query = select(User).where(User.email == email.lower().strip())
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_user_by_username(self, username: str) -> Optional[User]:
        """Get a user by (case-insensitive) username."""
        query = select(User).where(User.username == normalize_username(username))
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def _issue_tokens(self, user: User) -> TokenPair:
        token_pair = self.jwt_manager.create_token_pair(user_id=user.id, email=user.email)
        self.session.add(
            RefreshToken(
                user_id=user.id,
                token_hash=JWTManager.hash_token(token_pair.refresh_token),
                expires_at=datetime.now(timezone.utc)
                + timedelta(days=self.jwt_manager.refresh_token_expire_days),
            )
        )
        return token_pair
