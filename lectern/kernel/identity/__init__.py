"""
Identity Core - Authentication, sessions and the admin allow-list.
"""

from lectern.kernel.identity.password import PasswordHasher, verify_password, hash_password
from lectern.kernel.identity.jwt import (
    JWTManager,
    TokenPair,
    AccessTokenPayload,
    verify_access_token,
)
from lectern.kernel.identity.admin import is_admin_email, parse_admin_emails
from lectern.kernel.identity.display import DisplayIdentity
from lectern.kernel.identity.identity_service import IdentityService

__all__ = [
    "PasswordHasher",
    "verify_password",
    "hash_password",
    "JWTManager",
    "TokenPair",
    "AccessTokenPayload",
    "verify_access_token",
    "is_admin_email",
    "parse_admin_emails",
    "DisplayIdentity",
    "IdentityService",
]
