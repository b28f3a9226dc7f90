"""
Password hashing with bcrypt.

bcrypt ignores everything past 72 bytes, so passwords are truncated to that
explicitly. Hashes made with a different cost factor are upgraded on the next
successful login (see needs_rehash).
"""

import bcrypt

from lectern.config import get_settings

_MAX_BYTES = 72


def _secret(password: str) -> bytes:
    return password.encode("utf-8")[:_MAX_BYTES]


def _rounds_of(hashed: str) -> int:
    # "$2b$12$<salt+hash>"
    try:
        return int(hashed.split("$")[2])
    except (IndexError, ValueError):
        return -1


class PasswordHasher:
    """Stateless bcrypt helpers."""

    @staticmethod
    def hash(password: str) -> str:
        salt = bcrypt.gensalt(rounds=get_settings().bcrypt_rounds)
        return bcrypt.hashpw(_secret(password), salt).decode("ascii")

    @staticmethod
    def verify(plain_password: str, hashed_password: str) -> bool:
        """False for a wrong password and for anything that isn't a bcrypt hash."""
        try:
            return bcrypt.checkpw(_secret(plain_password), hashed_password.encode("ascii"))
        except (ValueError, UnicodeEncodeError):
            return False

    @staticmethod
    def needs_rehash(hashed_password: str) -> bool:
        return _rounds_of(hashed_password) != get_settings().bcrypt_rounds


def hash_password(password: str) -> str:
    return PasswordHasher.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return PasswordHasher.verify(plain_password, hashed_password)
