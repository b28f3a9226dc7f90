"""
Admin allow-list check.

Admins are not a role stored on the user: membership is decided by the
configured ADMIN_EMAILS list, compared case-insensitively.
"""

from typing import Iterable, Optional

from lectern.config import get_settings


def parse_admin_emails(raw: Optional[str]) -> list[str]:
    """Split a comma separated allow-list into normalized emails."""
    return [e.strip().lower() for e in (raw or "").split(",") if e.strip()]


def is_admin_email(email: Optional[str], allow_list: Optional[Iterable[str]] = None) -> bool:
    """
    True when `email` is on the allow-list.

    Args:
        email: Email to check; None/empty is never an admin
        allow_list: Normalized emails; defaults to the configured ADMIN_EMAILS
    """
    if not email:
        return False
    if allow_list is None:
        allow_list = parse_admin_emails(get_settings().admin_emails)
    return email.strip().lower() in {e.strip().lower() for e in allow_list}
