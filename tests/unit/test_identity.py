"""Unit tests for the admin allow-list and display identity."""

import pytest

from lectern.kernel.identity import DisplayIdentity
from lectern.kernel.identity.admin import is_admin_email, parse_admin_emails
from lectern.kernel.identity.identity_service import normalize_username


class TestAdminAllowList:
    """Tests for allow-list parsing and checks."""

    def test_parse_trims_lowercases_and_skips_blanks(self):
        assert parse_admin_emails(" A@Example.com , ,b@example.com ") == ["a@example.com", "b@example.com"]

    def test_parse_empty(self):
        assert parse_admin_emails("") == []
        assert parse_admin_emails(None) == []

    def test_case_insensitive_match(self):
        assert is_admin_email("  ADMIN@example.com ", ["admin@example.com"]) is True

    def test_not_on_list(self):
        assert is_admin_email("user@example.com", ["admin@example.com"]) is False

    @pytest.mark.parametrize("email", [None, ""])
    def test_missing_email_is_never_admin(self, email):
        assert is_admin_email(email, ["admin@example.com"]) is False

    def test_empty_list_has_no_admins(self):
        assert is_admin_email("admin@example.com", []) is False

    def test_defaults_to_configured_list(self):
        """ADMIN_EMAILS is pinned in conftest."""
        assert is_admin_email("admin@example.com") is True
        assert is_admin_email("Boss@Example.com") is True
        assert is_admin_email("someone@example.com") is False


class TestNormalizeUsername:
    def test_trim_lower_truncate(self):
        assert normalize_username("  Ada_Lovelace  ") == "ada_lovelace"
        assert len(normalize_username("x" * 60)) == 40


class TestDisplayIdentity:
    """Tests for the display identity override."""

    def test_label_prefers_name_then_username(self):
        identity = DisplayIdentity(username="ada")
        assert identity.label() == "ada"
        identity.set(name="Ada")
        assert identity.label() == "Ada"

    def test_label_fallback(self):
        assert DisplayIdentity().label() == "You"
        assert DisplayIdentity().label(fallback="Me") == "Me"

    def test_set_rejects_unknown_fields(self):
        with pytest.raises(ValueError):
            DisplayIdentity().set(role="admin")

    def test_reset_clears_everything(self):
        identity = DisplayIdentity(id="1", name="Ada", username="ada", image="https://img.example.com/a.png")
        identity.reset()
        assert identity.snapshot() == {"id": None, "name": None, "username": None, "image": None}
