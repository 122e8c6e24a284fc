"""
Unit tests for the role permission table and ticket access predicates.
Run: pytest tests/test_permissions.py -v
"""

import pytest

from ticketdesk.core.enums import RoleEnum as Role
from ticketdesk.services.permissions import (
    NO_PERMISSIONS,
    can_access_ticket,
    can_edit_ticket,
    permissions_for,
    resolve_role,
)

EXPECTED = {
    "admin": {
        "can_manage_users": True,
        "can_manage_all_tickets": True,
        "can_assign_tickets": True,
        "can_view_all_tickets": True,
        "can_delete_tickets": True,
        "can_manage_settings": True,
        "can_view_analytics": True,
        "can_close_tickets": True,
        "can_edit_any_ticket": True,
    },
    "agent": {
        "can_manage_users": False,
        "can_manage_all_tickets": True,
        "can_assign_tickets": True,
        "can_view_all_tickets": True,
        "can_delete_tickets": True,
        "can_manage_settings": False,
        "can_view_analytics": True,
        "can_close_tickets": False,
        "can_edit_any_ticket": True,
    },
    "user": {
        "can_manage_users": False,
        "can_manage_all_tickets": False,
        "can_assign_tickets": False,
        "can_view_all_tickets": False,
        "can_delete_tickets": False,
        "can_manage_settings": False,
        "can_view_analytics": False,
        "can_close_tickets": True,
        "can_edit_any_ticket": False,
    },
}


class TestPermissionTable:
    @pytest.mark.parametrize("role", ["admin", "agent", "user"])
    def test_all_flags(self, role):
        perms = permissions_for(role)
        for flag, expected in EXPECTED[role].items():
            assert getattr(perms, flag) is expected, flag

    def test_enum_and_string_lookup_match(self):
        for role in Role:
            assert permissions_for(role) == permissions_for(role.value)

    def test_delete_and_manage_users(self):
        assert permissions_for("user").can_delete_tickets is False
        assert permissions_for("admin").can_delete_tickets is True
        assert permissions_for("agent").can_manage_users is False

    def test_unknown_role_gets_nothing(self):
        perms = permissions_for("superuser")
        assert perms is NO_PERMISSIONS
        assert not any(getattr(perms, f) for f in EXPECTED["admin"])

    def test_missing_role_is_user(self):
        assert permissions_for(None) == permissions_for("user")
        assert permissions_for("") == permissions_for("user")


class TestResolveRole:
    def test_values(self):
        assert resolve_role(None) is Role.user
        assert resolve_role("") is Role.user
        assert resolve_role("agent") is Role.agent
        assert resolve_role(Role.admin) is Role.admin
        assert resolve_role("Admin") is None
        assert resolve_role(3) is None


class TestTicketAccess:
    ticket = {"created_by": 1, "assigned_to": 2}

    def test_staff_see_everything(self):
        assert can_access_ticket("agent", 99, self.ticket)
        assert can_access_ticket("admin", 99, self.ticket)

    def test_user_sees_own_or_assigned(self):
        assert can_access_ticket("user", 1, self.ticket)
        assert can_access_ticket("user", 2, self.ticket)
        assert not can_access_ticket("user", 3, self.ticket)

    def test_unknown_role_only_via_ownership(self):
        assert not can_access_ticket("ghost", 3, self.ticket)
        assert can_access_ticket("ghost", 1, self.ticket)

    def test_edit(self):
        assert can_edit_ticket("agent", 99, self.ticket)
        assert can_edit_ticket("admin", 99, self.ticket)
        assert can_edit_ticket("user", 1, self.ticket)
        assert not can_edit_ticket("user", 2, self.ticket)
        assert not can_edit_ticket("ghost", 1, self.ticket)
