"""
Tests for role -> data-entitlement resolution.
"""

import pytest

from models.role import RolePolicy
from services.role_policy import (
    is_admin,
    is_super_user,
    primary_role,
    resolve_policy,
    role_classes_from_mappings,
    role_display_name,
)


class TestResolvePolicy:

    def test_admin_is_unrestricted(self):
        policy = resolve_policy(["admin"])
        assert policy.unrestricted
        assert not policy.is_empty()

    def test_admin_wins_over_business_roles(self):
        assert resolve_policy(["fi", "Admin"]).unrestricted

    def test_super_user_is_unrestricted(self):
        assert resolve_policy(["Super User"]).unrestricted

    def test_single_business_role(self):
        policy = resolve_policy(["FI"])
        assert not policy.unrestricted
        assert policy.allowed_classes == frozenset({"Fire"})

    def test_marine_covers_cargo_and_hull(self):
        policy = resolve_policy(["marine"])
        assert policy.allowed_classes == frozenset({"Marine", "Cargo", "Hull"})

    def test_roles_union(self):
        policy = resolve_policy(["fi", " CA ", "li"])
        assert policy.allowed_classes == frozenset({"Fire", "Cargo", "Life"})

    @pytest.mark.parametrize("roles", [None, [], [""], ["guest"], ["unknown", "  "]])
    def test_no_recognised_role_fails_closed(self, roles):
        policy = resolve_policy(roles)
        assert policy.is_empty()
        assert policy == RolePolicy.no_access()

    def test_custom_role_table(self):
        policy = resolve_policy(["fi"], {"FI": ["Fire", "Engineering"]})
        assert policy.allowed_classes == frozenset({"Fire", "Engineering"})

    def test_role_table_from_mappings(self):
        table = role_classes_from_mappings({"role_classes": {"AV": ["Aviation"]}})
        assert table["av"] == ["Aviation"]
        assert table["fi"] == ["Fire"]
        assert resolve_policy(["av"], table).allowed_classes == frozenset({"Aviation"})


class TestRolePolicyModel:

    def test_describe(self):
        assert RolePolicy.all_access().describe() == "Unrestricted"
        assert RolePolicy.no_access().describe() == "AllowedClasses(none)"
        assert RolePolicy.allowed(["Hull", "Cargo"]).describe() == "AllowedClasses(Cargo, Hull)"

    def test_frozen(self):
        policy = RolePolicy.allowed(["Fire"])
        with pytest.raises(Exception):
            policy.unrestricted = True


class TestRoleHelpers:

    def test_flags(self):
        assert is_admin(["fi", "admin"])
        assert not is_admin(["super user"])
        assert is_super_user(["Super User"])
        assert not is_super_user(None)

    def test_display_names(self):
        assert role_display_name("fi") == "PROPERTY"
        assert role_display_name("admin") == "Main Admin"
        assert role_display_name("xx") == "XX"

    def test_primary_role(self):
        assert primary_role(["admin", "fi"]) == "fi"
        assert primary_role(["admin"]) == "admin"
        assert primary_role(["guest"]) == "guest"
        assert primary_role([]) is None
