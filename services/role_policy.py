# services/role_policy.py

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from models.role import RolePolicy


# -----------------------------
# Role tables
# -----------------------------

ADMIN_ROLES = {"admin"}
SUPER_USER_ROLES = {"super user", "super-user", "superuser"}

# business role -> canonical class-of-business keys
DEFAULT_ROLE_CLASSES: Dict[str, List[str]] = {
    "fi": ["Fire"],
    "eg": ["Energy"],
    "ca": ["Cargo"],
    "hu": ["Hull"],
    "marine": ["Marine", "Cargo", "Hull"],
    "ac": ["Casualty"],
    "en": ["Engineering"],
    "li": ["Life"],
}

ROLE_DISPLAY_NAMES: Dict[str, str] = {
    "li": "LIFE",
    "fi": "PROPERTY",
    "eg": "ENERGY",
    "ca": "CARGO",
    "hu": "HULL",
    "marine": "MARINE",
    "ac": "CASUALTY",
    "en": "ENGINEERING",
    "admin": "Main Admin",
    "super user": "Super User",
    "super-user": "Super User",
}


def _norm(role) -> str:
    return str(role or "").strip().lower()


# -----------------------------
# Resolver
# -----------------------------

def resolve_policy(
    role_names: Optional[Iterable[str]],
    role_classes: Optional[Dict[str, Iterable[str]]] = None,
) -> RolePolicy:
    """
    Map a caller's role names onto a RolePolicy.

    - any admin or super-user role  -> unrestricted
    - otherwise the union of classes of every known business role
    - no recognised role (or no session at all) -> zero access
    """
    roles = [_norm(r) for r in (role_names or []) if _norm(r)]

    if any(r in ADMIN_ROLES or r in SUPER_USER_ROLES for r in roles):
        return RolePolicy.all_access()

    table = DEFAULT_ROLE_CLASSES if role_classes is None else role_classes
    table = {_norm(k): v for k, v in table.items()}

    allowed = set()
    for r in roles:
        allowed.update(table.get(r, []))

    return RolePolicy.allowed(allowed)


def role_classes_from_mappings(mappings: Optional[dict]) -> Dict[str, List[str]]:
    """Built-in role table extended by mappings.yaml `role_classes`."""
    table = {k: list(v) for k, v in DEFAULT_ROLE_CLASSES.items()}
    for role, classes in ((mappings or {}).get("role_classes") or {}).items():
        table[_norm(role)] = list(classes or [])
    return table


# -----------------------------
# Role helpers (display)
# -----------------------------

def is_admin(role_names: Optional[Iterable[str]]) -> bool:
    return any(_norm(r) in ADMIN_ROLES for r in (role_names or []))


def is_super_user(role_names: Optional[Iterable[str]]) -> bool:
    return any(_norm(r) in SUPER_USER_ROLES for r in (role_names or []))


def role_display_name(role: str) -> str:
    return ROLE_DISPLAY_NAMES.get(_norm(role), str(role).upper())


def primary_role(role_names: Optional[Iterable[str]]) -> Optional[str]:
    """Business roles win over admin roles; otherwise the first role given."""
    roles = [r for r in (role_names or []) if _norm(r)]
    if not roles:
        return None
    for r in roles:
        if _norm(r) in DEFAULT_ROLE_CLASSES:
            return r
    for r in roles:
        if _norm(r) in ADMIN_ROLES:
            return r
    return roles[0]
