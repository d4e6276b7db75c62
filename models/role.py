from dataclasses import dataclass, field
from typing import FrozenSet, Iterable


@dataclass(frozen=True)
class RolePolicy:
    """
    Data entitlement derived from a caller's role names.

    unrestricted=True sees every record. Otherwise only records whose class
    of business is in allowed_classes are visible; an empty set means no
    access at all.
    """

    unrestricted: bool = False
    allowed_classes: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def all_access(cls) -> "RolePolicy":
        return cls(unrestricted=True)

    @classmethod
    def allowed(cls, classes: Iterable[str]) -> "RolePolicy":
        return cls(unrestricted=False, allowed_classes=frozenset(classes))

    @classmethod
    def no_access(cls) -> "RolePolicy":
        return cls(unrestricted=False, allowed_classes=frozenset())

    def is_empty(self) -> bool:
        return not self.unrestricted and not self.allowed_classes

    def describe(self) -> str:
        if self.unrestricted:
            return "Unrestricted"
        if not self.allowed_classes:
            return "AllowedClasses(none)"
        return f"AllowedClasses({', '.join(sorted(self.allowed_classes))})"
