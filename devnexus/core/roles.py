"""Role model for coarse authorization."""

from enum import Enum


class Role(str, Enum):
    """Roles a user can hold. Values are the strings stored in users.role and the token role claim."""

    ADMIN = "Admin"
    DEVELOPER = "Developer"
    USER = "User"

    @classmethod
    def parse(cls, value: str | None) -> "Role | None":
        """Exact match on the stored value; unknown or empty strings yield None."""
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


# Roles allowed to change data (trigger runs, edit work items).
CONTRIBUTOR_ROLES = frozenset({Role.ADMIN, Role.DEVELOPER})
ADMIN_ONLY = frozenset({Role.ADMIN})
