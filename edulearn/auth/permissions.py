"""Role-based access control for EduLearn.

Three roles, ordered by privilege:
- ADMIN (level 3): approves signups, sees every account and statistic
- TEACHER (level 2): publishes videos, sees per-video watch statistics
- STUDENT (level 1): watches videos and records progress
"""

from enum import Enum


class UserRole(str, Enum):
    """Account roles. Higher level means more permissions."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.STUDENT: 1,
    UserRole.TEACHER: 2,
    UserRole.ADMIN: 3,
}

# Roles a person may ask for through the public signup form.
# Admin accounts only come from the bootstrap script.
SIGNUP_ROLES: frozenset[UserRole] = frozenset({UserRole.TEACHER, UserRole.STUDENT})


def get_role_level(role: UserRole | str) -> int:
    """Get the permission level for a role (0 for unknown roles)."""
    if isinstance(role, str):
        try:
            role = UserRole(role)
        except ValueError:
            return 0
    return ROLE_HIERARCHY.get(role, 0)


def has_permission(user_role: UserRole | str, required_role: UserRole | str) -> bool:
    """Check if a role reaches at least the required level.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.TEACHER)
        True
        >>> has_permission("student", "teacher")
        False
    """
    return get_role_level(user_role) >= get_role_level(required_role)


def is_admin(role: UserRole | str) -> bool:
    """Check if role is ADMIN."""
    return get_role_level(role) == ROLE_HIERARCHY[UserRole.ADMIN]


def is_at_least_teacher(role: UserRole | str) -> bool:
    """Check if role is TEACHER or ADMIN."""
    return has_permission(role, UserRole.TEACHER)


def is_signup_role(role: UserRole | str) -> bool:
    """Check if a role can be requested through signup."""
    try:
        return UserRole(role) in SIGNUP_ROLES
    except ValueError:
        return False
