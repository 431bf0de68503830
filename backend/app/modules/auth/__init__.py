# Authentication module

from app.modules.auth.principal import Principal, Role, ROLE_RANKS, PRINCIPAL_MODELS
from app.modules.auth.dependencies import (
    get_current_principal,
    resolve_principal,
    require_role,
    require_admin,
    require_faculty,
    require_student,
    ensure_course_owner,
    ensure_self_or_staff,
    ensure_self_or_admin,
)

__all__ = [
    "Principal",
    "Role",
    "ROLE_RANKS",
    "PRINCIPAL_MODELS",
    "get_current_principal",
    "resolve_principal",
    "require_role",
    "require_admin",
    "require_faculty",
    "require_student",
    "ensure_course_owner",
    "ensure_self_or_staff",
    "ensure_self_or_admin",
]
