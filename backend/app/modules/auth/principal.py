"""
Principals and the role lattice.

Admin, Faculty and Student live in separate tables; a token's role claim
selects the table through PRINCIPAL_MODELS, so adding a role is one entry
there plus its rank.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Type
import enum

from app.models.admin import Admin
from app.models.faculty import Faculty
from app.models.student import Student


class Role(str, enum.Enum):
    STUDENT = "student"
    FACULTY = "faculty"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return ROLE_RANKS[self]

    def satisfies(self, minimum: "Role") -> bool:
        """True when this role holds every privilege of `minimum`"""
        return self.rank >= Role(minimum).rank

    @classmethod
    def parse(cls, value: Any) -> Optional["Role"]:
        try:
            return cls(value)
        except ValueError:
            return None


# admin ⊇ faculty ⊇ student
ROLE_RANKS: Dict[Role, int] = {
    Role.STUDENT: 1,
    Role.FACULTY: 2,
    Role.ADMIN: 3,
}

PRINCIPAL_MODELS: Dict[Role, Type] = {
    Role.ADMIN: Admin,
    Role.FACULTY: Faculty,
    Role.STUDENT: Student,
}


@dataclass
class Principal:
    """Authenticated actor with the row it resolved to"""
    role: Role
    record: Any

    @property
    def id(self) -> str:
        return str(self.record.id)

    @property
    def email(self) -> str:
        return self.record.email

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_faculty(self) -> bool:
        return self.role == Role.FACULTY

    @property
    def is_student(self) -> bool:
        return self.role == Role.STUDENT
