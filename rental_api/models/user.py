from dataclasses import dataclass
from typing import Optional

from rental_api.models.store import Patch
from rental_api.utils.constants import Role


@dataclass
class User:
    """
    User record as seen by the services. The store keeps plain rows; the
    password hash is only read by signin and never leaves this layer.
    """
    id: int
    name: str
    email: str
    phone: str
    role: Role

    @classmethod
    def from_row(cls, row: Optional[dict]) -> Optional["User"]:
        if not row:
            return None
        return cls(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            phone=row["phone"],
            role=Role(row["role"]),
        )

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role.value,
        }


@dataclass(frozen=True)
class Caller:
    """Identity of the signed-in caller, taken from verified token claims."""
    id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


@dataclass
class UserPatch(Patch):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[Role] = None
    password_hash: Optional[str] = None
