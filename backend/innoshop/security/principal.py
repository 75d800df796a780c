from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class UserRole(str, Enum):
    USER = "User"
    ADMIN = "Admin"

    @classmethod
    def parse(cls, value: str | None) -> "UserRole | None":
        """Case-insensitive lookup by value; None when unknown."""
        v = str(value or "").strip().lower()
        for role in cls:
            if role.value.lower() == v:
                return role
        return None


# Subject of service-to-service tokens.
SERVICE_USER_ID = uuid.UUID(int=0)


@dataclass
class CurrentUser:
    id: uuid.UUID
    email: str | None
    role: str
    is_active: bool
    email_confirmed: bool
    claims: dict[str, Any] = field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_service(self) -> bool:
        return self.id == SERVICE_USER_ID
