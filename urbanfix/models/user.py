"""
Acting-user model supplied by the upstream identity provider.
Credentials are verified upstream; these models only carry identity and role.
"""

from pydantic import BaseModel, Field
from enum import Enum


class Role(str, Enum):
    """Roles recognised by the lifecycle checks."""
    CITIZEN = "Citizen"
    AUTHORITY = "Authority"
    ADMIN = "Admin"


class ActingUser(BaseModel):
    """The user on whose behalf a lifecycle operation runs."""
    id: str = Field(..., min_length=1, description="User identifier from the identity provider")
    role: Role = Field(..., description="Role granted by the identity provider")

    @property
    def is_staff(self) -> bool:
        return self.role in (Role.AUTHORITY, Role.ADMIN)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
