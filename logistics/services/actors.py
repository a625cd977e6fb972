"""
Explicit caller context for service operations.

Roles are resolved once, when the request is authenticated, and passed
down as an :class:`Actor` instead of being looked up again (or guessed)
inside each operation.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from logistics.exceptions import RoleNotPermitted


class Role(str, enum.Enum):
    NURSE = 'nurse'
    PORTER = 'porter'
    ADMIN = 'admin'


@dataclass(frozen=True)
class Actor:
    user_id: Optional[int]
    role: Role
    location_id: Optional[int] = None

    @classmethod
    def from_user(cls, user) -> 'Actor':
        try:
            role = Role(getattr(user, 'role', ''))
        except ValueError:
            raise RoleNotPermitted(f'unknown role {getattr(user, "role", None)!r}')
        return cls(user_id=user.id, role=role, location_id=getattr(user, 'location_id', None))

    def require(self, *roles: Role) -> None:
        # admins may stand in for any role
        if self.role is Role.ADMIN or self.role in roles:
            return
        allowed = ', '.join(r.value for r in roles)
        raise RoleNotPermitted(f'{self.role.value} may not do this (requires {allowed})')
