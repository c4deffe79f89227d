"""
Request dependencies - caller identity from role flag headers

There is no authentication: the client states who it is and which role it
acts in. Mutations require ADMIN.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header

from depopro.core.errors import PermissionDeniedError

ADMIN = "ADMIN"
VIEWER = "VIEWER"
ROLES = (ADMIN, VIEWER)


@dataclass
class CurrentUser:
    name: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN


async def get_current_user(
    x_user_name: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> CurrentUser:
    role = (x_user_role or VIEWER).strip().upper()
    if role not in ROLES:
        role = VIEWER
    return CurrentUser(name=(x_user_name or "").strip() or "anonymous", role=role)


async def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Only ADMIN may change data"""
    if not current_user.is_admin:
        raise PermissionDeniedError(f"User '{current_user.name}' ({current_user.role}) cannot modify data")
    return current_user
