# grocery_pos/models/user.py
from enum import IntEnum
from typing import Optional
from pydantic import BaseModel

class Role(IntEnum):
    """Staff roles, ordered by permission level"""
    VIEWER = 1
    GROCERY_KEEPER = 2
    ADMIN = 3

    @property
    def label(self) -> str:
        return _ROLE_LABELS[self]

    @classmethod
    def parse(cls, value: str) -> Optional["Role"]:
        """Accept either the enum name (GROCERY_KEEPER) or the display name (Grocery Keeper)"""
        key = value.strip().upper().replace(" ", "_")
        return cls.__members__.get(key)

_ROLE_LABELS = {
    Role.VIEWER: "Viewer",
    Role.GROCERY_KEEPER: "Grocery Keeper",
    Role.ADMIN: "Admin",
}

class StaffIdentity(BaseModel):
    """Authenticated caller"""
    user_id: int
    role: Role
