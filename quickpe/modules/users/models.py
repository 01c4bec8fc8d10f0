"""Domain models for users."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(slots=True)
class User:
    id: str
    username: str
    first_name: str
    last_name: str
    quickpe_id: str
    role: str
    is_active: bool
    password_hash: str = field(repr=False)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(slots=True)
class UserCreateInput:
    username: str
    password: str
    first_name: str
    last_name: str
    role: str = "user"


# Sentinel used to differentiate between "not provided" and explicit None.
UNSET = object()


@dataclass(slots=True)
class UserUpdateInput:
    first_name: Optional[str] | object = UNSET
    last_name: Optional[str] | object = UNSET
    is_active: Optional[bool] | object = UNSET
    role: Optional[str] | object = UNSET


@dataclass(slots=True)
class UserPage:
    users: list[User]
    total: int
