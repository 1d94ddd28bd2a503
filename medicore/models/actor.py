from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class Role(str, Enum):
    ADMIN = "Admin"
    DOCTOR = "Doctor"
    RECEPTIONIST = "Receptionist"
    NURSE = "Nurse"


class Actor(BaseModel):
    id: int | None = None
    username: str
    role: str
