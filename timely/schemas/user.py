from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class UserCreate(BaseModel):
    username: str
    email: str
    password_hash: str


class User(UserCreate):
    """Stored user row; ``id`` and ``created_at`` are assigned by the backend."""

    id: int
    created_at: datetime
