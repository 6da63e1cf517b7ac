"""Timelog rows and the payloads used to create and patch them.

A timelog is active while ``finished_at`` is null. Creation sets both
``created_at`` and ``started_at``; finishing patches ``finished_at``. There is
no deletion path.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Optional

from pydantic import BaseModel


class TimelogBase(BaseModel):
    user_id: int
    title: str
    description: Optional[str] = None


class TimelogCreate(TimelogBase):
    created_at: datetime
    started_at: datetime


class Timelog(TimelogBase):
    id: int
    created_at: datetime
    started_at: datetime
    finished_at: Optional[datetime] = None

    @property
    def is_finished(self) -> bool:
        return self.finished_at is not None

    def duration(self, now: datetime | None = None) -> timedelta:
        """Elapsed time; running timelogs are measured against ``now``."""

        end = self.finished_at or now
        if end is None:
            return timedelta(0)
        return max(end - self.started_at, timedelta(0))


class TimelogPatch(BaseModel):
    """Partial update. Only fields that were explicitly set are sent."""

    title: Optional[str] = None
    description: Optional[str] = None
    finished_at: Optional[datetime] = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


class TimelogStartForm(BaseModel):
    title: str = ""


class TimelogFinishForm(BaseModel):
    timelog_id: str = ""
