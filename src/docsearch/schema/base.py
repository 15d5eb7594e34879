from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IDMixin(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True)
