from sqlalchemy import Column, DateTime
from sqlmodel import SQLModel, Field
from datetime import datetime, timezone
from typing import Optional
import uuid


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_task_id() -> str:
    return str(uuid.uuid4())


class Task(SQLModel, table=True):
    """Task model for todo items"""
    __tablename__ = "tasks"

    id: str = Field(default_factory=new_task_id, primary_key=True, max_length=36)
    title: str = Field(max_length=200)
    description: Optional[str] = None
    is_completed: bool = Field(default=False)
    # Owner email doubles as the partition key; every query is scoped by it.
    user_email: str = Field(index=True, max_length=320)
    priority_level: Optional[str] = Field(default="low", max_length=16)
    tag: Optional[str] = Field(default=None, max_length=16)
    # Always written as aware UTC values
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    due_date: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )
