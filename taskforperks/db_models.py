"""SQLModel table definitions for TaskForPerks."""

from __future__ import annotations

import enum
from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, DateTime, Index
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel

from taskforperks.ids import claim_id, task_id


class TaskStatus(str, enum.Enum):
    OPEN = "OPEN"
    CLAIMED = "CLAIMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ClaimStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"
    EXPIRED = "EXPIRED"


def _utcnow() -> datetime:
    return datetime.now(UTC)


# Timestamps are always written tz-aware, so the column must accept them
_Timestamp = DateTime(timezone=True)


def _status_type(enum_cls: type[enum.Enum]) -> SAEnum:
    # Plain VARCHAR on every backend, matching the migrations
    return SAEnum(enum_cls, native_enum=False, length=20)


class Task(SQLModel, table=True):
    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint("version >= 0", name="ck_tasks_version_non_negative"),
        CheckConstraint("max_claims > 0", name="ck_tasks_max_claims_positive"),
    )

    id: str = Field(default_factory=task_id, primary_key=True)
    requester_id: str = Field(index=True)
    title: str
    description: str | None = None
    status: TaskStatus = Field(
        default=TaskStatus.OPEN, index=True, sa_type=_status_type(TaskStatus)
    )
    # Optimistic-concurrency token; only the claim service bumps it.
    version: int = Field(default=0)
    max_claims: int = Field(default=1)
    created_at: datetime = Field(default_factory=_utcnow, index=True, sa_type=_Timestamp)


class Claim(SQLModel, table=True):
    __tablename__ = "claims"
    __table_args__ = (
        Index("ix_claims_task_status", "task_id", "status"),
        CheckConstraint("fee > 0", name="ck_claims_fee_positive"),
    )

    id: str = Field(default_factory=claim_id, primary_key=True)
    task_id: str = Field(foreign_key="tasks.id")
    helper_id: str = Field(index=True)
    fee: float
    notes: str | None = Field(default=None, max_length=10_000)
    status: ClaimStatus = Field(
        default=ClaimStatus.PENDING, sa_type=_status_type(ClaimStatus)
    )
    created_at: datetime = Field(default_factory=_utcnow, sa_type=_Timestamp)
    expires_at: datetime = Field(index=True, sa_type=_Timestamp)
