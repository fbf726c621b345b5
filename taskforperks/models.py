"""Pydantic models for request/response schemas.

Wire names are camelCase; snake_case is accepted on input as well.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MAX_NOTES_LENGTH = 10_000

_UUID_RE = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ClaimRequest(_WireModel):
    helper_id: str = Field(..., description="UUID of the helper making the offer")
    fee: float = Field(..., gt=0, strict=True, allow_inf_nan=False, description="Proposed fee")
    notes: str | None = Field(default=None, max_length=MAX_NOTES_LENGTH)
    # Lax int: 3.0 is accepted (JSON does not tell it from 3), 3.5 is not
    client_version: int = Field(..., ge=0, description="Task version the helper last saw")

    @field_validator("helper_id")
    @classmethod
    def validate_helper_id(cls, v: str) -> str:
        if not _UUID_RE.match(v):
            raise ValueError("helperId must be a UUID")
        return v

    @field_validator("client_version", mode="before")
    @classmethod
    def validate_client_version(cls, v: object) -> object:
        if isinstance(v, (str, bool)):
            raise ValueError("clientVersion must be a number")
        return v


class ClaimResponse(_WireModel):
    claim_id: str


class ErrorResponse(BaseModel):
    error: str


class TaskResponse(_WireModel):
    task_id: str
    title: str
    description: str | None = None
    status: str
    version: int
    max_claims: int
    pending_claims: int
    created_at: str | None = None


class BestOffer(_WireModel):
    fee: float
    helper_id: str


class ClaimSummaryResponse(_WireModel):
    count_pending: int
    best_offer: BestOffer | None = None
