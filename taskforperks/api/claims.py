"""Claim submission route."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from taskforperks.config import settings
from taskforperks.content import error_response, parse_body, render_response
from taskforperks.database import get_db_session
from taskforperks.errors import ClaimError, ClaimErrorCode
from taskforperks.models import ClaimRequest, ClaimResponse, ErrorResponse
from taskforperks.rate_limit import limiter
from taskforperks.services.claims import submit_claim

router = APIRouter()


@router.post(
    "/v1/tasks/{task_id}/claim",
    response_model=ClaimResponse,
    status_code=201,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
@limiter.limit(settings.rate_limit_claim)
async def claim_task(request: Request, task_id: str, session=Depends(get_db_session)):
    """Offer to perform a task.

    `clientVersion` must be the task version you last saw. On
    `VERSION_MISMATCH` re-fetch the task and decide again; `TASK_CLOSED` and
    `MAX_CLAIMS_REACHED` mean the task is no longer taking claims.
    """
    # Shape errors are rejected before the store is touched
    try:
        body = await parse_body(request)
        validated = ClaimRequest.model_validate(body)
    except ValueError:
        return error_response(request, ClaimErrorCode.INVALID_BODY)

    try:
        claim_id = await submit_claim(
            session,
            task_id,
            helper_id=validated.helper_id,
            fee=validated.fee,
            client_version=validated.client_version,
            notes=validated.notes,
        )
    except ClaimError as exc:
        return error_response(request, exc.code)

    return render_response(
        request,
        ClaimResponse(claim_id=claim_id),
        status_code=201,
        headers={"X-Claim-Id": claim_id},
    )
