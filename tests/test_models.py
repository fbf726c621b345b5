"""Claim request validation and error-code mapping."""

from __future__ import annotations

import math
import uuid

import pytest
from pydantic import ValidationError

from taskforperks.errors import ClaimError, ClaimErrorCode, status_for
from taskforperks.models import MAX_NOTES_LENGTH, ClaimRequest, ClaimSummaryResponse

HELPER = str(uuid.uuid4())


def test_claim_request_from_wire_names():
    req = ClaimRequest.model_validate(
        {"helperId": HELPER, "fee": 12.5, "clientVersion": 3, "notes": "Happy to help"}
    )
    assert req.helper_id == HELPER
    assert req.fee == 12.5
    assert req.client_version == 3
    assert req.notes == "Happy to help"


def test_integer_fee_accepted():
    req = ClaimRequest.model_validate({"helperId": HELPER, "fee": 20, "clientVersion": 0})
    assert req.fee == 20.0


def test_uppercase_uuid_accepted():
    req = ClaimRequest.model_validate(
        {"helperId": HELPER.upper(), "fee": 1, "clientVersion": 0}
    )
    assert req.helper_id == HELPER.upper()


def test_whole_float_client_version_accepted():
    req = ClaimRequest.model_validate({"helperId": HELPER, "fee": 1, "clientVersion": 4.0})
    assert req.client_version == 4
    assert isinstance(req.client_version, int)


@pytest.mark.parametrize("client_version", ["4", True, 4.5, -1.0])
def test_client_version_must_be_whole_non_negative_number(client_version):
    with pytest.raises(ValidationError):
        ClaimRequest.model_validate(
            {"helperId": HELPER, "fee": 1, "clientVersion": client_version}
        )


@pytest.mark.parametrize("fee", [0, -0.01, math.inf, math.nan])
def test_fee_must_be_positive_and_finite(fee):
    with pytest.raises(ValidationError):
        ClaimRequest.model_validate({"helperId": HELPER, "fee": fee, "clientVersion": 0})


def test_notes_length_limit():
    ClaimRequest.model_validate(
        {"helperId": HELPER, "fee": 1, "clientVersion": 0, "notes": "n" * MAX_NOTES_LENGTH}
    )
    with pytest.raises(ValidationError):
        ClaimRequest.model_validate(
            {
                "helperId": HELPER,
                "fee": 1,
                "clientVersion": 0,
                "notes": "n" * (MAX_NOTES_LENGTH + 1),
            }
        )


def test_validation_error_is_value_error():
    """The claim route maps ValueError to INVALID_BODY."""
    with pytest.raises(ValueError):
        ClaimRequest.model_validate({"helperId": "abc", "fee": 1, "clientVersion": 0})


def test_summary_serializes_camel_case():
    summary = ClaimSummaryResponse(
        count_pending=2, best_offer={"fee": 9.5, "helper_id": HELPER}
    )
    assert summary.model_dump(by_alias=True) == {
        "countPending": 2,
        "bestOffer": {"fee": 9.5, "helperId": HELPER},
    }


@pytest.mark.parametrize(
    ("code", "status"),
    [
        (ClaimErrorCode.INVALID_BODY, 400),
        (ClaimErrorCode.TASK_NOT_FOUND, 404),
        (ClaimErrorCode.TASK_CLOSED, 409),
        (ClaimErrorCode.VERSION_MISMATCH, 409),
        (ClaimErrorCode.MAX_CLAIMS_REACHED, 409),
        (ClaimErrorCode.UNKNOWN_ERROR, 500),
    ],
)
def test_status_for_code(code, status):
    assert status_for(code) == status
    assert ClaimError(code).status_code == status


def test_claim_error_carries_code():
    err = ClaimError(ClaimErrorCode.VERSION_MISMATCH)
    assert str(err) == "VERSION_MISMATCH"
    assert err.is_conflict
    assert not ClaimError(ClaimErrorCode.UNKNOWN_ERROR).is_conflict
