"""Tests for the domain error hierarchy."""

from datetime import date

from feargreed.core.exceptions import (
    DuplicateDateError,
    ErrorCode,
    FearGreedError,
    InvalidQueryError,
    StoreError,
    TransportError,
)


def test_payload_contains_code_message_and_details() -> None:
    error = TransportError("Provider answered 503", url="https://example.test", status_code=503)

    assert error.to_payload() == {
        "code": ErrorCode.TRANSPORT_ERROR.value,
        "message": "Provider answered 503",
        "details": {"url": "https://example.test", "status_code": 503},
    }


def test_duplicate_date_carries_date() -> None:
    error = DuplicateDateError(date(2024, 3, 1))

    assert error.record_date == date(2024, 3, 1)
    assert error.error_code == "DUPLICATE_DATE"
    assert error.details["record_date"] == "2024-03-01"


def test_subclasses_share_base() -> None:
    for error in (StoreError("closed", operation="find"), InvalidQueryError("bad month", field="month")):
        assert isinstance(error, FearGreedError)
    assert StoreError("closed", operation="find").details == {"operation": "find"}
    assert FearGreedError("plain").to_payload() == {"code": "GENERAL_ERROR", "message": "plain"}
