"""
Query param helpers.
- ensure_bool_query: "false" -> False, "true" -> True (force_update không bị bật nhầm).
- ensure_choice_query / ensure_positive_int_query / ensure_uuid_query: giá trị sai => AppError 400.
"""
import uuid

import pytest

from newslatch.errors import AppError, ErrorKind
from newslatch.utils.query_params import (
    ensure_bool_query,
    ensure_choice_query,
    ensure_positive_int_query,
    ensure_uuid_query,
)


def test_ensure_bool_query_false_strings() -> None:
    """force_update=false (string) must be False."""
    assert ensure_bool_query("false") is False
    assert ensure_bool_query("False") is False
    assert ensure_bool_query("0") is False
    assert ensure_bool_query("no") is False
    assert ensure_bool_query("") is False
    assert ensure_bool_query(None) is False


def test_ensure_bool_query_true_strings() -> None:
    assert ensure_bool_query("true") is True
    assert ensure_bool_query("TRUE") is True
    assert ensure_bool_query("1") is True
    assert ensure_bool_query("yes") is True
    assert ensure_bool_query(True) is True


def test_ensure_choice_query_default_and_invalid() -> None:
    assert ensure_choice_query("sortBy", None, ("created_at", "trend"), "created_at") == "created_at"
    assert ensure_choice_query("sortBy", " trend ", ("created_at", "trend"), "created_at") == "trend"
    with pytest.raises(AppError) as exc:
        ensure_choice_query("sortBy", "headline", ("created_at", "trend"), "created_at")
    assert exc.value.kind is ErrorKind.VALIDATION
    assert exc.value.error == "Invalid sortBy"
    assert exc.value.status_code == 400


def test_ensure_positive_int_query_bounds() -> None:
    assert ensure_positive_int_query("page", None, default=1) == 1
    assert ensure_positive_int_query("limit", "25", default=10, maximum=100) == 25
    for bad in ("0", "-3", "abc", "101"):
        with pytest.raises(AppError):
            ensure_positive_int_query("limit", bad, default=10, maximum=100)


def test_ensure_uuid_query_missing_and_invalid() -> None:
    value = uuid.uuid4()
    assert ensure_uuid_query("campaignId", str(value)) == value
    with pytest.raises(AppError) as missing:
        ensure_uuid_query("campaignId", None, missing_error="Campaign ID is required")
    assert missing.value.error == "Campaign ID is required"
    with pytest.raises(AppError) as invalid:
        ensure_uuid_query("campaignId", "not-a-uuid")
    assert invalid.value.error == "Invalid campaignId"
