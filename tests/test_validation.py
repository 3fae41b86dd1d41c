"""Tests for the declaration completeness gate."""
import pytest

from app.models.schemas import DeclarationRecord, Purchaser
from app.services.normalizer import normalize_payload
from app.services.validation import (
    REQUIRED_FIELDS,
    MissingFieldsError,
    find_missing_fields,
    validate_record,
)


def _complete_record(**overrides) -> DeclarationRecord:
    fields = {
        "purchasers": (Purchaser(name="Jane Tan", ic="900101-10-1234"),),
        "address": "1 Jalan X",
        "property": "Unit 5, Block A",
        "bank": "ABC Bank",
        "bank_address": "HQ, KL",
        "branch_address": "Branch, Klang",
        "facility": "Term Loan",
        "date": "2024-01-01",
    }
    fields.update(overrides)
    return DeclarationRecord(**fields)


def test_complete_record_passes():
    record = _complete_record()
    assert find_missing_fields(record) == []
    assert validate_record(record) is record


def test_reports_exactly_the_missing_fields():
    record = _complete_record(bank="", date="")
    assert find_missing_fields(record) == ["bank", "date"]


def test_error_accumulates_all_failures():
    with pytest.raises(MissingFieldsError) as exc_info:
        validate_record(_complete_record(address="", bank_address="", facility=""))
    assert exc_info.value.missing_fields == ["address", "bankAddress", "facility"]
    assert str(exc_info.value) == "Missing required fields: address, bankAddress, facility"


@pytest.mark.parametrize(
    "purchasers",
    [
        (),
        (Purchaser(name="", ic="900101-10-1234"),),
        (Purchaser(name="Jane Tan", ic=""),),
    ],
)
def test_first_purchaser_needs_name_and_ic(purchasers):
    assert find_missing_fields(_complete_record(purchasers=purchasers)) == ["purchasers"]


def test_only_first_purchaser_is_checked():
    record = _complete_record(
        purchasers=(Purchaser(name="Jane Tan", ic="1"), Purchaser(name="", ic=""))
    )
    assert find_missing_fields(record) == []


def test_empty_payload_reports_every_field_but_date():
    # date is defaulted by the normalizer, so it never goes missing from a payload
    record = normalize_payload({})
    assert find_missing_fields(record) == [f for f in REQUIRED_FIELDS if f != "date"]


def test_fully_empty_record_reports_all_eight_in_order():
    assert find_missing_fields(DeclarationRecord()) == list(REQUIRED_FIELDS)
    assert len(REQUIRED_FIELDS) == 8


def test_validation_is_deterministic():
    record = _complete_record(property="", branch_address="")
    assert find_missing_fields(record) == find_missing_fields(record) == ["property", "branchAddress"]


def test_every_required_field_resolves_to_a_record_attribute():
    aliases = {
        (info.alias or name) for name, info in DeclarationRecord.model_fields.items()
    }
    assert set(REQUIRED_FIELDS) <= aliases


@pytest.mark.parametrize(
    "attribute, reported",
    [("bank_address", "bankAddress"), ("branch_address", "branchAddress"), ("facility", "facility")],
)
def test_missing_field_reported_by_wire_name(attribute, reported):
    assert find_missing_fields(_complete_record(**{attribute: ""})) == [reported]
