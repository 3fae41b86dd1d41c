"""
Completeness gate for normalised declaration records.
"""
from __future__ import annotations

from typing import Dict, List, Tuple

from app.models.schemas import DeclarationRecord

# Report order is fixed; "purchasers" covers the first purchaser's name and IC.
REQUIRED_FIELDS: Tuple[str, ...] = (
    "purchasers",
    "address",
    "property",
    "bank",
    "bankAddress",
    "branchAddress",
    "facility",
    "date",
)


class MissingFieldsError(ValueError):
    """A declaration record lacks one or more required fields."""

    def __init__(self, missing_fields: List[str]) -> None:
        self.missing_fields = list(missing_fields)
        super().__init__(f"Missing required fields: {', '.join(self.missing_fields)}")


# Wire name (alias) -> model attribute
_ATTRIBUTE_BY_NAME: Dict[str, str] = {
    (info.alias or name): name for name, info in DeclarationRecord.model_fields.items()
}


def _field_value(record: DeclarationRecord, field: str) -> str:
    return getattr(record, _ATTRIBUTE_BY_NAME[field])


def find_missing_fields(record: DeclarationRecord) -> List[str]:
    """Return every missing required field name, in report order."""
    missing: List[str] = []
    for field in REQUIRED_FIELDS:
        if field == "purchasers":
            first = record.purchasers[0] if record.purchasers else None
            if first is None or not first.name or not first.ic:
                missing.append(field)
        elif not _field_value(record, field):
            missing.append(field)
    return missing


def validate_record(record: DeclarationRecord) -> DeclarationRecord:
    """
    Pass a complete record through unchanged.

    Raises:
        MissingFieldsError: naming all missing fields, not just the first
    """
    missing = find_missing_fields(record)
    if missing:
        raise MissingFieldsError(missing)
    return record
