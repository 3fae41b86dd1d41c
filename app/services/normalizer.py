"""
Payload normalisation for incoming declaration data.

The workflow-automation tool upstream (n8n) and the frontend form send the
same declaration under many key names and nesting conventions.  This module
maps any of them onto one canonical ``DeclarationRecord``.

Pipeline (normalize_payload)
----------------------------
1. Unwrap one level of nesting: a ``data`` or ``payload`` object, if present,
   becomes the effective payload.
2. Resolve purchasers, first match wins:
   ``purchasers`` list → single ``purchaser`` object → aliased scalar fields.
3. Resolve every scalar field from its alias list (first non-empty wins).
4. Default ``date`` to today's UTC date.

Normalisation never raises; anything absent becomes an empty string and
rejection is left to the validation gate.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from app.models.schemas import DeclarationRecord, Purchaser
from app.utils.helpers import as_text, first_non_empty, today_iso

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Alias tables
# ---------------------------------------------------------------------------

WRAPPER_KEYS: Tuple[str, ...] = ("data", "payload")

PURCHASER_NAME_KEYS: Tuple[str, ...] = ("name", "purchaserName", "customerName")
PURCHASER_IC_KEYS: Tuple[str, ...] = ("ic", "nric", "icNumber", "customerIc")

# canonical field -> accepted source keys, in precedence order
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "address": ("address", "customerAddress"),
    "property": ("property", "propertyDetails", "propertyAddress"),
    "bank": ("bank", "bankName"),
    "bankAddress": ("bankAddress", "bankRegisteredAddress"),
    "branchAddress": ("branchAddress", "branchOfficeAddress"),
    "facility": ("facility", "facilityType", "loanType"),
    "date": ("date", "declarationDate"),
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def unwrap_payload(raw: Any) -> Mapping[str, Any]:
    """
    Return the effective payload of *raw*.

    A ``data`` object (even an empty one) wins over a ``payload`` object;
    otherwise the body itself is used.  Anything that is not a mapping is
    treated as empty.
    """
    if not isinstance(raw, Mapping):
        return {}
    for key in WRAPPER_KEYS:
        inner = raw.get(key)
        if isinstance(inner, Mapping):
            return inner
    return raw


def _purchaser_from(entry: Any) -> Purchaser:
    """Read ``name``/``ic`` from a purchaser object without aliasing."""
    if not isinstance(entry, Mapping):
        return Purchaser()
    return Purchaser(name=as_text(entry.get("name")), ic=as_text(entry.get("ic")))


def resolve_purchasers(payload: Mapping[str, Any]) -> Tuple[Purchaser, ...]:
    """Resolve the purchaser sequence using the strict precedence order."""
    purchasers = payload.get("purchasers")
    if isinstance(purchasers, list):
        return tuple(_purchaser_from(entry) for entry in purchasers)

    single = payload.get("purchaser")
    # An empty object still counts as present
    if isinstance(single, Mapping) or single:
        return (_purchaser_from(single),)

    return (
        Purchaser(
            name=first_non_empty(payload, PURCHASER_NAME_KEYS),
            ic=first_non_empty(payload, PURCHASER_IC_KEYS),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def normalize_payload(
    raw: Any,
    today: Optional[Callable[[], str]] = None,
) -> DeclarationRecord:
    """
    Map an arbitrary request body onto a ``DeclarationRecord``.

    Args:
        raw: Decoded request body of unknown shape
        today: Override for the date default (returns ``YYYY-MM-DD``)

    Returns:
        A record that is not yet guaranteed to be complete
    """
    payload = unwrap_payload(raw)
    fields = {name: first_non_empty(payload, keys) for name, keys in FIELD_ALIASES.items()}
    if not fields["date"]:
        fields["date"] = (today or today_iso)()

    purchasers = resolve_purchasers(payload)
    logger.debug(
        "Normalized payload: %d purchaser(s), empty fields=%s",
        len(purchasers),
        [name for name, value in fields.items() if not value],
    )
    return DeclarationRecord(purchasers=purchasers, **fields)

