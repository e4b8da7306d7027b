"""
Code Validator - Classifies a scanned code against a target location.

Matching is by substring on the uppercased string, so QR payloads that
the printing process wrapped in a prefix or suffix still match.

Scan failures carry no penalty: the caller re-enables scanning at once.
"""

from __future__ import annotations
from enum import Enum

from .catalog import LocationCatalog


class ScanResult(Enum):
    """Outcome of validating a scanned code."""
    OK = "ok"
    WRONG_LOCATION = "wrong_location"
    INVALID = "invalid"


SCAN_MESSAGES = {
    ScanResult.OK: "Code accepted, continue to the photo step",
    ScanResult.WRONG_LOCATION: "This code belongs to another location. Make sure you are in the right place.",
    ScanResult.INVALID: "This code is not part of the hunt.",
}


def _matches_any(normalized: str, codes: frozenset[str]) -> bool:
    return any(code and code in normalized for code in codes)


def validate_code(
    scanned: str,
    target_location_id: str,
    catalog: LocationCatalog,
) -> ScanResult:
    """
    Classify a scanned string.

    OK: it contains one of the target's accepted codes.
    WRONG_LOCATION: it contains a code of some other location.
    INVALID: anything else, including an unknown target.
    """
    normalized = (scanned or "").upper()
    if not normalized.strip():
        return ScanResult.INVALID

    target = catalog.get(target_location_id)
    if target is not None and _matches_any(normalized, target.normalized_codes):
        return ScanResult.OK

    for loc in catalog:
        if loc.id == target_location_id:
            continue
        if _matches_any(normalized, loc.normalized_codes):
            return ScanResult.WRONG_LOCATION

    return ScanResult.INVALID


def owner_of(scanned: str, catalog: LocationCatalog) -> str | None:
    """Id of the first location (in order) whose code appears in scanned."""
    normalized = (scanned or "").upper()
    for loc in catalog:
        if _matches_any(normalized, loc.normalized_codes):
            return loc.id
    return None
