"""Structural validation of upload payloads and individual nondh details.

Detail validation collects every problem instead of stopping at the first;
a detail with any error is skipped by the upload (the rest of the batch
continues) and its messages are reported back to the user.
"""

from typing import Any, Iterable

from lrms.config import (
    NONDH_TYPES,
    TENURE_TYPES,
    HUKAM_TYPES,
    GANOT_HUKAM_TYPE,
    GANOT_OPTIONS,
)

_BASIC_INFO_REQUIRED = ("district", "taluka", "village")


def validate_nondh_detail(detail: Any) -> list[str]:
    """Return the list of structural errors for one nondh detail (empty = valid)."""
    errors: list[str] = []
    if not isinstance(detail, dict):
        errors.append("Detail missing")
        return errors

    if not detail.get("nondhNumber"):
        errors.append("Missing nondh number")

    nondh_type = detail.get("type")
    if not nondh_type:
        errors.append("Missing type")
    elif nondh_type not in NONDH_TYPES:
        errors.append(f"Invalid nondh type '{nondh_type}'. Must be one of: {', '.join(NONDH_TYPES)}")

    date = detail.get("date")
    if not date:
        errors.append("Missing date")
    elif not isinstance(date, str) or len(date) != 8:
        errors.append("Date must be in ddmmyyyy format (e.g., 15012020)")

    if not detail.get("vigat"):
        errors.append("Missing vigat")

    # Tenure is optional; a default is applied when the row is built
    tenure = detail.get("tenure")
    if tenure and tenure not in TENURE_TYPES:
        errors.append(f"Invalid tenure type '{tenure}'. Must be one of: {', '.join(TENURE_TYPES)}")

    if nondh_type == "Hukam":
        hukam_type = detail.get("hukamType")
        if hukam_type and hukam_type not in HUKAM_TYPES:
            errors.append(f"Invalid hukam type '{hukam_type}'. Must be one of: {', '.join(HUKAM_TYPES)}")
        ganot = detail.get("ganotType")
        if hukam_type == GANOT_HUKAM_TYPE and ganot and ganot not in GANOT_OPTIONS:
            errors.append(f"Invalid ganot type '{ganot}'. Must be one of: {', '.join(GANOT_OPTIONS)}")

    return errors


def validate_upload_structure(payload: Any) -> list[str]:
    """Check the critical structure of an upload before any processing."""
    errors: list[str] = []
    if not isinstance(payload, dict):
        errors.append("Payload must be a JSON object")
        return errors

    basic_info = payload.get("basicInfo")
    if not isinstance(basic_info, dict) or not basic_info:
        errors.append("Missing 'basicInfo' section")
    else:
        for field in _BASIC_INFO_REQUIRED:
            if not basic_info.get(field):
                errors.append(f"Missing required field in basicInfo: {field}")
        if not basic_info.get("blockNo") and not basic_info.get("reSurveyNo"):
            errors.append("Basic info must have either 'blockNo' or 'reSurveyNo'")

    if payload.get("nondhDetails") and not payload.get("nondhs"):
        errors.append("nondhDetails require corresponding nondhs array")

    return errors


def format_skip_reason(nondh_number: Any, reasons: Iterable[str]) -> str:
    """Diagnostic line for a skipped detail: ``Nondh <n>: <r1>, <r2>``."""
    return f"Nondh {nondh_number or 'unknown'}: {', '.join(reasons)}"
