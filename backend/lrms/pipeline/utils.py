"""Shared utility functions for the nondh upload pipeline.

Consolidates the record normalization used by the upload flow and the
dry-run chain computation:
  - Status vocabulary mapping (Pramaanik / Radd / Na Manjoor)
  - ddmmyyyy date parsing
  - Area normalization to square meters (acre / guntha / sq.m)
  - Row builders for land records, nondhs, nondh details and owner relations
"""

import json
import logging
from typing import Any, Optional

from lrms.config import (
    STATUS_MAP,
    DEFAULT_STATUS,
    DEFAULT_TENURE,
    DEFAULT_HUKAM_TYPE,
    DEFAULT_SURVEY_TYPE,
    GANOT_HUKAM_TYPE,
    SQM_PER_ACRE,
    SQM_PER_GUNTHA,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════
# 1. STATUS & DATES
# ═══════════════════════════════════════════════════

def map_status(raw: Any) -> str:
    """Map an upload status ("Pramaanik", "Radd", "Na Manjoor") to valid/invalid/nullified.

    Anything unrecognised (including a missing status) is treated as valid.
    """
    if not isinstance(raw, str):
        return DEFAULT_STATUS
    return STATUS_MAP.get(raw, DEFAULT_STATUS)


def parse_nondh_date(date_str: Any) -> Optional[str]:
    """Convert a ddmmyyyy string to ISO yyyy-mm-dd.

    Only the length is checked; the digits are not validated as a calendar
    date, so "99999999" becomes "9999-99-99".

    Examples:
      "15012020" → "2020-01-15"
      "1501202"  → None
    """
    if not isinstance(date_str, str) or len(date_str) != 8:
        return None
    day, month, year = date_str[0:2], date_str[2:4], date_str[4:8]
    return f"{year}-{month}-{day}"


# ═══════════════════════════════════════════════════
# 2. AREA NORMALIZATION
# ═══════════════════════════════════════════════════

def _to_number(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning(f"Non-numeric area component {value!r} treated as 0")
        return 0.0


def parse_area(area: Any) -> dict:
    """Normalize an area object to square meters.

    Accepts {"sqm": n} or {"acre": a, "guntha": g} (either part optional).
    ``sqm`` wins when both shapes are present. Missing or unrecognised
    input yields 0.
    """
    if not isinstance(area, dict):
        return {"value": 0.0, "unit": "sq_m"}

    if "sqm" in area and area["sqm"] is not None:
        return {"value": _to_number(area["sqm"]), "unit": "sq_m"}

    if area.get("acre") is not None or area.get("guntha") is not None:
        acres = _to_number(area.get("acre"))
        gunthas = _to_number(area.get("guntha"))
        return {"value": acres * SQM_PER_ACRE + gunthas * SQM_PER_GUNTHA, "unit": "sq_m"}

    return {"value": 0.0, "unit": "sq_m"}


# ═══════════════════════════════════════════════════
# 3. ROW BUILDERS
# ═══════════════════════════════════════════════════

def build_land_record_row(basic_info: dict) -> dict:
    """Stored shape of a parcel from the upload's basicInfo section."""
    area = parse_area(basic_info.get("area"))
    block_no = basic_info.get("blockNo") or None
    re_survey_no = basic_info.get("reSurveyNo") or None
    return {
        "district": basic_info.get("district"),
        "taluka": basic_info.get("taluka"),
        "village": basic_info.get("village"),
        "block_no": block_no,
        "re_survey_no": re_survey_no,
        "s_no": basic_info.get("sNo") or "",
        "is_promulgation": bool(basic_info.get("isPromulgation", False)),
        "s_no_type": "block_no" if block_no else "re_survey_no",
        "primary_s_no": block_no or re_survey_no,
        "area_value": area["value"],
        "area_unit": area["unit"],
        "json_uploaded": True,
        "status": "draft",
        "current_step": 1,
    }


def build_nondh_row(nondh: dict) -> dict:
    """Stored shape of a nondh (number always a string)."""
    affected = nondh.get("affectedSNos")
    if affected is None:
        affected = nondh.get("affected_s_nos")
    return {
        "number": str(nondh.get("number", "")),
        "s_no_type": nondh.get("sNoType") or nondh.get("s_no_type") or DEFAULT_SURVEY_TYPE,
        "affected_s_nos": list(affected or []),
    }


def _optional_date(value: Any) -> Optional[str]:
    return parse_nondh_date(value) if value else None


def build_detail_row(detail: dict) -> dict:
    """Stored shape of a structurally valid nondh detail.

    Applies the upload defaults: tenure Navi, Hukam authority SSRD,
    invalid reason "NA" for Radd details, show_in_output true.
    """
    status = map_status(detail.get("status")) if detail.get("status") else DEFAULT_STATUS
    is_hukam = detail.get("type") == "Hukam"

    affected_details = None
    if detail.get("affectedNondhDetails"):
        affected = []
        for a in detail["affectedNondhDetails"]:
            if not isinstance(a, dict):
                continue
            a_status = map_status(a.get("status"))
            affected.append({
                "nondhNo": a.get("nondhNo"),
                "status": a_status,
                "invalidReason": (a.get("invalidReason") or "NA") if a_status == "invalid" else None,
            })
        affected_details = json.dumps(affected)

    return {
        "nondh_number": str(detail.get("nondhNumber")),
        "type": detail.get("type"),
        "date": parse_nondh_date(detail.get("date")),
        "sd_date": _optional_date(detail.get("sdDate")),
        "hukam_date": _optional_date(detail.get("hukamDate")),
        "hukam_type": (detail.get("hukamType") or DEFAULT_HUKAM_TYPE) if is_hukam else None,
        "restraining_order": detail.get("restrainingOrder") or None,
        "amount": detail.get("amount") or None,
        "vigat": detail.get("vigat"),
        "tenure": detail.get("tenure") or DEFAULT_TENURE,
        "status": status,
        "invalid_reason": (detail.get("invalidReason") or "NA") if status == "invalid" else None,
        "show_in_output": detail.get("showInOutput") is not False,
        "old_owner": detail.get("oldOwner") or None,
        "affected_nondh_details": affected_details,
        "ganot": detail.get("ganotType") if detail.get("hukamType") == GANOT_HUKAM_TYPE else None,
    }


def build_owner_rows(detail: dict) -> list[dict]:
    """One owner-relation row per entry of ``owners`` followed by ``newOwners``."""
    rows = []
    for key in ("owners", "newOwners"):
        for owner in detail.get(key) or []:
            if not isinstance(owner, dict):
                continue
            area = parse_area(owner.get("area"))
            rows.append({
                "owner_name": owner.get("name"),
                "square_meters": area["value"],
                "area_unit": area["unit"],
                "survey_number": owner.get("surveyNumber") or None,
                "survey_number_type": owner.get("surveyNumberType") or None,
            })
    return rows
