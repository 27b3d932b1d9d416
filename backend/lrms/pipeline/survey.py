"""Survey-number classification for nondhs.

A parcel can be identified by three parallel numbering schemes: primary
survey numbers (``s_no``), a block number (``block_no``) and a re-survey
number (``re_survey_no``). A nondh lists the survey numbers it affects; its
primary type is the highest-priority scheme among the references that
actually belong to the parcel.
"""

import json
import logging
from typing import Any, Iterable, Optional

from lrms.config import SURVEY_TYPE_PRIORITY, DEFAULT_SURVEY_TYPE

logger = logging.getLogger(__name__)


def valid_survey_numbers(parcel: Optional[dict]) -> set[str]:
    """Collect every survey-number string registered for a parcel.

    Includes the comma-separated ``sNo`` entries plus ``blockNo`` and
    ``reSurveyNo`` when non-empty.
    """
    valid: set[str] = set()
    if not parcel:
        return valid

    s_no = parcel.get("sNo")
    if isinstance(s_no, str):
        valid.update(part.strip() for part in s_no.split(",") if part.strip())

    for key in ("blockNo", "reSurveyNo"):
        value = parcel.get(key)
        if value is not None and str(value).strip():
            valid.add(str(value).strip())

    return valid


def parse_survey_ref(ref: Any) -> Optional[tuple[str, str]]:
    """Parse one affected survey-number reference into (number, type).

    References come either as dicts ``{"number": ..., "type": ...}`` or as
    JSON strings of the same. A missing type means ``s_no``. Anything
    unparseable returns None.
    """
    if isinstance(ref, str):
        try:
            ref = json.loads(ref)
        except ValueError:
            return None
    if not isinstance(ref, dict) or not ref.get("number"):
        return None
    return str(ref["number"]).strip(), ref.get("type") or DEFAULT_SURVEY_TYPE


def classify_primary_type(affected_refs: Optional[Iterable[Any]], parcel: Optional[dict]) -> str:
    """Return the nondh's primary survey type: s_no > block_no > re_survey_no.

    References whose number is not registered for the parcel are ignored.
    Defaults to ``s_no`` when nothing survives.
    """
    if not affected_refs:
        return DEFAULT_SURVEY_TYPE

    valid = valid_survey_numbers(parcel)
    present = set()
    for ref in affected_refs:
        parsed = parse_survey_ref(ref)
        if parsed is None:
            continue
        number, sno_type = parsed
        if number in valid:
            present.add(sno_type)

    for sno_type in SURVEY_TYPE_PRIORITY:
        if sno_type in present:
            return sno_type
    return DEFAULT_SURVEY_TYPE
