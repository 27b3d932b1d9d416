"""Total ordering of a parcel's nondhs.

Order: primary survey type priority (s_no, block_no, re_survey_no), then the
integer value of the nondh number, then the nondh's position in the input.
Later positions are the ones that can invalidate earlier nondhs in the
validity chain.
"""

import re
import logging
from typing import Any, Optional

from lrms.config import SURVEY_TYPE_PRIORITY, TRACE_ENABLED
from lrms.pipeline.survey import classify_primary_type

logger = logging.getLogger(__name__)

_LEADING_INT_RE = re.compile(r'^\s*([+-]?\d+)')


def _trace(msg: str):
    """Emit a trace-level debug message when LRMS_TRACE is enabled."""
    if TRACE_ENABLED:
        logger.debug(f"[TRACE] {msg}")


def parse_nondh_number(value: Any) -> int:
    """Integer value of a nondh number, 0 when it has no leading integer.

    Examples:
      "12"   → 12
      "12a"  → 12
      "A-12" → 0
    """
    if value is None:
        return 0
    match = _LEADING_INT_RE.match(str(value))
    return int(match.group(1)) if match else 0


def _affected_refs(nondh: dict) -> list:
    refs = nondh.get("affected_s_nos")
    if refs is None:
        refs = nondh.get("affectedSNos")
    return refs or []


def nondh_sort_key(nondh: dict, parcel: Optional[dict], index: int) -> tuple[int, int, int]:
    primary_type = classify_primary_type(_affected_refs(nondh), parcel)
    return (
        SURVEY_TYPE_PRIORITY.index(primary_type),
        parse_nondh_number(nondh.get("number")),
        index,
    )


def sort_nondhs(nondhs: list[dict], parcel: Optional[dict]) -> list[dict]:
    """Return a new list of nondhs in chain order.

    Equal type and number fall back to input order, so the result never
    depends on sort-algorithm stability.
    """
    keyed = [(nondh_sort_key(n, parcel, i), n) for i, n in enumerate(nondhs)]
    keyed.sort(key=lambda pair: pair[0])
    _trace(f"SORT order={[(n.get('number'), k[0]) for k, n in keyed]}")
    return [n for _, n in keyed]
