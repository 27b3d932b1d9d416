"""Validity chain: effective validity of nondhs from their declared statuses.

Each nondh declared invalid ("Radd") flips the validity of every nondh that
comes before it in chain order. A nondh is therefore effectively valid when
the number of later invalid declarations is even, and invalid when it is odd.
Nullified ("Na Manjoor") nondhs void themselves but do not flip anything.

Counting uses declared statuses only (single pass, no feedback from the
computed values), done as one reverse accumulation over the sorted order.
"""

import logging
from typing import Iterable

from lrms.config import TRACE_ENABLED
from lrms.pipeline.utils import map_status

logger = logging.getLogger(__name__)


def _trace(msg: str):
    """Emit a trace-level debug message when LRMS_TRACE is enabled."""
    if TRACE_ENABLED:
        logger.debug(f"[TRACE] {msg}")


def declared_statuses(details: Iterable[dict]) -> dict[str, str]:
    """Map nondh number → declared status ("valid" / "invalid" / "nullified").

    Accepts stored detail rows (``nondh_number`` + mapped ``status``) or raw
    upload details (``nondhNumber`` + source vocabulary). The last detail
    for a number wins.
    """
    statuses: dict[str, str] = {}
    for detail in details:
        if "nondh_number" in detail:
            statuses[str(detail["nondh_number"])] = detail.get("status") or "valid"
        elif detail.get("nondhNumber") is not None:
            raw = detail.get("status")
            statuses[str(detail["nondhNumber"])] = map_status(raw) if raw else "valid"
    return statuses


def compute_validity(sorted_nondhs: list[dict], details_by_number: dict[str, str]) -> dict[str, bool]:
    """Compute effective validity per nondh number.

    Args:
        sorted_nondhs: nondhs in chain order (see sorter.sort_nondhs)
        details_by_number: nondh number → declared status; nondhs without
            an entry count as non-invalidating but keep their position

    Returns:
        {nondh number: True if effectively valid}. When a number occurs more
        than once in the order, its last occurrence decides.
    """
    later_invalid = [0] * len(sorted_nondhs)
    running = 0
    for i in range(len(sorted_nondhs) - 1, -1, -1):
        later_invalid[i] = running
        number = str(sorted_nondhs[i].get("number"))
        if details_by_number.get(number) == "invalid":
            running += 1

    validity: dict[str, bool] = {}
    for nondh, count in zip(sorted_nondhs, later_invalid):
        validity[str(nondh.get("number"))] = count % 2 == 0
        _trace(f"CHAIN nondh={nondh.get('number')} later_invalid={count} valid={count % 2 == 0}")
    return validity


def apply_validity(details: list[dict], validity: dict[str, bool]) -> list[dict]:
    """Stamp ``is_valid`` on each detail and its owner relations.

    Owners never get their own value: they mirror the detail's nondh.
    Details whose nondh is not in ``validity`` stay valid.
    """
    for detail in details:
        number = str(detail.get("nondh_number", detail.get("nondhNumber")))
        is_valid = validity.get(number, True)
        detail["is_valid"] = is_valid
        for owner in detail.get("owners") or []:
            owner["is_valid"] = is_valid
    return details
