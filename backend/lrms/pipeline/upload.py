"""Upload orchestrator: turns one uploaded land-record document into stored rows.

Stages:
  1 → Parcel: duplicate check and create (new upload) or basic-info match (edit mode)
  2 → Nondhs: save, then order the parcel's full nondh set (sorter)
  3 → Details: structural validation, nondh reference check, save
  4 → Validity chain over the full sorted set, owner relations stamped with it

Every entry point (HTTP upload, file upload, edit-mode append, CLI dry run)
goes through this module; nothing here knows about HTTP.
"""

import logging
from typing import Optional

from lrms.pipeline.sorter import sort_nondhs
from lrms.pipeline.store import LandRecordStore, StoreError
from lrms.pipeline.utils import (
    build_detail_row,
    build_land_record_row,
    build_nondh_row,
    build_owner_rows,
)
from lrms.pipeline.validator import validate_nondh_detail, format_skip_reason
from lrms.pipeline.validity_chain import (
    apply_validity,
    compute_validity,
    declared_statuses,
)

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = (
    "A land record with the same details already exists. Modify json file & upload "
    "again or visit the LRMS platform to edit existing record."
)
MISMATCH_MESSAGE = (
    "JSON basic info does not match the existing land record. Please verify district, "
    "taluka, village, and survey numbers."
)


def _find_nondh(number, nondhs: list[dict]) -> Optional[dict]:
    wanted = str(number)
    for nondh in nondhs:
        if str(nondh.get("number")) == wanted:
            return nondh
    return None


def screen_details(raw_details: list, nondhs: list[dict]) -> tuple[list[tuple[dict, dict]], list[str]]:
    """Split raw details into accepted (detail, nondh) pairs and skip reasons.

    A detail is accepted when it is structurally valid and its nondh number
    exists in ``nondhs``. Input order is preserved.
    """
    accepted: list[tuple[dict, dict]] = []
    skipped: list[str] = []
    for detail in raw_details:
        errors = validate_nondh_detail(detail)
        if errors:
            number = detail.get("nondhNumber") if isinstance(detail, dict) else None
            skipped.append(format_skip_reason(number, errors))
            continue

        nondh = _find_nondh(detail["nondhNumber"], nondhs)
        if nondh is None:
            skipped.append(format_skip_reason(detail["nondhNumber"], ["No matching nondh found in nondhs array"]))
            continue
        accepted.append((detail, nondh))

    for reason in skipped:
        logger.warning(f"Skipped nondh detail: {reason}")
    return accepted, skipped


def basic_info_matches(record: dict, basic_info: dict) -> bool:
    """Edit mode guard: the upload must describe the record it is appended to."""
    block_no = basic_info.get("blockNo")
    re_survey_no = basic_info.get("reSurveyNo")
    return (
        record.get("district") == basic_info.get("district")
        and record.get("taluka") == basic_info.get("taluka")
        and record.get("village") == basic_info.get("village")
        and (
            bool(block_no and record.get("block_no") == block_no)
            or bool(re_survey_no and record.get("re_survey_no") == re_survey_no)
        )
    )


def parcel_from_record(record: dict) -> dict:
    """Parcel descriptor of a stored land record, shaped like upload basicInfo."""
    return {
        "sNo": record.get("s_no") or "",
        "blockNo": record.get("block_no") or "",
        "reSurveyNo": record.get("re_survey_no") or "",
    }


# ═══════════════════════════════════════════════════
# DRY RUN (no persistence)
# ═══════════════════════════════════════════════════

def run_validity_chain(payload: dict) -> dict:
    """Compute the validity chain for an upload payload without storing anything.

    Returns:
        order: nondh numbers in chain order
        validity: {nondh number: effective validity}
        details: accepted detail rows with ``is_valid`` and ``owners``
        skipped: diagnostic strings for rejected details
    """
    basic_info = payload.get("basicInfo") or {}
    nondhs = [build_nondh_row(n) for n in payload.get("nondhs") or [] if isinstance(n, dict)]
    sorted_nondhs = sort_nondhs(nondhs, basic_info)

    accepted, skipped = screen_details(payload.get("nondhDetails") or [], nondhs)
    details = [{**build_detail_row(d), "owners": build_owner_rows(d)} for d, _ in accepted]

    validity = compute_validity(sorted_nondhs, declared_statuses(details))
    apply_validity(details, validity)

    return {
        "order": [n["number"] for n in sorted_nondhs],
        "validity": validity,
        "details": details,
        "skipped": skipped,
    }


# ═══════════════════════════════════════════════════
# FULL UPLOAD
# ═══════════════════════════════════════════════════

def process_upload(payload: dict, store: LandRecordStore, *, land_record_id: Optional[str] = None) -> dict:
    """Persist an upload and its computed validity.

    Args:
        payload: structurally checked upload (basicInfo, nondhs, nondhDetails)
        store: persistence collaborator
        land_record_id: existing record to append to (edit mode); None creates a new one

    Raises:
        FileNotFoundError: edit mode with an unknown land_record_id
    """
    basic_info = payload["basicInfo"]
    edit_mode = land_record_id is not None

    try:
        # Stage 1: parcel
        if not edit_mode:
            duplicate = store.find_duplicate(basic_info)
            if duplicate:
                logger.info(f"Duplicate land record {duplicate['id']}, upload rejected")
                return {
                    "success": False,
                    "message": "Duplicate land record found",
                    "duplicateRecord": duplicate,
                    "error": DUPLICATE_MESSAGE,
                }
            record = store.create_land_record(build_land_record_row(basic_info))
            land_record_id = record["id"]
            existing = {"nondhs": [], "nondh_details": []}
        else:
            existing = store.get_land_record(land_record_id)
            if not basic_info_matches(existing["land_record"], basic_info):
                return {
                    "success": False,
                    "message": "Basic info mismatch",
                    "error": MISMATCH_MESSAGE,
                    "landRecordId": land_record_id,
                }

        # Stage 2: nondhs
        new_rows = [build_nondh_row(n) for n in payload.get("nondhs") or [] if isinstance(n, dict)]
        saved_nondhs = store.insert_nondhs(land_record_id, new_rows) if new_rows else []
    except StoreError as e:
        logger.error(f"Upload failed for land record {land_record_id}: {e}")
        return {
            "success": False,
            "message": "Upload failed",
            "error": str(e),
            "landRecordId": land_record_id,
        }

    # Stored parcel numbers classify the nondhs; an edit upload only has to match them
    parcel = parcel_from_record(existing["land_record"]) if edit_mode else basic_info
    all_nondhs = existing["nondhs"] + saved_nondhs
    sorted_nondhs = sort_nondhs(all_nondhs, parcel)

    # Stage 3: details (new nondhs take precedence when a number repeats)
    accepted, skipped = screen_details(payload.get("nondhDetails") or [], saved_nondhs + existing["nondhs"])
    new_details: list[tuple[dict, dict]] = []
    for detail, nondh in accepted:
        row = {**build_detail_row(detail), "nondh_id": nondh["id"]}
        try:
            saved = store.insert_nondh_detail(land_record_id, row)
        except StoreError as e:
            reason = format_skip_reason(detail["nondhNumber"], [f"Database error - {e}"])
            logger.warning(f"Skipped nondh detail: {reason}")
            skipped.append(reason)
            continue
        new_details.append((saved, detail))

    # Stage 4: validity chain over everything the parcel now holds
    all_details = existing["nondh_details"] + [saved for saved, _ in new_details]
    validity = compute_validity(sorted_nondhs, declared_statuses(all_details))

    owners_inserted = 0
    owners_failed = 0
    for saved, detail in new_details:
        is_valid = validity.get(saved["nondh_number"], True)
        for owner_row in build_owner_rows(detail):
            try:
                store.insert_owner_relation(land_record_id, saved["id"], {**owner_row, "is_valid": is_valid})
                owners_inserted += 1
            except StoreError as e:
                owners_failed += 1
                logger.warning(f"Owner relation '{owner_row.get('owner_name')}' for nondh {saved['nondh_number']} not saved: {e}")

    refresh_error = None
    try:
        changed = store.update_owner_validity(
            land_record_id,
            {d["id"]: validity.get(str(d["nondh_number"]), True) for d in all_details},
        )
        if edit_mode and changed:
            logger.info(f"Land record {land_record_id}: {changed} existing owner relation(s) changed validity")
    except StoreError as e:
        refresh_error = f"Could not refresh stored validity flags: {e}"
        logger.error(f"Land record {land_record_id}: {refresh_error}")

    stats = {
        "nondhs": len(saved_nondhs),
        "nondhDetails": len(new_details),
        "totalOwners": owners_inserted,
        "ownersFailed": owners_failed,
        "skippedNondhDetails": len(skipped),
    }
    logger.info(
        f"Land record {land_record_id}: {stats['nondhs']} nondh(s), {stats['nondhDetails']} detail(s), "
        f"{owners_inserted} owner(s), {len(skipped)} skipped"
    )

    result = {
        "success": True,
        "message": "Nondh data added successfully to existing record" if edit_mode
        else "Land record uploaded and processed successfully",
        "stats": stats,
        "landRecordId": land_record_id,
        "validity": validity,
    }
    errors = skipped + ([refresh_error] if refresh_error else [])
    if errors:
        result["errors"] = errors
    return result
