"""File-backed persistence for land records, nondhs, details and owner relations.

One JSON document per land record under RECORDS_DIR:

    {
      "land_record": {...},
      "nondhs": [...],
      "nondh_details": [...],
      "owner_relations": [...]
    }

Writes are atomic (temp file in the same directory + os.replace) so a crash
mid-write never leaves a half-written record behind.
"""

import json
import os
import tempfile
import uuid
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from lrms.config import RECORDS_DIR

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A write to the record store failed."""


def _new_id() -> str:
    return str(uuid.uuid4())


class LandRecordStore:
    """Stores every land record as its own JSON file."""

    def __init__(self, root: Optional[Path] = None):
        self.root = Path(root) if root is not None else RECORDS_DIR
        self.root.mkdir(parents=True, exist_ok=True)

    # ── file helpers ──

    def _path(self, land_record_id: str) -> Path:
        # Only the final path component is used, ids never address other dirs
        return self.root / f"{Path(str(land_record_id)).name}.json"

    def _load(self, land_record_id: str) -> dict:
        path = self._path(land_record_id)
        if not path.exists():
            raise FileNotFoundError(f"Land record {land_record_id} not found")
        return json.loads(path.read_text(encoding="utf-8"))

    def _save(self, land_record_id: str, data: dict):
        payload = json.dumps(data, indent=2, default=str, ensure_ascii=False)
        try:
            fd, tmp_path = tempfile.mkstemp(dir=str(self.root), suffix=".tmp", prefix="rec_")
        except OSError as e:
            raise StoreError(f"Could not write land record {land_record_id}: {e}") from e
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(payload)
            os.replace(tmp_path, str(self._path(land_record_id)))
        except BaseException as e:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            if isinstance(e, OSError):
                raise StoreError(f"Could not write land record {land_record_id}: {e}") from e
            raise

    # ── land records ──

    def list_land_records(self) -> list[dict]:
        records = []
        for f in sorted(self.root.glob("*.json")):
            try:
                records.append(json.loads(f.read_text(encoding="utf-8"))["land_record"])
            except (json.JSONDecodeError, KeyError, OSError) as e:
                logger.warning(f"Skipping unreadable record file {f.name}: {e}")
        return records

    def find_duplicate(self, basic_info: dict) -> Optional[dict]:
        """Find an existing record for the same district/taluka/village/block.

        The re-survey number is compared too when the upload supplies one.
        """
        block_no = basic_info.get("blockNo") or ""
        re_survey_no = basic_info.get("reSurveyNo") or None
        for record in self.list_land_records():
            if (
                record.get("district") == basic_info.get("district")
                and record.get("taluka") == basic_info.get("taluka")
                and record.get("village") == basic_info.get("village")
                and (record.get("block_no") or "") == block_no
                and (re_survey_no is None or record.get("re_survey_no") == re_survey_no)
            ):
                return {
                    key: record.get(key)
                    for key in ("id", "district", "taluka", "village", "block_no", "re_survey_no")
                }
        return None

    def create_land_record(self, row: dict) -> dict:
        record = {**row, "id": _new_id(), "created_at": datetime.now().isoformat()}
        self._save(record["id"], {
            "land_record": record,
            "nondhs": [],
            "nondh_details": [],
            "owner_relations": [],
        })
        logger.info(f"Created land record {record['id']} ({record.get('village')}, {record.get('taluka')})")
        return record

    def get_land_record(self, land_record_id: str) -> dict:
        """Full stored document for a land record. Raises FileNotFoundError."""
        return self._load(land_record_id)

    # ── children ──

    def insert_nondhs(self, land_record_id: str, rows: list[dict]) -> list[dict]:
        data = self._load(land_record_id)
        saved = [{**row, "id": _new_id(), "land_record_id": land_record_id} for row in rows]
        data["nondhs"].extend(saved)
        self._save(land_record_id, data)
        return saved

    def insert_nondh_detail(self, land_record_id: str, row: dict) -> dict:
        data = self._load(land_record_id)
        saved = {**row, "id": _new_id()}
        data["nondh_details"].append(saved)
        self._save(land_record_id, data)
        return saved

    def insert_owner_relation(self, land_record_id: str, nondh_detail_id: str, row: dict) -> dict:
        data = self._load(land_record_id)
        saved = {**row, "id": _new_id(), "nondh_detail_id": nondh_detail_id}
        data["owner_relations"].append(saved)
        self._save(land_record_id, data)
        return saved

    def update_owner_validity(self, land_record_id: str, validity_by_detail: dict[str, bool]) -> int:
        """Rewrite ``is_valid`` on owner relations of the given details.

        Returns the number of relations whose flag changed.
        """
        data = self._load(land_record_id)
        changed = 0
        for relation in data["owner_relations"]:
            detail_id = relation.get("nondh_detail_id")
            if detail_id in validity_by_detail and relation.get("is_valid") != validity_by_detail[detail_id]:
                relation["is_valid"] = validity_by_detail[detail_id]
                changed += 1
        for detail in data["nondh_details"]:
            if detail.get("id") in validity_by_detail:
                detail["is_valid"] = validity_by_detail[detail["id"]]
        if validity_by_detail:
            self._save(land_record_id, data)
        return changed
