"""Land-record upload, edit-mode append and validity endpoints."""

import json
import uuid
import logging
from pathlib import Path, PurePosixPath
from typing import Any, Optional
from fastapi import APIRouter, UploadFile, File, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from lrms.config import UPLOAD_DIR, MAX_UPLOAD_MB
from lrms.pipeline.store import LandRecordStore
from lrms.pipeline.upload import process_upload, run_validity_chain, MISMATCH_MESSAGE
from lrms.pipeline.validator import validate_upload_structure

router = APIRouter()
logger = logging.getLogger(__name__)

MAX_FILE_SIZE = MAX_UPLOAD_MB * 1024 * 1024
JSON_CONTENT_TYPES = ("application/json", "text/json")

_store: Optional[LandRecordStore] = None


def get_store() -> LandRecordStore:
    """Process-wide record store, created on first use."""
    global _store
    if _store is None:
        _store = LandRecordStore()
    return _store


class UploadPayload(BaseModel):
    """Upload document: parcel basic info plus nondhs and their details."""
    model_config = ConfigDict(extra="allow")

    basicInfo: Optional[dict] = None
    nondhs: list[Any] = Field(default_factory=list)
    nondhDetails: list[Any] = Field(default_factory=list)


def _safe_json_response(data: dict, status_code: int = 200) -> JSONResponse:
    """JSONResponse that tolerates non-native values the same way the store does."""
    content = json.loads(json.dumps(data, default=str, ensure_ascii=False))
    return JSONResponse(content=content, status_code=status_code)


def _sanitize_filename(raw: str) -> str:
    """Strip path components and keep only the basename."""
    name = PurePosixPath(raw).name
    name = Path(name).name
    return name or "upload.json"


def _handle_upload(data: dict, land_record_id: Optional[str] = None) -> JSONResponse:
    """Shared tail of every upload route: structure check, process, map to HTTP."""
    structural_errors = validate_upload_structure(data)
    if structural_errors:
        return _safe_json_response(
            {"success": False, "message": "Invalid JSON structure", "errors": structural_errors},
            status_code=400,
        )

    try:
        result = process_upload(data, get_store(), land_record_id=land_record_id)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Land record not found")
    except Exception as e:
        logger.exception(f"Upload failed (land record {land_record_id or 'new'})")
        return _safe_json_response(
            {"success": False, "message": "Upload failed", "error": str(e)},
            status_code=500,
        )

    if result["success"]:
        return _safe_json_response(result)
    if result.get("duplicateRecord"):
        return _safe_json_response(result, status_code=409)
    if result.get("error") == MISMATCH_MESSAGE:
        return _safe_json_response(result, status_code=400)
    return _safe_json_response(result, status_code=500)


@router.post("/upload")
async def upload_land_record(payload: UploadPayload):
    """Upload a land record with its nondhs and nondh details (raw JSON body).

    Details that fail validation are skipped and listed under ``errors``.
    409 when the parcel already exists.
    """
    return _handle_upload(payload.model_dump())


@router.post("/upload-file")
async def upload_land_record_file(file: UploadFile = File(...)):
    """Upload a land record as a JSON file (multipart form field ``file``)."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded. Please upload a JSON file.")

    safe_name = _sanitize_filename(file.filename)
    if not (safe_name.lower().endswith(".json") or (file.content_type or "") in JSON_CONTENT_TYPES):
        raise HTTPException(status_code=400, detail="Invalid file type. Please upload a JSON file.")

    # Streaming read with size limit
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(1024 * 1024)
        if not chunk:
            break
        total += len(chunk)
        if total > MAX_FILE_SIZE:
            raise HTTPException(
                status_code=413,
                detail=f"File too large: {safe_name} exceeds {MAX_UPLOAD_MB} MB limit",
            )
        chunks.append(chunk)
    content = b"".join(chunks)

    dest = UPLOAD_DIR / f"{Path(safe_name).stem}_{uuid.uuid4().hex[:12]}.json"
    dest.write_bytes(content)
    logger.info(f"Uploaded: {safe_name} → {dest.name} ({len(content):,} bytes)")
    try:
        data = json.loads(dest.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return _safe_json_response(
            {"success": False, "message": "Invalid JSON format in file", "error": str(e)},
            status_code=400,
        )
    finally:
        dest.unlink(missing_ok=True)

    return _handle_upload(data)


@router.post("/validity")
async def compute_validity_chain(payload: UploadPayload):
    """Dry run: sort nondhs and compute the validity chain without storing anything."""
    data = payload.model_dump()
    structural_errors = validate_upload_structure(data)
    if structural_errors:
        return _safe_json_response(
            {"success": False, "message": "Invalid JSON structure", "errors": structural_errors},
            status_code=400,
        )
    return {"success": True, **run_validity_chain(data)}


@router.post("/{land_record_id}/nondhs")
async def append_nondhs(land_record_id: str, payload: UploadPayload):
    """Edit mode: add nondhs and details to an existing record.

    Validity is recomputed over the record's full nondh set, so owner
    relations saved by earlier uploads are updated as well.
    """
    return _handle_upload(payload.model_dump(), land_record_id=land_record_id)


@router.get("/{land_record_id}")
async def get_land_record(land_record_id: str):
    """Stored land record with its nondhs, details and owner relations."""
    try:
        return get_store().get_land_record(land_record_id)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Land record not found")
