"""Application configuration."""

import os
from pathlib import Path
from dotenv import load_dotenv

# Base paths
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from backend root (before any os.getenv calls)
load_dotenv(BASE_DIR / ".env")
TEMP_DIR = Path(os.getenv("LRMS_TEMP_DIR", str(BASE_DIR / "temp")))
UPLOAD_DIR = TEMP_DIR / "uploads"
RECORDS_DIR = TEMP_DIR / "records"

# Create directories
for d in [TEMP_DIR, UPLOAD_DIR, RECORDS_DIR]:
    d.mkdir(parents=True, exist_ok=True)

# Uploads
MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", "10"))
UPLOAD_TTL_SECONDS = int(os.getenv("UPLOAD_TTL_SECONDS", str(24 * 60 * 60)))

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if o.strip()
]

# Debug trace mode: set LRMS_TRACE=1 to get detailed sorter / chain logs
TRACE_ENABLED = os.getenv("LRMS_TRACE", "").strip().lower() in ("1", "true", "yes")

# ═══════════════════════════════════════════════════
# SHARED CONSTANTS (nondh vocabulary)
# ═══════════════════════════════════════════════════

NONDH_TYPES = [
    "Kabjedaar",              # Possession
    "Ekatrikaran",            # Amalgamation
    "Varsai",                 # Inheritance
    "Hayati_ma_hakh_dakhal",  # Transfer by right during lifetime
    "Hakkami",                # Relinquishment
    "Vechand",                # Sale
    "Durasti",                # Correction
    "Promulgation",
    "Hukam",                  # Order
    "Vehchani",               # Partition
    "Bojo",                   # Encumbrance
    "Other",
]

TENURE_TYPES = [
    "Navi",
    "Juni",
    "Kheti_Kheti_ma_Juni",
    "NA",
    "Bin_Kheti_Pre_Patra",
    "Prati_bandhit_satta_prakar",
]
DEFAULT_TENURE = "Navi"

# Order-issuing authority, only meaningful for Hukam nondhs
HUKAM_TYPES = [
    "SSRD",
    "Collector",
    "Collector_ganot",
    "Prant",
    "Mamlajdaar",
    "GRT",
    "Jasu",
    "ALT Krushipanch",
    "DILR",
]
DEFAULT_HUKAM_TYPE = "SSRD"
GANOT_HUKAM_TYPE = "ALT Krushipanch"
GANOT_OPTIONS = ["1st Right", "2nd Right"]

# Upload vocabulary → stored status. Unknown / missing values are "valid".
STATUS_MAP = {
    "Pramaanik": "valid",
    "Radd": "invalid",
    "Na Manjoor": "nullified",
}
DEFAULT_STATUS = "valid"

# Highest priority first: survey number > block number > re-survey number
SURVEY_TYPE_PRIORITY = ["s_no", "block_no", "re_survey_no"]
DEFAULT_SURVEY_TYPE = "s_no"

# Area conversion (square metres per unit)
SQM_PER_ACRE = 4046.86
SQM_PER_GUNTHA = 101.17
