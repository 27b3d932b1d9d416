"""Shared fixtures for the LRMS nondh test suite."""

import pytest

from lrms.pipeline.store import LandRecordStore


# ═══════════════════════════════════════════════════
# Upload payload fixtures (shaped like real upload JSON)
# ═══════════════════════════════════════════════════

@pytest.fixture
def basic_info():
    """Parcel with block 45, re-survey 245/2 and two primary survey numbers."""
    return {
        "district": "Ahmedabad",
        "taluka": "Mandal",
        "village": "Ukardi",
        "blockNo": "45",
        "reSurveyNo": "245/2",
        "sNo": "124/1, 124/2",
        "isPromulgation": True,
        "area": {"acre": 5, "guntha": 20},
    }


@pytest.fixture
def upload_payload(basic_info):
    """Three block-number nondhs: 1 Pramaanik, 2 Radd, 3 Pramaanik with owners."""
    return {
        "basicInfo": basic_info,
        "nondhs": [
            {"number": "1", "affectedSNos": [{"number": "45", "type": "block_no"}]},
            {"number": "2", "affectedSNos": [{"number": "45", "type": "block_no"}]},
            {"number": "3", "affectedSNos": [{"number": "45", "type": "block_no"}]},
        ],
        "nondhDetails": [
            {
                "nondhNumber": "1",
                "type": "Kabjedaar",
                "date": "15012015",
                "vigat": "Initial possession entry",
                "tenure": "Navi",
                "status": "Pramaanik",
                "owners": [
                    {"name": "Owner 1", "area": {"acre": 3, "guntha": 0}},
                    {"name": "Owner 2", "area": {"sqm": 10117}},
                ],
            },
            {
                "nondhNumber": "2",
                "type": "Hukam",
                "date": "10032019",
                "hukamDate": "05032019",
                "hukamType": "SSRD",
                "vigat": "Court order regarding land dispute",
                "status": "Radd",
                "invalidReason": "Plain",
                "owners": [{"name": "Court Appointed Owner", "area": {"sqm": 20234}}],
            },
            {
                "nondhNumber": "3",
                "type": "Varsai",
                "date": "20052020",
                "vigat": "Transfer from Owner 1 to heirs",
                "status": "Pramaanik",
                "oldOwner": "Owner 1",
                "newOwners": [
                    {"name": "Heir 1", "area": {"acre": 1, "guntha": 20}},
                ],
            },
        ],
    }


@pytest.fixture
def store(tmp_path):
    """Record store rooted in a per-test temp directory."""
    return LandRecordStore(tmp_path / "records")
