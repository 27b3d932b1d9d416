"""Tests for lrms/pipeline/validity_chain.py: parity of later invalidations."""

import random

import pytest

from lrms.pipeline.validity_chain import (
    compute_validity,
    declared_statuses,
    apply_validity,
)


def _order(*numbers):
    return [{"number": n} for n in numbers]


def _naive(sorted_nondhs, statuses):
    """Direct suffix count: the reference definition of effective validity."""
    result = {}
    for i, nondh in enumerate(sorted_nondhs):
        count = sum(1 for later in sorted_nondhs[i + 1:] if statuses.get(later["number"]) == "invalid")
        result[nondh["number"]] = count % 2 == 0
    return result


# ═══════════════════════════════════════════════════
# 1. compute_validity scenarios
# ═══════════════════════════════════════════════════

class TestComputeValidity:

    def test_empty(self):
        assert compute_validity([], {}) == {}

    def test_single_later_invalid(self):
        """N1 valid, N2 Radd → N1 flipped to invalid, N2 stays valid."""
        validity = compute_validity(_order("1", "2"), {"1": "valid", "2": "invalid"})
        assert validity == {"1": False, "2": True}

    def test_two_later_invalid_flip_back(self):
        validity = compute_validity(
            _order("1", "2", "3"), {"1": "valid", "2": "invalid", "3": "invalid"}
        )
        assert validity == {"1": True, "2": False, "3": True}

    def test_declared_invalid_last_is_effectively_valid(self):
        assert compute_validity(_order("1"), {"1": "invalid"}) == {"1": True}

    def test_nullified_does_not_count(self):
        validity = compute_validity(_order("1", "2"), {"1": "valid", "2": "nullified"})
        assert validity == {"1": True, "2": True}

    def test_nullified_between_invalids(self):
        validity = compute_validity(
            _order("1", "2", "3"), {"1": "valid", "2": "nullified", "3": "invalid"}
        )
        assert validity == {"1": False, "2": False, "3": True}

    def test_missing_detail_counts_zero_but_keeps_position(self):
        validity = compute_validity(_order("1", "2", "3"), {"3": "invalid"})
        assert validity == {"1": False, "2": False, "3": True}

    def test_repeated_number_last_occurrence_wins(self):
        validity = compute_validity(_order("5", "6", "5"), {"6": "invalid"})
        assert validity == {"5": True, "6": True}

    def test_numbers_compared_as_strings(self):
        validity = compute_validity([{"number": 1}, {"number": 2}], {"2": "invalid"})
        assert validity == {"1": False, "2": True}

    def test_idempotent(self):
        order = _order("1", "2", "3", "4")
        statuses = {"2": "invalid", "4": "invalid"}
        assert compute_validity(order, statuses) == compute_validity(order, statuses)

    def test_does_not_mutate_inputs(self):
        order = _order("1", "2")
        statuses = {"2": "invalid"}
        compute_validity(order, statuses)
        assert order == _order("1", "2")
        assert statuses == {"2": "invalid"}

    @pytest.mark.parametrize("seed", range(10))
    def test_matches_suffix_count(self, seed):
        rng = random.Random(seed)
        n = rng.randint(0, 25)
        order = _order(*[str(i) for i in range(n)])
        statuses = {
            str(i): rng.choice(["valid", "invalid", "nullified"])
            for i in range(n) if rng.random() < 0.8
        }
        assert compute_validity(order, statuses) == _naive(order, statuses)


# ═══════════════════════════════════════════════════
# 2. declared_statuses
# ═══════════════════════════════════════════════════

class TestDeclaredStatuses:

    def test_raw_upload_vocabulary(self):
        details = [
            {"nondhNumber": "1", "status": "Pramaanik"},
            {"nondhNumber": "2", "status": "Radd"},
            {"nondhNumber": "3", "status": "Na Manjoor"},
            {"nondhNumber": "4"},
            {"nondhNumber": 5, "status": "Unknown"},
        ]
        assert declared_statuses(details) == {
            "1": "valid", "2": "invalid", "3": "nullified", "4": "valid", "5": "valid",
        }

    def test_stored_rows(self):
        details = [{"nondh_number": "1", "status": "invalid"}, {"nondh_number": "2", "status": "nullified"}]
        assert declared_statuses(details) == {"1": "invalid", "2": "nullified"}

    def test_last_detail_wins(self):
        details = [
            {"nondh_number": "1", "status": "invalid"},
            {"nondh_number": "1", "status": "valid"},
        ]
        assert declared_statuses(details) == {"1": "valid"}


# ═══════════════════════════════════════════════════
# 3. apply_validity
# ═══════════════════════════════════════════════════

class TestApplyValidity:

    def test_owners_mirror_detail(self):
        details = [
            {"nondh_number": "1", "owners": [{"owner_name": "A"}, {"owner_name": "B"}]},
            {"nondh_number": "2", "owners": [{"owner_name": "C"}]},
        ]
        apply_validity(details, {"1": False, "2": True})
        assert details[0]["is_valid"] is False
        assert [o["is_valid"] for o in details[0]["owners"]] == [False, False]
        assert details[1]["owners"][0]["is_valid"] is True

    def test_unknown_number_stays_valid(self):
        details = [{"nondh_number": "9", "owners": [{"owner_name": "A"}]}]
        apply_validity(details, {"1": False})
        assert details[0]["is_valid"] is True
        assert details[0]["owners"][0]["is_valid"] is True
