"""
Staffing pattern coverage, booking windows, station assignment and roster
feasibility.

  python quals/staffing/test_staffing.py
"""
import sys
sys.path.insert(0, ".")

from datetime import datetime

from quals.errors import StaffingConfigError
from quals.evaluation.service import Controller, MultiAirportEvent, QualificationService
from quals.positions.groups import StationGroup
from quals.positions.ratings import Rating
from quals.training.records import TrainingRecords
from quals.training.store import InMemoryTrainingStore
from quals.staffing.checker import (
    Booking, check_staffing, check_staffing_for_window, format_staffing_summary,
    validate_assignment,
)
from quals.staffing.roster import RosterCandidate, check_roster_feasibility


# ── Pattern coverage ──────────────────────────────────────────────────────────

def test_two_frankfurt_towers_cover_requirement():
    report = check_staffing({"EDDF_._TWR": 2}, ["EDDF_N_TWR", "EDDF_S_TWR"])
    assert report.is_feasible
    assert report.per_pattern[0].booked == 2
    assert report.per_pattern[0].sufficient


def test_zero_required_is_always_sufficient():
    report = check_staffing({"EDDM_.*APP": 0}, [])
    assert report.is_feasible
    assert report.per_pattern[0].sufficient


def test_empty_requirements_are_feasible():
    assert check_staffing({}, ["EDDM_TWR"]).is_feasible


def test_case_insensitive_search():
    report = check_staffing({"eddm_twr": 1}, ["EDDM_TWR"])
    assert report.is_feasible


def test_overlapping_patterns_double_count():
    report = check_staffing({"EDDM_.*TWR": 1, "_TWR$": 2}, ["EDDM_N_TWR", "EDDN_TWR"])
    booked = {p.pattern: p.booked for p in report.per_pattern}
    assert booked == {"EDDM_.*TWR": 1, "_TWR$": 2}
    assert report.is_feasible


def test_shortfall_reported():
    report = check_staffing({"EDDM_.*APP": 2, "EDDM_TWR": 1}, ["EDDM_S_APP", "EDDM_TWR"])
    assert not report.is_feasible
    assert [p.pattern for p in report.shortfalls] == ["EDDM_.*APP"]
    summary = format_staffing_summary(report, title="Munich Night")
    assert summary.startswith("Munich Night: staffing insufficient")
    assert "- EDDM_.*APP: 1/2" in summary


def test_bad_pattern_or_count_rejected():
    for requirements in ({"EDDM_(": 1}, {"EDDM_TWR": -1}):
        try:
            check_staffing(requirements, [])
            assert False, "expected StaffingConfigError"
        except StaffingConfigError:
            pass


def test_only_overlapping_bookings_count():
    start, end = datetime(2025, 3, 7, 18), datetime(2025, 3, 7, 21)
    bookings = [
        Booking("EDDM_TWR", datetime(2025, 3, 7, 17), datetime(2025, 3, 7, 19)),
        Booking("EDDM_N_TWR", datetime(2025, 3, 7, 21), datetime(2025, 3, 7, 23)),
        Booking("EDDM_S_TWR", datetime(2025, 3, 7, 20), datetime(2025, 3, 7, 22)),
    ]
    report = check_staffing_for_window({"EDDM_.*TWR": 3}, bookings, start, end)
    assert report.per_pattern[0].booked == 2
    assert not report.is_feasible


# ── Assignment ────────────────────────────────────────────────────────────────

def test_validate_assignment_rank():
    assert validate_assignment(StationGroup.APP, "EDDM_TWR").allowed
    assert validate_assignment(StationGroup.TWR, "EDDM_TWR").allowed
    assert not validate_assignment(StationGroup.TWR, "EDDM_APP").allowed
    assert not validate_assignment(None, "EDDM_DEL").allowed


def test_s1_twr_exception():
    assert validate_assignment(StationGroup.GND, "EDDN_TWR").allowed
    assert not validate_assignment(StationGroup.GND, "EDDM_TWR").allowed
    assert validate_assignment(StationGroup.GND, "EDDM_TWR", ["EDDM_TWR"]).allowed


# ── Roster ────────────────────────────────────────────────────────────────────

def test_roster_hardest_station_first():
    # greedy in input order would give APP's only candidate to TWR
    candidates = [RosterCandidate(1, StationGroup.APP), RosterCandidate(2, StationGroup.TWR)]
    result = check_roster_feasibility(["EDDM_TWR", "EDDM_APP"], candidates)
    assert result.is_feasible
    assert result.assignments == {"EDDM_APP": 1, "EDDM_TWR": 2}


def test_roster_unstaffable_and_conflicts():
    candidates = [RosterCandidate(1, StationGroup.TWR), RosterCandidate(2, None)]
    result = check_roster_feasibility(["EDDM_APP", "EDDM_TWR", "EDDM_GNDDEL"], candidates)
    assert not result.is_feasible
    assert result.unstaffable_stations == ["EDDM_APP"]
    assert result.conflicts == ["EDDM_GNDDEL"]
    assert result.assignments == {"EDDM_TWR": 1}


def test_roster_judges_each_station_at_its_own_airport():
    candidate = RosterCandidate(
        200, StationGroup.TWR,
        airport_groups={"EDDM": None, "EDDN": StationGroup.TWR},
    )
    result = check_roster_feasibility(["EDDM_TWR"], [candidate])
    assert not result.is_feasible
    assert result.unstaffable_stations == ["EDDM_TWR"]

    result = check_roster_feasibility(["EDDN_TWR"], [candidate])
    assert result.assignments == {"EDDN_TWR": 200}


def test_roster_fir_ctr_uses_best_group_and_unknown_airport_is_closed():
    candidate = RosterCandidate(1, StationGroup.CTR, airport_groups={"EDDN": StationGroup.CTR})
    assert candidate.group_for("EDMM_ALB_CTR") is StationGroup.CTR
    assert candidate.group_for("EDDF_TWR") is None
    assert candidate.group_for("EDDN_APP") is StationGroup.CTR


def test_roster_from_multi_airport_evaluation():
    store = InMemoryTrainingStore()
    store.put(TrainingRecords(controller_id=200, endorsements=["EDDN_TWR"]))
    service = QualificationService(store, max_workers=1)
    result = service.evaluate_multi(Controller(200, Rating.S1),
                                    MultiAirportEvent(("EDDM", "EDDN")))
    assert [(a.airport, a.group) for a in result.airports] == [
        ("EDDM", None), ("EDDN", StationGroup.TWR),
    ]

    candidate = RosterCandidate.from_airports(200, result.highest_group, result.airports)
    roster = check_roster_feasibility(["EDDM_TWR"], [candidate])
    assert not roster.is_feasible
    assert roster.assignments == {}


def test_roster_no_stations():
    result = check_roster_feasibility([], [RosterCandidate(1, StationGroup.GND)])
    assert result.is_feasible
    assert result.required_stations == 0


if __name__ == "__main__":
    tests = [v for k, v in list(globals().items()) if k.startswith("test_")]
    for t in tests:
        t()
        print(f"  ✅ {t.__name__}")
    print(f"\n{len(tests)} passed")
