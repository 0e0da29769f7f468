"""
QualificationService: single + multi airport evaluation, solo expiry
enforcement, batch order and error propagation.

  python quals/evaluation/test_service.py
"""
import sys
sys.path.insert(0, ".")

from datetime import datetime, timezone

from quals.errors import TrainingDataError
from quals.evaluation.service import (
    Controller, EventScope, MultiAirportEvent, QualificationService,
)
from quals.positions.groups import StationGroup
from quals.positions.ratings import Rating
from quals.training.records import SoloRecord, TrainingRecords
from quals.training.store import InMemoryTrainingStore, TrainingRecordStore

BEFORE_EXPIRY = datetime(2025, 3, 1, tzinfo=timezone.utc)
AFTER_EXPIRY = datetime(2025, 3, 13, tzinfo=timezone.utc)
EXPIRY = datetime(2025, 3, 12, 23, 59, tzinfo=timezone.utc)


class BrokenStore(TrainingRecordStore):
    def get_records(self, controller_id):
        raise TrainingDataError("store down")


def make_service(clock_value=BEFORE_EXPIRY, **kwargs):
    store = InMemoryTrainingStore()
    store.put(TrainingRecords(
        controller_id=1,
        endorsements=["EDDM_TWR", "EDDN_APP", "EDMM_ALB_CTR"],
        solos=[SoloRecord("EDDM_APP", EXPIRY)],
        familiarizations={"EDMM": ["ALB", "HOF"]},
    ))
    store.put(TrainingRecords(controller_id=2, familiarizations={"EDMM": ["STA", "HOF", "ALB"]}))
    return QualificationService(store, clock=lambda: clock_value, **kwargs)


# ── evaluate ──────────────────────────────────────────────────────────────────

def test_evaluate_tier1_with_live_solo():
    result = make_service().evaluate(Controller(1, Rating.S2), EventScope("eddm"))
    assert result.group is StationGroup.APP
    assert result.restrictions == ["solo: bis 3/12/2025"]
    assert result.endorsements == ["EDDM_TWR"]


def test_evaluate_drops_expired_solo():
    service = make_service(clock_value=AFTER_EXPIRY)
    result = service.evaluate(Controller(1, Rating.S2), EventScope("EDDM"))
    assert result.group is StationGroup.TWR
    assert result.restrictions == []


def test_evaluate_trusts_store_when_expiry_not_enforced():
    service = make_service(clock_value=AFTER_EXPIRY, enforce_solo_expiry=False)
    result = service.evaluate(Controller(1, Rating.S2), EventScope("EDDM"))
    assert result.group is StationGroup.APP


def test_evaluate_fir_scoped_familiarizations():
    result = make_service().evaluate(Controller(1, Rating.C1), EventScope("EDDN", "EDMM"))
    assert result.group is StationGroup.CTR
    assert result.restrictions == ["HOF, ALB only"]
    assert result.familiarizations == ["HOF", "ALB"]
    assert result.endorsements == ["EDDN_APP", "EDMM_ALB_CTR"]


def test_unknown_controller_is_not_an_error():
    result = make_service().evaluate(Controller(99, Rating.S1), EventScope("EDDM"))
    assert result.group is None
    assert result.restrictions == []


def test_store_error_propagates():
    service = QualificationService(BrokenStore())
    try:
        service.evaluate(Controller(1, Rating.C1), EventScope("EDDN"))
        assert False, "expected TrainingDataError"
    except TrainingDataError:
        pass


# ── evaluate_multi ────────────────────────────────────────────────────────────

def test_multi_empty_airport_list():
    result = make_service().evaluate_multi(Controller(1, Rating.S2), MultiAirportEvent(()))
    assert result.airports == []
    assert result.highest_group is None


def test_multi_highest_group_and_order():
    result = make_service().evaluate_multi(
        Controller(1, Rating.S2), MultiAirportEvent(("EDDF", "EDDN", "EDDM")))

    assert [a.airport for a in result.airports] == ["EDDF", "EDDN", "EDDM"]
    eddf, eddn, eddm = result.airports
    assert not eddf.can_control and eddf.group is None
    assert eddn.group is StationGroup.APP and eddn.restrictions == []
    assert eddm.group is StationGroup.APP and eddm.restrictions == ["solo: bis 3/12/2025"]
    assert result.highest_group is StationGroup.APP
    assert result.endorsements == ["EDDN_APP", "EDDM_TWR"]


def test_multi_matches_single_evaluations():
    service = make_service()
    controller = Controller(2, Rating.C3)
    airports = ("EDDM", "EDDN", "EDDP")
    multi = service.evaluate_multi(controller, MultiAirportEvent(airports, "EDMM"))
    for entry, airport in zip(multi.airports, airports):
        single = service.evaluate(controller, EventScope(airport, "EDMM"))
        assert entry.group == single.group
        assert entry.restrictions == single.restrictions


def test_multi_sequential_and_pooled_agree():
    event = MultiAirportEvent(("EDDM", "EDDN", "EDDF", "EDDP"), "EDMM")
    pooled = make_service(max_workers=4).evaluate_multi(Controller(1, Rating.C1), event)
    inline = make_service(max_workers=1).evaluate_multi(Controller(1, Rating.C1), event)
    assert [a.group for a in pooled.airports] == [a.group for a in inline.airports]
    assert pooled.highest_group == inline.highest_group


# ── batch ─────────────────────────────────────────────────────────────────────

def test_evaluate_many_keeps_input_order():
    service = make_service()
    controllers = [Controller(2, Rating.C1), Controller(1, Rating.S2), Controller(3, Rating.S1)]
    results = service.evaluate_many(controllers, EventScope("EDDN", "EDMM"))
    assert [r.group for r in results] == [
        StationGroup.CTR, StationGroup.APP, StationGroup.GND,
    ]


def test_evaluate_many_propagates_store_error():
    service = QualificationService(BrokenStore(), max_workers=4)
    try:
        service.evaluate_many([Controller(1, Rating.S1), Controller(2, Rating.S1)],
                              EventScope("EDDN"))
        assert False, "expected TrainingDataError"
    except TrainingDataError:
        pass


if __name__ == "__main__":
    tests = [v for k, v in list(globals().items()) if k.startswith("test_")]
    for t in tests:
        t()
        print(f"  ✅ {t.__name__}")
    print(f"\n{len(tests)} passed")
