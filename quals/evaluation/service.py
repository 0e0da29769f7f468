"""
Qualification service — the engine's call boundary.

  evaluate(controller, event)        one airport
  evaluate_multi(controller, event)  every airport of an event + highest group
  evaluate_many(controllers, event)  batch, e.g. a whole signup list

Training records are fetched once per controller; per-airport evaluations
are independent and fan out on a thread pool. A store failure propagates
(TrainingDataError) — nothing is ever granted by default.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from quals.config import ENFORCE_SOLO_EXPIRY, EVALUATION_MAX_WORKERS
from quals.positions.airports import AirportDirectory
from quals.positions.groups import StationGroup, filter_for_airport, highest_group
from quals.rules.engine import (
    ControllerGroup, QualificationData, calculate_group, familiarizations_for,
    filter_valid_solos,
)
from quals.rules.restrictions import RestrictionReason
from quals.training.records import TrainingRecords
from quals.training.store import TrainingRecordStore

logger = logging.getLogger(__name__)


# ── Call contracts ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Controller:
    id: int
    rating: int


@dataclass(frozen=True)
class EventScope:
    airport: str
    fir: Optional[str] = None


@dataclass(frozen=True)
class MultiAirportEvent:
    airports: tuple
    fir: Optional[str] = None


@dataclass
class Qualification:
    group: Optional[StationGroup]
    restrictions: list[str]
    endorsements: list[str]
    familiarizations: list[str]
    reasons: list[RestrictionReason] = field(default_factory=list)
    data: QualificationData = field(default_factory=QualificationData)


@dataclass
class AirportQualification:
    airport: str
    can_control: bool
    group: Optional[StationGroup]
    restrictions: list[str]
    reasons: list[RestrictionReason] = field(default_factory=list)


@dataclass
class MultiAirportQualification:
    airports: list[AirportQualification]
    highest_group: Optional[StationGroup]
    endorsements: list[str]
    familiarizations: list[str]


# ── Service ───────────────────────────────────────────────────────────────────

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QualificationService:
    """
    enforce_solo_expiry=True  → solos with expiry <= now are dropped here
    enforce_solo_expiry=False → the store is trusted to hand over valid solos
    """

    def __init__(
        self,
        store: TrainingRecordStore,
        directory: Optional[AirportDirectory] = None,
        clock: Callable[[], datetime] = _utcnow,
        enforce_solo_expiry: bool = ENFORCE_SOLO_EXPIRY,
        max_workers: int = EVALUATION_MAX_WORKERS,
    ):
        self.store = store
        self.directory = directory or AirportDirectory()
        self.clock = clock
        self.enforce_solo_expiry = enforce_solo_expiry
        self.max_workers = max(1, max_workers)

    def records_for(self, controller_id: int) -> TrainingRecords:
        records = self.store.get_records(controller_id)
        if self.enforce_solo_expiry:
            records.solos = filter_valid_solos(records.solos, self.clock())
        return records

    def evaluate(self, controller: Controller, event: EventScope) -> Qualification:
        airport, fir = _norm(event.airport), _norm(event.fir)
        records = self.records_for(controller.id)
        result = self._calculate(controller, records, airport, fir)
        return Qualification(
            group=result.group,
            restrictions=result.restrictions,
            endorsements=filter_for_airport(records.endorsements, airport, fir),
            familiarizations=familiarizations_for(records, fir, self.directory),
            reasons=result.reasons,
            data=result.data,
        )

    def evaluate_multi(self, controller: Controller,
                       event: MultiAirportEvent) -> MultiAirportQualification:
        fir = _norm(event.fir)
        airports = [_norm(a) for a in event.airports]
        records = self.records_for(controller.id)

        results = self._fan_out(
            lambda airport: self._calculate(controller, records, airport, fir),
            airports,
        )

        per_airport = [
            AirportQualification(
                airport=airport,
                can_control=result.can_control,
                group=result.group,
                restrictions=result.restrictions,
                reasons=result.reasons,
            )
            for airport, result in zip(airports, results)
        ]

        endorsements: list[str] = []
        for airport in airports:
            for e in filter_for_airport(records.endorsements, airport, fir):
                if e not in endorsements:
                    endorsements.append(e)

        return MultiAirportQualification(
            airports=per_airport,
            highest_group=highest_group(a.group for a in per_airport if a.can_control),
            endorsements=endorsements,
            familiarizations=familiarizations_for(records, fir, self.directory),
        )

    def evaluate_many(self, controllers: Sequence[Controller],
                      event: EventScope) -> list[Qualification]:
        """Input order is kept; the first failure propagates."""
        return self._fan_out(lambda c: self.evaluate(c, event), list(controllers))

    def evaluate_multi_many(self, controllers: Sequence[Controller],
                            event: MultiAirportEvent) -> list[MultiAirportQualification]:
        return self._fan_out(lambda c: self.evaluate_multi(c, event), list(controllers))

    # ── internals ──

    def _calculate(self, controller: Controller, records: TrainingRecords,
                   airport: str, fir: Optional[str]) -> ControllerGroup:
        return calculate_group(controller.rating, records, airport, fir, self.directory)

    def _fan_out(self, fn, items: list) -> list:
        if len(items) <= 1 or self.max_workers == 1:
            return [fn(item) for item in items]
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(items))) as pool:
            return list(pool.map(fn, items))


def _norm(code: Optional[str]) -> Optional[str]:
    return code.strip().upper() if code else None
