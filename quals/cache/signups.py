"""
Cached signup list per event occurrence, each signup enriched with the
controller's computed qualification.

Reads go through DerivedValueCache under "signups:occurrence:<id>"; every
signup create/update/delete or roster publish must call invalidate(id).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from sqlalchemy.orm import Session

from quals.cache.derived import DerivedValueCache
from quals.errors import UnknownScopeError
from quals.evaluation.service import (
    AirportQualification, Controller, MultiAirportEvent, QualificationService,
)
from quals.models import EventOccurrence
from quals.positions.groups import StationGroup
from quals.positions.ratings import rating_from_string
from quals.rules.restrictions import is_trainee

logger = logging.getLogger(__name__)

KEY_PREFIX = "signups:occurrence:"


def key_for(occurrence_id: int) -> str:
    return f"{KEY_PREFIX}{occurrence_id}"


# ── Source side ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SignupRecord:
    id: int
    controller_id: int
    rating: str
    name: Optional[str] = None
    remarks: Optional[str] = None


@dataclass
class OccurrenceSignups:
    occurrence_id: int
    name: str
    airports: list[str]
    fir: Optional[str]
    staffed_stations: list[str] = field(default_factory=list)
    signups: list[SignupRecord] = field(default_factory=list)


class SignupSource(Protocol):
    def load(self, occurrence_id: int) -> OccurrenceSignups: ...


class SqlSignupSource:
    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def load(self, occurrence_id: int) -> OccurrenceSignups:
        db = self.session_factory()
        try:
            occurrence = db.get(EventOccurrence, occurrence_id)
            if occurrence is None:
                raise UnknownScopeError(f"Occurrence {occurrence_id} not found")
            return OccurrenceSignups(
                occurrence_id=occurrence.id,
                name=occurrence.name,
                airports=list(occurrence.airports or []),
                fir=occurrence.fir,
                staffed_stations=list(occurrence.staffed_stations or []),
                signups=[
                    SignupRecord(id=s.id, controller_id=s.controller_id, rating=s.rating,
                                 name=s.name, remarks=s.remarks)
                    for s in occurrence.signups
                ],
            )
        finally:
            db.close()


# ── Cached view ───────────────────────────────────────────────────────────────

@dataclass
class SignupEntry:
    id: int
    controller_id: int
    name: Optional[str]
    rating: str
    remarks: Optional[str]
    group: Optional[StationGroup]
    restrictions: list[str]
    trainee: bool
    airports: list[AirportQualification] = field(default_factory=list)


class SignupQualificationCache:
    def __init__(self, service: QualificationService, source: SignupSource,
                 cache: Optional[DerivedValueCache] = None):
        self.service = service
        self.source = source
        self.cache = cache or DerivedValueCache()

    def get_signups(self, occurrence_id: int, force_refresh: bool = False) -> list[SignupEntry]:
        return self.cache.get_or_compute(
            key_for(occurrence_id),
            lambda: self._compute(occurrence_id),
            force_refresh=force_refresh,
        )

    def get_occurrence(self, occurrence_id: int) -> OccurrenceSignups:
        return self.source.load(occurrence_id)

    def invalidate(self, occurrence_id: int) -> None:
        self.cache.invalidate(key_for(occurrence_id))

    def last_update(self, occurrence_id: int) -> int:
        return self.cache.last_update(key_for(occurrence_id))

    def invalidate_all(self) -> None:
        """Training records changed: every cached qualification is stale."""
        self.cache.invalidate_prefix(KEY_PREFIX)

    def _compute(self, occurrence_id: int) -> list[SignupEntry]:
        logger.info("[cache] recompute signups for occurrence %s", occurrence_id)
        occurrence = self.source.load(occurrence_id)
        event = MultiAirportEvent(airports=tuple(occurrence.airports), fir=occurrence.fir)
        controllers = [
            Controller(id=s.controller_id, rating=rating_from_string(s.rating))
            for s in occurrence.signups
        ]
        results = self.service.evaluate_multi_many(controllers, event)

        entries = []
        for signup, result in zip(occurrence.signups, results):
            best = next(
                (a for a in result.airports if a.can_control and a.group == result.highest_group),
                None,
            )
            entries.append(SignupEntry(
                id=signup.id,
                controller_id=signup.controller_id,
                name=signup.name,
                rating=signup.rating,
                remarks=signup.remarks,
                group=result.highest_group,
                restrictions=list(best.restrictions) if best else [],
                trainee=is_trainee(best.reasons) if best else False,
                airports=result.airports,
            ))
        return entries
