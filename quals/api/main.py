"""
FastAPI adapter over the qualification engine:
  POST /endorsements/group
  POST /endorsements/multi-airport
  POST /staffing/check
  GET  /occurrences/{id}/signups         (cached)
  POST /occurrences/{id}/invalidate
  GET  /occurrences/{id}/last-update
  GET  /occurrences/{id}/roster-check
  POST /training/refresh
  GET  /training/status
  GET  /metrics/cache
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from quals.cache.derived import DerivedValueCache
from quals.cache.signups import SignupQualificationCache, SqlSignupSource
from quals.database import SessionLocal, get_db, init_db
from quals.errors import (
    ConfigError, StaffingConfigError, TrainingDataError, UnknownScopeError,
)
from quals.evaluation.service import (
    Controller, EventScope, MultiAirportEvent, QualificationService,
)
from quals.observability.logs import configure_logging
from quals.observability.metrics import get_cache_metrics, get_signup_metrics
from quals.staffing.checker import check_staffing, format_staffing_summary
from quals.staffing.roster import RosterCandidate, check_roster_feasibility
from quals.training.refresh import ensure_training_cache_freshness, training_status
from quals.training.store import SqlTrainingStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    logger.info("[api] database initialized")
    yield


app = FastAPI(title="Controller Qualification API", version="1.0.0", lifespan=lifespan)

_service = QualificationService(SqlTrainingStore(SessionLocal))
_signup_cache = SignupQualificationCache(_service, SqlSignupSource(SessionLocal),
                                         DerivedValueCache())


def get_service() -> QualificationService:
    return _service


def get_signup_cache() -> SignupQualificationCache:
    return _signup_cache


# ── Request bodies ────────────────────────────────────────────────────────────

class UserIn(BaseModel):
    userCID: int
    rating: int


class EventIn(BaseModel):
    airport: str = Field(min_length=1)
    fir: Optional[str] = None


class MultiEventIn(BaseModel):
    airports: list[str]
    fir: Optional[str] = None


class GroupQuery(BaseModel):
    user: UserIn
    event: EventIn


class MultiAirportQuery(BaseModel):
    user: UserIn
    event: MultiEventIn


class StaffingQuery(BaseModel):
    requirements: dict[str, int]
    callsigns: list[str] = []


# ── Endpoint 1: Single airport ────────────────────────────────────────────────

@app.post("/endorsements/group")
def endorsement_group(body: GroupQuery,
                      service: QualificationService = Depends(get_service)):
    try:
        result = service.evaluate(
            Controller(id=body.user.userCID, rating=body.user.rating),
            EventScope(airport=body.event.airport, fir=body.event.fir),
        )
    except Exception as e:
        _raise_http(e)

    return {
        "group": _value(result.group),
        "restrictions": result.restrictions,
        "endorsements": result.endorsements,
        "familiarizations": result.familiarizations,
        "data": {
            "endorsement": result.data.endorsement,
            "solos": result.data.solos,
            "fams": result.data.fams,
        },
    }


# ── Endpoint 2: Multi airport ─────────────────────────────────────────────────

@app.post("/endorsements/multi-airport")
def endorsement_multi_airport(body: MultiAirportQuery,
                              service: QualificationService = Depends(get_service)):
    try:
        result = service.evaluate_multi(
            Controller(id=body.user.userCID, rating=body.user.rating),
            MultiAirportEvent(airports=tuple(body.event.airports), fir=body.event.fir),
        )
    except Exception as e:
        _raise_http(e)

    return {
        "airports": [
            {
                "airport": a.airport,
                "canControl": a.can_control,
                "group": _value(a.group),
                "restrictions": a.restrictions,
            }
            for a in result.airports
        ],
        "highestGroup": _value(result.highest_group),
        "endorsements": result.endorsements,
        "familiarizations": result.familiarizations,
    }


# ── Endpoint 3: Staffing ──────────────────────────────────────────────────────

@app.post("/staffing/check")
def staffing_check(body: StaffingQuery):
    try:
        report = check_staffing(body.requirements, body.callsigns)
    except Exception as e:
        _raise_http(e)

    return {
        "perPattern": [
            {"pattern": p.pattern, "required": p.required,
             "booked": p.booked, "sufficient": p.sufficient}
            for p in report.per_pattern
        ],
        "isFeasible": report.is_feasible,
        "summary": format_staffing_summary(report),
    }


# ── Endpoint 4: Cached signups ────────────────────────────────────────────────

@app.get("/occurrences/{occurrence_id}/signups")
def occurrence_signups(occurrence_id: int, force: bool = False,
                       signups: SignupQualificationCache = Depends(get_signup_cache)):
    try:
        entries = signups.get_signups(occurrence_id, force_refresh=force)
    except Exception as e:
        _raise_http(e)

    return {
        "occurrenceId": occurrence_id,
        "lastUpdate": signups.last_update(occurrence_id),
        "signups": [
            {
                "id": e.id,
                "cid": e.controller_id,
                "name": e.name,
                "rating": e.rating,
                "remarks": e.remarks,
                "group": _value(e.group),
                "restrictions": e.restrictions,
                "trainee": e.trainee,
            }
            for e in entries
        ],
        "metrics": get_signup_metrics(entries),
    }


@app.post("/occurrences/{occurrence_id}/invalidate")
def occurrence_invalidate(occurrence_id: int,
                          signups: SignupQualificationCache = Depends(get_signup_cache)):
    signups.invalidate(occurrence_id)
    return {"occurrenceId": occurrence_id, "lastUpdate": signups.last_update(occurrence_id)}


@app.get("/occurrences/{occurrence_id}/last-update")
def occurrence_last_update(occurrence_id: int, since: Optional[int] = None,
                           signups: SignupQualificationCache = Depends(get_signup_cache)):
    last = signups.last_update(occurrence_id)
    return {
        "occurrenceId": occurrence_id,
        "lastUpdate": last,
        "changed": last > since if since is not None else None,
    }


@app.get("/occurrences/{occurrence_id}/roster-check")
def occurrence_roster_check(occurrence_id: int,
                            signups: SignupQualificationCache = Depends(get_signup_cache)):
    try:
        occurrence = signups.get_occurrence(occurrence_id)
        entries = signups.get_signups(occurrence_id)
    except Exception as e:
        _raise_http(e)

    result = check_roster_feasibility(
        occurrence.staffed_stations,
        [RosterCandidate.from_airports(e.controller_id, e.group, e.airports) for e in entries],
        signups.service.directory.s1_twr_stations,
    )
    return {
        "isFeasible": result.is_feasible,
        "requiredStations": result.required_stations,
        "totalSignups": result.total_signups,
        "assignments": result.assignments,
        "unstaffableStations": result.unstaffable_stations,
        "conflicts": result.conflicts,
        "reasons": result.reasons,
    }


# ── Endpoint 5: Training records ──────────────────────────────────────────────

@app.post("/training/refresh")
def training_refresh(force: bool = False, db: Session = Depends(get_db),
                     signups: SignupQualificationCache = Depends(get_signup_cache)):
    try:
        counts = ensure_training_cache_freshness(
            db, force=force, on_refreshed=signups.invalidate_all)
    except Exception as e:
        _raise_http(e)

    if counts is None:
        return {"status": "skipped", "reason": "training cache fresh"}
    return {"status": "success", "counts": counts}


@app.get("/training/status")
def training_cache_status(db: Session = Depends(get_db)):
    return training_status(db)


@app.get("/metrics/cache")
def cache_metrics(signups: SignupQualificationCache = Depends(get_signup_cache)):
    return get_cache_metrics(signups.cache)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _value(group) -> Optional[str]:
    return group.value if group is not None else None


def _raise_http(e: Exception):
    """Map engine errors onto HTTP status codes."""
    if isinstance(e, UnknownScopeError):
        raise HTTPException(status_code=404, detail=str(e)) from e
    if isinstance(e, StaffingConfigError):
        raise HTTPException(status_code=400, detail=str(e)) from e
    if isinstance(e, TrainingDataError):
        logger.error("[api] training data unavailable: %s", e)
        raise HTTPException(status_code=503, detail=str(e)) from e
    if isinstance(e, ConfigError):
        logger.error("[api] configuration error: %s", e)
        raise HTTPException(status_code=500, detail=str(e)) from e
    logger.exception("[api] unexpected error")
    raise HTTPException(status_code=500, detail=str(e)) from e


# ── Health check ──────────────────────────────────────────────────────────────

@app.get("/")
def root():
    return {
        "service": "Controller Qualification API",
        "version": "1.0.0",
        "endpoints": ["/endorsements/group", "/endorsements/multi-airport",
                      "/staffing/check", "/occurrences/{id}/signups"],
    }
