"""
Training record refresh — pulls solos, endorsements and familiarizations from
the training provider and replaces the local store in one transaction.

Flow:
  ensure_training_cache_freshness() → stale (or forced)? → refresh_training_cache()
    fetch all three feeds → validate → delete + insert → stamp metadata
    → on_refreshed() (derived caches must be dropped)

Any fetch/validation/DB failure rolls back and raises TrainingDataError;
the previous records stay in place.
"""
import json
import logging
import urllib.error
import urllib.request
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quals.config import TRAINING_API_TIMEOUT, TRAINING_CACHE_MAX_AGE_HOURS, require_env
from quals.errors import TrainingDataError
from quals.models import (
    TrainingCacheMetadata, TrainingEndorsement, TrainingFamiliarization, TrainingSolo,
)
from quals.training.records import as_utc
from quals.training.schemas import EndorsementResponse, FamiliarizationItem, SoloResponse

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Any]


# ── Fetcher ───────────────────────────────────────────────────────────────────

def http_fetcher(token: str, timeout: int = TRAINING_API_TIMEOUT) -> Fetcher:
    """GET a provider URL with token auth and decode the JSON body."""
    def fetch(url: str) -> Any:
        req = urllib.request.Request(url, headers={
            "Authorization": f"Token {token}",
            "User-Agent": "quals-training-refresh/1.0",
        })
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return json.loads(resp.read().decode())
    return fetch


def _provider_urls() -> dict:
    return {
        "solos": require_env("TRAINING_API_SOLOS_URL"),
        "endorsements": require_env("TRAINING_API_ENDORSEMENTS_URL"),
        "familiarizations": require_env("TRAINING_API_FAMILIARIZATIONS_URL"),
    }


def fetch_training_data(fetch: Optional[Fetcher] = None, urls: Optional[dict] = None):
    """Returns validated (solos, endorsements, familiarizations)."""
    urls = urls or _provider_urls()
    fetch = fetch or http_fetcher(require_env("TRAINING_API_TOKEN"))
    try:
        solos = SoloResponse.model_validate(fetch(urls["solos"])).data
        endorsements = EndorsementResponse.model_validate(fetch(urls["endorsements"])).data
        fams = [FamiliarizationItem.model_validate(f) for f in fetch(urls["familiarizations"])]
    except (urllib.error.URLError, OSError, TypeError, ValueError, ValidationError) as e:
        logger.error("[training] provider fetch failed: %s", e)
        raise TrainingDataError(f"training provider unavailable: {e}") from e
    return solos, endorsements, fams


# ── Refresh ───────────────────────────────────────────────────────────────────

def refresh_training_cache(
    db: Session,
    fetch: Optional[Fetcher] = None,
    urls: Optional[dict] = None,
    now: Optional[datetime] = None,
    on_refreshed: Optional[Callable[[], None]] = None,
) -> dict:
    """Replace every cached training row. Returns row counts."""
    solos, endorsements, fams = fetch_training_data(fetch, urls)
    stamp = _naive_utc(now or datetime.now(timezone.utc))

    try:
        db.query(TrainingSolo).delete()
        db.query(TrainingEndorsement).delete()
        db.query(TrainingFamiliarization).delete()

        db.add_all([
            TrainingSolo(controller_id=s.user_cid, position=s.position,
                         expiry=_naive_utc(s.expiry), fetched_at=stamp)
            for s in solos
        ])
        db.add_all([
            TrainingEndorsement(controller_id=e.user_cid, position=e.position,
                                fetched_at=stamp)
            for e in endorsements
        ])
        db.add_all([
            TrainingFamiliarization(controller_id=f.controller_id, fir=f.sector__fir,
                                    sector=f.sector__name, fetched_at=stamp)
            for f in fams
        ])

        meta = db.get(TrainingCacheMetadata, 1)
        if meta:
            meta.last_updated = stamp
            meta.force_update = False
        else:
            db.add(TrainingCacheMetadata(id=1, last_updated=stamp, force_update=False))

        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("[training] refresh rolled back: %s", e)
        raise TrainingDataError(f"training store write failed: {e}") from e

    counts = {"solos": len(solos), "endorsements": len(endorsements),
              "familiarizations": len(fams)}
    logger.info("[training] refresh stored %s", counts)

    if on_refreshed:
        on_refreshed()
    return counts


def needs_refresh(db: Session, now: Optional[datetime] = None,
                  max_age: timedelta = timedelta(hours=TRAINING_CACHE_MAX_AGE_HOURS)) -> bool:
    meta = db.get(TrainingCacheMetadata, 1)
    if meta is None or meta.force_update or meta.last_updated is None:
        return True
    now = now or datetime.now(timezone.utc)
    return as_utc(now) - as_utc(meta.last_updated) > max_age


def ensure_training_cache_freshness(db: Session, force: bool = False, **kwargs) -> Optional[dict]:
    """Refresh only when forced or stale. Returns counts, or None when skipped."""
    if force or needs_refresh(db, now=kwargs.get("now")):
        return refresh_training_cache(db, **kwargs)
    logger.debug("[training] cache fresh, refresh skipped")
    return None


def training_status(db: Session) -> dict:
    meta = db.get(TrainingCacheMetadata, 1)
    return {
        "last_updated": meta.last_updated.isoformat() if meta and meta.last_updated else None,
        "force_update": bool(meta.force_update) if meta else False,
        "solos": db.query(TrainingSolo).count(),
        "endorsements": db.query(TrainingEndorsement).count(),
        "familiarizations": db.query(TrainingFamiliarization).count(),
    }


def _naive_utc(ts: datetime) -> datetime:
    return as_utc(ts).replace(tzinfo=None)
