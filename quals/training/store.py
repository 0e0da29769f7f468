"""
Training record store — read side.

The rule engine asks for one controller's records at a time. Two backends:
  SqlTrainingStore       reads the tables filled by training/refresh.py
  InMemoryTrainingStore  dict-backed, for embedding and tests

Any backend failure surfaces as TrainingDataError; an empty result is a
valid "holds nothing" answer, a failed read is not.
"""
from __future__ import annotations

import copy
import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quals.errors import TrainingDataError
from quals.models import TrainingEndorsement, TrainingFamiliarization, TrainingSolo
from quals.training.records import SoloRecord, TrainingRecords

logger = logging.getLogger(__name__)


class TrainingRecordStore:
    def get_records(self, controller_id: int) -> TrainingRecords:
        raise NotImplementedError


class InMemoryTrainingStore(TrainingRecordStore):
    def __init__(self, records: Optional[dict[int, TrainingRecords]] = None):
        self._records: dict[int, TrainingRecords] = dict(records or {})

    def put(self, records: TrainingRecords):
        self._records[records.controller_id] = records

    def get_records(self, controller_id: int) -> TrainingRecords:
        found = self._records.get(controller_id)
        if found is None:
            return TrainingRecords(controller_id=controller_id)
        return copy.deepcopy(found)


class SqlTrainingStore(TrainingRecordStore):
    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get_records(self, controller_id: int) -> TrainingRecords:
        db = self.session_factory()
        try:
            endorsements = (
                db.query(TrainingEndorsement)
                .filter(TrainingEndorsement.controller_id == controller_id)
                .order_by(TrainingEndorsement.id)
                .all()
            )
            solos = (
                db.query(TrainingSolo)
                .filter(TrainingSolo.controller_id == controller_id)
                .order_by(TrainingSolo.id)
                .all()
            )
            fams = (
                db.query(TrainingFamiliarization)
                .filter(TrainingFamiliarization.controller_id == controller_id)
                .order_by(TrainingFamiliarization.id)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error("[training] read failed for cid=%s: %s", controller_id, e)
            raise TrainingDataError(f"training records unavailable for {controller_id}") from e
        finally:
            db.close()

        by_fir: dict[str, list[str]] = {}
        for f in fams:
            sectors = by_fir.setdefault(f.fir, [])
            if f.sector not in sectors:
                sectors.append(f.sector)

        return TrainingRecords(
            controller_id=controller_id,
            endorsements=[e.position for e in endorsements],
            solos=[SoloRecord(position=s.position, expiry=s.expiry) for s in solos],
            familiarizations=by_fir,
        )
