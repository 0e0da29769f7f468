from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime, JSON, ForeignKey, Text
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


# ── Training record store (refreshed from the training provider) ─────────────

class TrainingEndorsement(Base):
    __tablename__ = "training_endorsements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    controller_id = Column(Integer, nullable=False, index=True)
    position = Column(String, nullable=False)          # e.g. "EDDM_TWR"
    fetched_at = Column(DateTime, server_default=func.now())


class TrainingSolo(Base):
    __tablename__ = "training_solos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    controller_id = Column(Integer, nullable=False, index=True)
    position = Column(String, nullable=False)          # e.g. "EDMM_ALB_CTR"
    expiry = Column(DateTime, nullable=False)
    fetched_at = Column(DateTime, server_default=func.now())


class TrainingFamiliarization(Base):
    __tablename__ = "training_familiarizations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    controller_id = Column(Integer, nullable=False, index=True)
    fir = Column(String, nullable=False)               # e.g. "EDMM"
    sector = Column(String, nullable=False)            # e.g. "ALB"
    fetched_at = Column(DateTime, server_default=func.now())


class TrainingCacheMetadata(Base):
    __tablename__ = "training_cache_metadata"

    id = Column(Integer, primary_key=True)             # always 1
    last_updated = Column(DateTime, nullable=True)
    force_update = Column(Boolean, default=False)


# ── Events + signups (read-only here; owned by the portal) ───────────────────

class EventOccurrence(Base):
    __tablename__ = "event_occurrences"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    airports = Column(JSON, nullable=False, default=list)         # ["EDDM", "EDMO"]
    fir = Column(String, nullable=True)
    staffed_stations = Column(JSON, nullable=False, default=list)  # ["EDDM_N_TWR", ...]

    signups = relationship("EventSignup", back_populates="occurrence",
                           order_by="EventSignup.id")


class EventSignup(Base):
    __tablename__ = "event_signups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    occurrence_id = Column(Integer, ForeignKey("event_occurrences.id"), nullable=False)
    controller_id = Column(Integer, nullable=False)
    name = Column(String, nullable=True)
    rating = Column(String, nullable=False)            # "S2", "C1", ...
    remarks = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    occurrence = relationship("EventOccurrence", back_populates="signups")
