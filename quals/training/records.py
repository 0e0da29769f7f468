"""
In-memory shape of one controller's training records.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def as_utc(ts: datetime) -> datetime:
    """Naive timestamps (e.g. read back from SQLite) are UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


@dataclass(frozen=True)
class SoloRecord:
    position: str          # e.g. "EDDM_APP", "EDMM_ALB_CTR"
    expiry: datetime

    def is_valid(self, now: datetime) -> bool:
        return as_utc(self.expiry) > as_utc(now)


@dataclass
class TrainingRecords:
    controller_id: int
    endorsements: list[str] = field(default_factory=list)
    solos: list[SoloRecord] = field(default_factory=list)
    familiarizations: dict[str, list[str]] = field(default_factory=dict)  # fir → sectors

    def sectors_in(self, fir: str) -> list[str]:
        seen = []
        for sector in self.familiarizations.get(fir, []):
            if sector not in seen:
                seen.append(sector)
        return seen
