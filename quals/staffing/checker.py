"""
Staffing feasibility — do the current bookings cover the minimum staffing?

Requirements are {regex: required_count}. Each pattern counts the booked
callsigns it matches (case-insensitive, search semantics). A callsign may
count against several overlapping patterns: one controller on a combined
sector can satisfy more than one requirement.

  feasible  ⇔  every pattern has booked >= required
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from quals.errors import StaffingConfigError
from quals.positions.airports import S1_TWR_STATIONS
from quals.positions.groups import (
    StationGroup, extract_group, group_description, rank,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatternCoverage:
    pattern: str
    required: int
    booked: int
    sufficient: bool


@dataclass
class StaffingReport:
    per_pattern: list[PatternCoverage]
    is_feasible: bool

    @property
    def shortfalls(self) -> list[PatternCoverage]:
        return [p for p in self.per_pattern if not p.sufficient]


@dataclass(frozen=True)
class Booking:
    callsign: str
    start: datetime
    end: datetime


@dataclass(frozen=True)
class AssignmentCheck:
    allowed: bool
    reason: str


# ── Pattern coverage ──────────────────────────────────────────────────────────

def _compile(pattern: str, required: int) -> re.Pattern:
    if required < 0:
        raise StaffingConfigError(f"Negative required count for {pattern!r}")
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        raise StaffingConfigError(f"Bad staffing pattern {pattern!r}: {e}") from e


def check_staffing(requirements: dict[str, int],
                   booked_callsigns: Iterable[str]) -> StaffingReport:
    callsigns = list(booked_callsigns)
    per_pattern = []

    for pattern, required in requirements.items():
        regex = _compile(pattern, int(required))
        booked = sum(1 for c in callsigns if regex.search(c))
        per_pattern.append(PatternCoverage(
            pattern=pattern,
            required=int(required),
            booked=booked,
            sufficient=booked >= int(required),
        ))

    report = StaffingReport(
        per_pattern=per_pattern,
        is_feasible=all(p.sufficient for p in per_pattern),
    )
    for p in report.shortfalls:
        logger.info("[staffing] %s short: %d/%d", p.pattern, p.booked, p.required)
    return report


def bookings_in_window(bookings: Iterable[Booking], start: datetime,
                       end: datetime) -> list[Booking]:
    """Bookings that overlap [start, end)."""
    return [b for b in bookings if b.start < end and b.end > start]


def check_staffing_for_window(requirements: dict[str, int], bookings: Iterable[Booking],
                              start: datetime, end: datetime) -> StaffingReport:
    relevant = bookings_in_window(bookings, start, end)
    return check_staffing(requirements, [b.callsign for b in relevant])


# ── Station assignment ────────────────────────────────────────────────────────

def validate_assignment(
    user_group: Optional[StationGroup],
    station: str,
    s1_twr_stations: Iterable[str] = S1_TWR_STATIONS,
) -> AssignmentCheck:
    """
    Rank check of the assignee's computed group against the station's group.
    Exception: S1 TWR stations accept a GND-qualified controller.
    """
    station_group = extract_group(station)

    if user_group is None:
        return AssignmentCheck(False, f"not qualified for {station}")

    if rank(user_group) >= rank(station_group):
        return AssignmentCheck(True, f"{user_group.value} covers {station_group.value}")

    s1_twr = {s.upper() for s in s1_twr_stations}
    if (station_group is StationGroup.TWR and user_group is StationGroup.GND
            and station.upper() in s1_twr):
        return AssignmentCheck(True, f"S1 TWR station {station} open to GND")

    return AssignmentCheck(
        False,
        f"{station} needs {group_description(station_group)}, "
        f"controller holds {group_description(user_group)}",
    )


def format_staffing_summary(report: StaffingReport, title: str = "") -> str:
    head = f"{title}: " if title else ""
    if report.is_feasible:
        return f"{head}staffing sufficient ({len(report.per_pattern)} requirements met)"
    lines = [f"{head}staffing insufficient"]
    for p in report.shortfalls:
        lines.append(f"- {p.pattern}: {p.booked}/{p.required}")
    return "\n".join(lines)
