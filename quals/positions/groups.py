"""
Station groups and position strings.

A position string looks like "EDDM_TWR", "EDDM_GNDDEL" or "EDMM_ALB_CTR":
  <scope>_[<sector>_]<group>
scope is an airport ICAO code, or a FIR code for area control.

Ranking:  GND < TWR < APP < CTR   (None ranks below everything)
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Optional


class StationGroup(str, enum.Enum):
    GND = "GND"
    TWR = "TWR"
    APP = "APP"
    CTR = "CTR"


GROUP_ORDER: list[StationGroup] = [
    StationGroup.GND, StationGroup.TWR, StationGroup.APP, StationGroup.CTR,
]

GROUP_DESCRIPTIONS = {
    StationGroup.GND: "Ground",
    StationGroup.TWR: "Tower",
    StationGroup.APP: "Approach",
    StationGroup.CTR: "Center",
}


@dataclass(frozen=True)
class Position:
    raw: str
    scope: str
    group: Optional[StationGroup]      # None = not a recognised station
    sector: Optional[str] = None       # "ALB" for EDMM_ALB_CTR

    @property
    def is_sector_ctr(self) -> bool:
        return self.group is StationGroup.CTR and self.sector is not None


# ── Parsing ───────────────────────────────────────────────────────────────────

def _match_group(position: str) -> Optional[StationGroup]:
    upper = position.upper()
    for group in GROUP_ORDER:
        if f"_{group.value}" in upper:
            return group
    return None


def parse_position(position: str) -> Position:
    """Parse once at the boundary. Unknown suffixes keep group=None."""
    parts = position.split("_")
    group = _match_group(position)
    sector = parts[1] if group is StationGroup.CTR and len(parts) == 3 else None
    return Position(raw=position, scope=parts[0], group=group, sector=sector)


def extract_group(position: str) -> StationGroup:
    """
    First match of _GND, _TWR, _APP, _CTR (in that order).
    Falls back to GND for anything unrecognised; well-formed input never
    depends on the fallback.
    """
    return _match_group(position) or StationGroup.GND


# ── Ranking ───────────────────────────────────────────────────────────────────

def rank(group: Optional[StationGroup]) -> int:
    """GND=0 … CTR=3, None=-1."""
    if group is None:
        return -1
    return GROUP_ORDER.index(StationGroup(group))


def highest_of(positions: Iterable[str]) -> Optional[str]:
    """
    Highest ranked position; ties keep the first one seen. Unrecognised
    positions are skipped, so they never count as GND.
    """
    best = None
    best_rank = -1
    for position in positions:
        group = parse_position(position).group
        if group is None:
            continue
        r = rank(group)
        if r > best_rank:
            best, best_rank = position, r
    return best


def highest_group(groups: Iterable[Optional[StationGroup]]) -> Optional[StationGroup]:
    best = None
    for group in groups:
        if group is not None and rank(group) > rank(best):
            best = group
    return best


def minimum_group(stations: Iterable[str]) -> Optional[StationGroup]:
    """Lowest recognised group among station callsigns."""
    lowest = None
    for station in stations:
        group = parse_position(station).group
        if group is None:
            continue
        if lowest is None or rank(group) < rank(lowest):
            lowest = group
    return lowest


def can_staff(user_group: Optional[StationGroup],
              station_group: Optional[StationGroup]) -> bool:
    if user_group is None or station_group is None:
        return False
    return rank(user_group) >= rank(station_group)


def group_description(group: StationGroup) -> str:
    return GROUP_DESCRIPTIONS.get(StationGroup(group), str(group))


# ── Filtering ─────────────────────────────────────────────────────────────────

def filter_for_airport(positions: Iterable[str], airport: str,
                       fir: Optional[str] = None) -> list[str]:
    """
    Positions relevant to an airport: "<airport>_*", plus "<fir>_*_CTR"
    when a FIR is given (area control is FIR-scoped).
    """
    positions = list(positions)
    at_airport = [p for p in positions if p.startswith(f"{airport}_")]
    if not fir:
        return at_airport
    area = [p for p in positions if p.startswith(f"{fir}_") and p.endswith("_CTR")]
    return at_airport + area
