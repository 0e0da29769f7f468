"""
Roster feasibility — can the signed-up controllers fill every staffed
station at once?

Strategy (greedy, hardest first):
  1. Capability map: which signup may work which station (validate_assignment
     against the signup's group at the station's own airport)
  2. Any station nobody can work → unstaffable
  3. Sort stations CTR → APP → TWR → GND, give each the first free capable
     controller; a station left over has a conflict (all capable ones taken)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from quals.positions.airports import S1_TWR_STATIONS
from quals.positions.groups import StationGroup, extract_group, parse_position, rank
from quals.staffing.checker import validate_assignment


@dataclass(frozen=True)
class RosterCandidate:
    """
    group          best group over the event (FIR-scoped CTR stations)
    airport_groups airport → group computed at that airport; empty means
                   the candidate is judged by `group` everywhere
    """
    controller_id: int
    group: Optional[StationGroup]
    airport_groups: dict = field(default_factory=dict)

    @classmethod
    def from_airports(cls, controller_id: int, group: Optional[StationGroup],
                      airports: Iterable) -> "RosterCandidate":
        """airports: per-airport results carrying .airport and .group"""
        return cls(controller_id=controller_id, group=group,
                   airport_groups={a.airport: a.group for a in airports})

    def group_for(self, station: str) -> Optional[StationGroup]:
        if not self.airport_groups:
            return self.group
        position = parse_position(station)
        if position.scope.upper() in self.airport_groups:
            return self.airport_groups[position.scope.upper()]
        if position.group is StationGroup.CTR:
            return self.group
        return None


@dataclass
class RosterFeasibility:
    is_feasible: bool
    required_stations: int
    total_signups: int
    assignments: dict = field(default_factory=dict)            # station → controller_id
    unstaffable_stations: list[str] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)
    reasons: list[str] = field(default_factory=list)


def check_roster_feasibility(
    stations: list[str],
    candidates: Iterable[RosterCandidate],
    s1_twr_stations: Iterable[str] = S1_TWR_STATIONS,
) -> RosterFeasibility:
    candidates = list(candidates)
    s1_twr = list(s1_twr_stations)

    if not stations:
        return RosterFeasibility(
            is_feasible=True, required_stations=0, total_signups=len(candidates),
            reasons=["No stations require staffing"],
        )

    capable: dict[str, list[int]] = {
        station: [
            c.controller_id for c in candidates
            if validate_assignment(c.group_for(station), station, s1_twr).allowed
        ]
        for station in stations
    }

    result = RosterFeasibility(
        is_feasible=False, required_stations=len(stations), total_signups=len(candidates),
    )

    for station in stations:
        if not capable[station]:
            result.unstaffable_stations.append(station)
            result.reasons.append(f"Station {station} cannot be staffed by any signed-up controller")

    taken: set[int] = set()
    for station in sorted(stations, key=lambda s: rank(extract_group(s)), reverse=True):
        free = [cid for cid in capable[station] if cid not in taken]
        if free:
            result.assignments[station] = free[0]
            taken.add(free[0])
        elif station not in result.unstaffable_stations:
            result.conflicts.append(station)
            result.reasons.append(
                f"Station {station}: qualified controllers are already assigned to other stations")

    result.is_feasible = len(result.assignments) == len(stations)
    if result.is_feasible:
        result.reasons.append("All stations can be staffed without conflicts")
    return result
