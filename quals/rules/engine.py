"""
Qualification rule engine.

Turns (rating, endorsements, solos, familiarizations) into the highest
station group a controller may work at one airport, plus caveats.

Two regimes, picked by airport tier:

  Non-Tier-1   rating implies a base group → endorsement may lift it
               → a higher solo lifts it further (+ solo caveat)
               → C1+ : FIR familiarization gate decides APP/CTR (runs last)

  Tier-1       no rating default: best of (endorsement, solo)
               → nothing held → not authorized
               → C1+ : same familiarization gate, plus "no APP" when the
                 controller lacks an APP endorsement at this airport

For C1+ the gate replaces both the group and any solo caveat before it.
Unrecognised position strings ("EDDM_ATIS") never grant a group.

Familiarization gate (C1+):
  0 sectors    → APP
  1–2 sectors  → CTR, restricted to those sectors
  3+ sectors   → CTR
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from quals.positions.airports import AirportDirectory
from quals.positions.groups import (
    StationGroup, extract_group, filter_for_airport, highest_of,
    parse_position, rank,
)
from quals.positions.ratings import Rating, group_from_rating
from quals.rules.restrictions import (
    FamRestricted, NoAppEndorsement, RestrictionReason, SoloOverride, render_all,
)
from quals.training.records import SoloRecord, TrainingRecords

logger = logging.getLogger(__name__)

FULL_FAMILIARIZATION = 3


@dataclass
class QualificationData:
    """What the decision was based on. Audit/debug only."""
    endorsement: list[str] = field(default_factory=list)
    solos: list[str] = field(default_factory=list)
    fams: list[str] = field(default_factory=list)


@dataclass
class ControllerGroup:
    group: Optional[StationGroup]
    reasons: list[RestrictionReason] = field(default_factory=list)
    data: QualificationData = field(default_factory=QualificationData)

    @property
    def restrictions(self) -> list[str]:
        return render_all(self.reasons)

    @property
    def can_control(self) -> bool:
        return self.group is not None


# ── Tier-1 ────────────────────────────────────────────────────────────────────

def calculate_group_tier1(
    rating: int,
    endorsements: list[str],
    solos: list[SoloRecord],
    fams: list[str],
    airport: str,
) -> ControllerGroup:
    """
    endorsements/solos must already be filtered to this airport (and its FIR
    CTR positions); fams are the sectors held in the event FIR.
    """
    data = _data(endorsements, solos, fams)

    top_endorsement = highest_of(endorsements)
    top_solo = _highest_solo(solos)
    if top_endorsement is None and top_solo is None:
        return ControllerGroup(group=None, data=data)

    group = extract_group(top_endorsement) if top_endorsement else None
    reasons: list[RestrictionReason] = []

    if top_solo and rank(extract_group(top_solo.position)) > rank(group):
        group = extract_group(top_solo.position)
        reasons.append(_solo_reason(top_solo))

    if rating >= Rating.C1:
        # the gate decides the group; an earlier solo lift no longer applies
        group, reasons = familiarization_gate(fams)
        if group is StationGroup.CTR and not _has_app_endorsement(endorsements, airport):
            reasons.append(NoAppEndorsement())

    return ControllerGroup(group=group, reasons=reasons, data=data)


# ── Non-Tier-1 ────────────────────────────────────────────────────────────────

def calculate_group_non_tier1(
    rating: int,
    endorsements: list[str],
    solos: list[SoloRecord],
    fams: list[str],
) -> ControllerGroup:
    data = _data(endorsements, solos, fams)

    group = group_from_rating(rating)
    if group is None:
        return ControllerGroup(group=None, data=data)

    top_endorsement = highest_of(endorsements)
    if top_endorsement and rank(extract_group(top_endorsement)) > rank(group):
        group = extract_group(top_endorsement)

    reasons: list[RestrictionReason] = []
    top_solo = _highest_solo(solos)
    if top_solo and rank(extract_group(top_solo.position)) > rank(group):
        group = extract_group(top_solo.position)
        reasons.append(_solo_reason(top_solo))

    if rating >= Rating.C1:
        group, reasons = familiarization_gate(fams)

    return ControllerGroup(group=group, reasons=reasons, data=data)


# ── Entry point ───────────────────────────────────────────────────────────────

def calculate_group(
    rating: int,
    records: TrainingRecords,
    airport: str,
    fir: Optional[str] = None,
    directory: Optional[AirportDirectory] = None,
) -> ControllerGroup:
    """Filter one controller's records to the airport and run the right regime."""
    directory = directory or AirportDirectory()
    airport = airport.strip().upper()
    fir = fir.strip().upper() if fir else None

    endorsements = filter_for_airport(records.endorsements, airport, fir)
    relevant = set(filter_for_airport([s.position for s in records.solos], airport, fir))
    solos = [s for s in records.solos if s.position in relevant]
    fams = familiarizations_for(records, fir, directory)

    if directory.is_tier1(airport):
        result = calculate_group_tier1(rating, endorsements, solos, fams, airport)
    else:
        result = calculate_group_non_tier1(rating, endorsements, solos, fams)

    logger.debug("[rules] cid=%s %s rating=%s → %s %s", records.controller_id,
                 airport, rating, result.group, result.restrictions)
    return result


# ── Helpers ───────────────────────────────────────────────────────────────────

def familiarization_gate(fams: list[str]) -> tuple[StationGroup, list[RestrictionReason]]:
    if not fams:
        return StationGroup.APP, []
    if len(fams) < FULL_FAMILIARIZATION:
        return StationGroup.CTR, [FamRestricted(sectors=tuple(fams))]
    return StationGroup.CTR, []


def familiarizations_for(records: TrainingRecords, fir: Optional[str],
                         directory: AirportDirectory) -> list[str]:
    """
    Sectors held in the FIR. When the FIR has a configured sector list only
    those count, in configured order.
    """
    if not fir:
        return []
    held = records.sectors_in(fir)
    configured = directory.sectors_for(fir)
    if configured:
        return [s for s in configured if s in held]
    return held


def filter_valid_solos(solos: Iterable[SoloRecord], now: datetime) -> list[SoloRecord]:
    return [s for s in solos if s.is_valid(now)]


def _highest_solo(solos: list[SoloRecord]) -> Optional[SoloRecord]:
    best = highest_of([s.position for s in solos])
    if best is None:
        return None
    return next(s for s in solos if s.position == best)


def _solo_reason(solo: SoloRecord) -> SoloOverride:
    position = parse_position(solo.position)
    sector = position.sector if position.is_sector_ctr else None
    return SoloOverride(expiry=solo.expiry, sector=sector)


def _has_app_endorsement(endorsements: list[str], airport: str) -> bool:
    return any(
        e.startswith(f"{airport}_") and parse_position(e).group is StationGroup.APP
        for e in endorsements
    )


def _data(endorsements, solos, fams) -> QualificationData:
    return QualificationData(
        endorsement=list(endorsements),
        solos=[s.position for s in solos],
        fams=list(fams),
    )
