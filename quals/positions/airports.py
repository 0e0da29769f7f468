"""
Static airport and FIR tables.

Tier-1 airports require an explicit endorsement; elsewhere the rating alone
implies a ceiling. FIR sector lists define what "fully familiarised" means.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


# icao → tier (1 = Tier-1, 0 = unrestricted)
AIRPORT_TIERS = {
    "EDDM": 1,
    "EDDF": 1,
    "EDDP": 0,
    "EDDN": 0,
    "EDDC": 0,
    "EDJA": 0,
}

# fir → area-control sectors that can be familiarised
FIR_SECTORS = {
    "EDMM": ["STA", "HOF", "ALB"],
    "EDGG": ["EDGG_N", "EDGG_S", "EDGG_E"],
}

# TWR stations a GND-qualified (S1) controller may staff
S1_TWR_STATIONS = frozenset({
    "EDDN_TWR",
    "EDDC_TWR",
    "EDJA_TWR",
})


@dataclass
class AirportDirectory:
    """Lookup over the static tables; tests and deployments can pass their own."""
    tiers: dict = field(default_factory=lambda: dict(AIRPORT_TIERS))
    fir_sectors: dict = field(default_factory=lambda: {k: list(v) for k, v in FIR_SECTORS.items()})
    s1_twr_stations: frozenset = S1_TWR_STATIONS

    def is_tier1(self, airport: str) -> bool:
        return self.tiers.get(airport.upper(), 0) == 1

    def sectors_for(self, fir: Optional[str]) -> list[str]:
        if not fir:
            return []
        return list(self.fir_sectors.get(fir.upper(), []))

    def is_s1_twr(self, station: str) -> bool:
        return station.upper() in self.s1_twr_stations


_default = AirportDirectory()


def is_tier1(airport: str) -> bool:
    return _default.is_tier1(airport)
