"""
Caveats attached to a computed group.

Restrictions are documentation only: they never widen the group. The engine
works with these tagged values; display strings are rendered at the edge.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Union


def format_expiry(expiry: datetime) -> str:
    """2025-03-12 → '3/12/2025'"""
    return f"{expiry.month}/{expiry.day}/{expiry.year}"


@dataclass(frozen=True)
class SoloOverride:
    """Group was raised by a time-limited solo."""
    expiry: datetime
    sector: Optional[str] = None

    def render(self) -> str:
        if self.sector:
            return f"solo: {self.sector} bis {format_expiry(self.expiry)}"
        return f"solo: bis {format_expiry(self.expiry)}"


@dataclass(frozen=True)
class FamRestricted:
    """CTR only for the familiarised sectors."""
    sectors: tuple

    def render(self) -> str:
        return f"{', '.join(self.sectors)} only"


@dataclass(frozen=True)
class NoAppEndorsement:
    """CTR qualified at a Tier-1 field without an APP endorsement there."""

    def render(self) -> str:
        return "no APP"


RestrictionReason = Union[SoloOverride, FamRestricted, NoAppEndorsement]


def render_all(reasons: Iterable[RestrictionReason]) -> list[str]:
    return [r.render() for r in reasons]


# ── Trainee helpers ───────────────────────────────────────────────────────────

def is_trainee(reasons: Iterable[RestrictionReason]) -> bool:
    """A controller working on a solo counts as a trainee."""
    return any(isinstance(r, SoloOverride) for r in reasons)


def solo_expiry_of(reasons: Iterable[RestrictionReason]) -> Optional[datetime]:
    for r in reasons:
        if isinstance(r, SoloOverride):
            return r.expiry
    return None
