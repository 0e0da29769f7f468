"""
Controller ratings as the network numbers them.
"""
import enum
from typing import Optional

from quals.positions.groups import StationGroup


class Rating(enum.IntEnum):
    INA = -1
    SUS = 0
    OBS = 1
    S1 = 2
    S2 = 3
    S3 = 4
    C1 = 5
    C2 = 6
    C3 = 7
    I1 = 8
    I2 = 9
    I3 = 10
    SUP = 11
    ADM = 12


def rating_from_string(name: str) -> int:
    """'S2' → 3. Unknown names count as SUS."""
    try:
        return Rating[name.strip().upper()].value
    except KeyError:
        return Rating.SUS.value


def rating_name(value: int) -> str:
    """3 → 'S2'. Unknown values read as SUS."""
    try:
        return Rating(value).name
    except ValueError:
        return Rating.SUS.name


def group_from_rating(rating: int) -> Optional[StationGroup]:
    """
    Ceiling implied by the rating alone:
      S1 → GND, S2 → TWR, S3 → APP, C1 and above → CTR, anything else → None
    """
    if rating == Rating.S1:
        return StationGroup.GND
    if rating == Rating.S2:
        return StationGroup.TWR
    if rating == Rating.S3:
        return StationGroup.APP
    if Rating.C1 <= rating <= Rating.ADM:
        return StationGroup.CTR
    return None
