"""
Position parsing, ranking and airport filtering. Pure functions, no DB.

  python quals/positions/test_positions.py
"""
import sys
sys.path.insert(0, ".")

from quals.positions.airports import AirportDirectory, is_tier1
from quals.positions.groups import (
    StationGroup, can_staff, extract_group, filter_for_airport, group_description,
    highest_group, highest_of, minimum_group, parse_position, rank,
)
from quals.positions.ratings import Rating, group_from_rating, rating_from_string, rating_name


# ── Extraction ────────────────────────────────────────────────────────────────

def test_extract_group_suffixes():
    assert extract_group("EDDM_GNDDEL") is StationGroup.GND
    assert extract_group("EDDM_N_TWR") is StationGroup.TWR
    assert extract_group("EDDM_APP") is StationGroup.APP
    assert extract_group("EDMM_ALB_CTR") is StationGroup.CTR


def test_extract_group_falls_back_to_gnd():
    assert extract_group("EDDM_ATIS") is StationGroup.GND
    assert parse_position("EDDM_ATIS").group is None


def test_parse_position_sector():
    p = parse_position("EDMM_ALB_CTR")
    assert p.scope == "EDMM"
    assert p.sector == "ALB"
    assert p.is_sector_ctr

    assert parse_position("EDGG_CTR").sector is None
    assert parse_position("EDDM_N_TWR").sector is None


# ── Ranking ───────────────────────────────────────────────────────────────────

def test_rank_order():
    ranks = [rank(g) for g in (None, StationGroup.GND, StationGroup.TWR,
                               StationGroup.APP, StationGroup.CTR)]
    assert ranks == sorted(ranks)
    assert rank(None) == -1


def test_highest_of_first_seen_tie_break():
    assert highest_of([]) is None
    assert highest_of(["EDDM_TWR", "EDDM_N_TWR", "EDDM_GNDDEL"]) == "EDDM_TWR"
    assert highest_of(["EDDM_TWR", "EDDM_APP"]) == "EDDM_APP"


def test_highest_of_skips_unrecognised():
    assert highest_of(["EDDM_DEL"]) is None
    assert highest_of(["EDDM_ATIS", "EDDM_GNDDEL"]) == "EDDM_GNDDEL"


def test_highest_group_skips_none():
    assert highest_group([]) is None
    assert highest_group([None, StationGroup.TWR, None, StationGroup.GND]) is StationGroup.TWR


def test_minimum_group_and_can_staff():
    assert minimum_group(["EDDM_APP", "EDDM_TWR", "EDDM_ATIS"]) is StationGroup.TWR
    assert minimum_group([]) is None
    assert can_staff(StationGroup.APP, StationGroup.TWR)
    assert not can_staff(StationGroup.TWR, StationGroup.APP)
    assert not can_staff(None, StationGroup.GND)
    assert group_description(StationGroup.CTR) == "Center"


# ── Filtering ─────────────────────────────────────────────────────────────────

def test_filter_for_airport_keeps_airport_then_fir_ctr():
    positions = ["EDMM_ALB_CTR", "EDDM_TWR", "EDDN_TWR", "EDMM_APP", "EDDM_APP"]
    assert filter_for_airport(positions, "EDDM") == ["EDDM_TWR", "EDDM_APP"]
    assert filter_for_airport(positions, "EDDM", "EDMM") == [
        "EDDM_TWR", "EDDM_APP", "EDMM_ALB_CTR",
    ]


def test_filter_for_airport_requires_separator():
    assert filter_for_airport(["EDDMX_TWR"], "EDDM") == []


# ── Ratings + airports ────────────────────────────────────────────────────────

def test_rating_mapping_table():
    assert group_from_rating(Rating.INA) is None
    assert group_from_rating(Rating.SUS) is None
    assert group_from_rating(Rating.OBS) is None
    assert group_from_rating(Rating.S1) is StationGroup.GND
    assert group_from_rating(Rating.S2) is StationGroup.TWR
    assert group_from_rating(Rating.S3) is StationGroup.APP
    for r in range(Rating.C1, Rating.ADM + 1):
        assert group_from_rating(r) is StationGroup.CTR
    assert group_from_rating(13) is None


def test_rating_strings():
    assert rating_from_string("S2") == 3
    assert rating_from_string(" c1 ") == 5
    assert rating_from_string("XYZ") == Rating.SUS
    assert rating_name(5) == "C1"
    assert rating_name(99) == "SUS"


def test_airport_directory():
    assert is_tier1("EDDM")
    assert is_tier1("eddf")
    assert not is_tier1("EDDN")
    assert not is_tier1("ZZZZ")

    directory = AirportDirectory(tiers={"EDDN": 1})
    assert directory.is_tier1("EDDN")
    assert not directory.is_tier1("EDDM")
    assert directory.sectors_for("EDMM") == ["STA", "HOF", "ALB"]
    assert directory.sectors_for(None) == []
    assert directory.is_s1_twr("eddn_twr")


if __name__ == "__main__":
    tests = [v for k, v in list(globals().items()) if k.startswith("test_")]
    for t in tests:
        t()
        print(f"  ✅ {t.__name__}")
    print(f"\n{len(tests)} passed")
