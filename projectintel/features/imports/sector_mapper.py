"""
projectintel/features/imports/sector_mapper.py

Derives a project's sector from the free-text industry column.

Buckets are checked in precedence order and the first keyword hit wins;
anything unmatched (or blank) is Industrial.
"""

from typing import Optional, Tuple


INDUSTRIAL = "Industrial"
RESIDENTIAL_COMMERCIAL = "Residential & Commercial"
GOVERNMENT = "Government"

DEFAULT_SECTOR = INDUSTRIAL

SECTOR_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (GOVERNMENT, (
        "government", "govt", "public", "municipal", "railway",
        "airport", "hospital", "school", "university", "defense",
    )),
    (RESIDENTIAL_COMMERCIAL, (
        "residential", "commercial", "housing", "apartment", "office",
        "mall", "retail", "hotel", "restaurant", "shopping",
    )),
    (INDUSTRIAL, (
        "industrial", "manufacturing", "power", "energy", "chemical",
        "petrochemical", "steel", "cement", "mining", "infrastructure",
    )),
)


def map_industry_to_sector(industry: Optional[str]) -> str:
    if not industry:
        return DEFAULT_SECTOR

    lowered = industry.lower()
    for sector, keywords in SECTOR_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return sector

    return DEFAULT_SECTOR
