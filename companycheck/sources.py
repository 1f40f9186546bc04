"""
Static registry of the monitored compliance lists.

Each record source (a table on the record-source service) is bound to a
classification tier, a display label, a static priority and the column
holding the company name. Adding or removing a monitored list means
changing SOURCES, not engine logic.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence

from .scoring import EXACT_SCORE


class Tier(Enum):
    """Classification bucket of a matched company."""

    DELISTED = "DELISTED"
    TARGET_MARKET = "TML"
    GOOD_STANDING = "GOOD"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]

    @property
    def label(self) -> str:
        return _TIER_LABEL[self]

    @property
    def theme(self) -> str:
        return _TIER_THEME[self]


_TIER_RANK = {Tier.DELISTED: 0, Tier.TARGET_MARKET: 1, Tier.GOOD_STANDING: 2}
_TIER_LABEL = {
    Tier.DELISTED: "Delisted / Suspended",
    Tier.TARGET_MARKET: "Target Market Approved",
    Tier.GOOD_STANDING: "Good Standing",
}
_TIER_THEME = {Tier.DELISTED: "red", Tier.TARGET_MARKET: "green", Tier.GOOD_STANDING: "blue"}


def tier_order(tier: Tier) -> int:
    """Total order on tiers: DELISTED < TARGET_MARKET < GOOD_STANDING."""
    return tier.rank


@dataclass(frozen=True)
class SourceDescriptor:
    source_id: str
    column: str
    tier: Tier
    priority: int
    label: str


SOURCES: tuple[SourceDescriptor, ...] = (
    # Tier 1: delisted
    SourceDescriptor(
        source_id="delisted_company_1",
        column="company_name",
        tier=Tier.DELISTED,
        priority=1,
        label="Deletion / Suspension: Delisted Employer from Jan08",
    ),
    SourceDescriptor(
        source_id="delisted_company_2",
        column="company_name",
        tier=Tier.DELISTED,
        priority=2,
        label="Deletion / Suspension: Delisted Employer July02 to Dec07",
    ),
    # Tier 2: target market
    SourceDescriptor(
        source_id="eib_approved",
        column="company_name",
        tier=Tier.TARGET_MARKET,
        priority=3,
        label="TML: EIB – Approved Employer",
    ),
    SourceDescriptor(
        source_id="enbd_approved",
        column="company_name",
        tier=Tier.TARGET_MARKET,
        priority=4,
        label="TML: ENBD – Approved Employer",
    ),
    SourceDescriptor(
        source_id="payroll_approved",
        column="company_name",
        tier=Tier.TARGET_MARKET,
        priority=5,
        label="TML: Payroll Employer",
    ),
    SourceDescriptor(
        source_id="credit_card_approved",
        column="company_name",
        tier=Tier.TARGET_MARKET,
        priority=6,
        label="TML: Credit Card Approved Employer",
    ),
    # Tier 3: good list
    SourceDescriptor(
        source_id="good_listed",
        column="employer_name",
        tier=Tier.GOOD_STANDING,
        priority=7,
        label="Good List Company (NTML): Verified Corporate Status",
    ),
)


def highest_precedence(sources: Iterable[SourceDescriptor] = SOURCES) -> int:
    return min(s.priority for s in sources)


def lowest_precedence(sources: Iterable[SourceDescriptor] = SOURCES) -> int:
    return max(s.priority for s in sources)


def effective_priority(
    source: SourceDescriptor,
    match_score: float,
    sources: Sequence[SourceDescriptor] = SOURCES,
    floor: Optional[int] = None,
) -> int:
    """
    Priority a matched row is ranked with.

    An exact DELISTED hit is promoted to the highest precedence so it is never
    outranked. A fuzzy DELISTED hit is demoted to `floor`, the lowest
    precedence present in the result set (the registry's lowest when not
    given), where it ties with the weakest TML/GOOD rows and is ordered by
    score. Other tiers keep their static priority.
    """
    if source.tier is not Tier.DELISTED:
        return source.priority
    if match_score == EXACT_SCORE:
        return highest_precedence(sources)
    return lowest_precedence(sources) if floor is None else floor


def demotion_floor(priorities: Iterable[int], sources: Iterable[SourceDescriptor] = SOURCES) -> int:
    """Largest static priority among the non-DELISTED rows of a result set."""
    present = list(priorities)
    return max(present) if present else lowest_precedence(sources)


def get_source(source_id: str, sources: Iterable[SourceDescriptor] = SOURCES) -> SourceDescriptor:
    for s in sources:
        if s.source_id == source_id:
            return s
    raise KeyError(f"Unknown source: {source_id}")
