"""
Match records: the unit the engine hands to a display layer.

A MatchRecord wraps the raw row returned by a source with the fields the
engine computed for it (display name, tier, effective priority, source,
label and match score). Records are serialized to plain dicts for caching.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from .schema import present_details
from .sources import Tier

ENVELOPE_FIELDS = ("display_name", "tier", "priority", "source_id", "label", "match_score")


@dataclass
class MatchRecord:
    display_name: str
    tier: Tier
    priority: int
    source_id: str
    label: str
    match_score: float
    fields: Dict[str, Any] = field(default_factory=dict)

    def detail_fields(self) -> Dict[str, Any]:
        return present_details(self.fields)

    def to_dict(self) -> Dict[str, Any]:
        """Raw row merged with the envelope; JSON-serializable."""
        return {
            **self.fields,
            "display_name": self.display_name,
            "tier": self.tier.value,
            "priority": self.priority,
            "source_id": self.source_id,
            "label": self.label,
            "match_score": self.match_score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatchRecord":
        raw = {k: v for k, v in data.items() if k not in ENVELOPE_FIELDS}
        return cls(
            display_name=data["display_name"],
            tier=Tier(data["tier"]),
            priority=data["priority"],
            source_id=data["source_id"],
            label=data["label"],
            match_score=data["match_score"],
            fields=raw,
        )


def has_cross_reference(records: Iterable[MatchRecord]) -> bool:
    """True when one entity may appear under more than one classification."""
    records = list(records)
    return len(records) > 1 and any(
        r.tier in (Tier.GOOD_STANDING, Tier.TARGET_MARKET) for r in records
    )


def serialize(records: Iterable[MatchRecord]) -> List[Dict[str, Any]]:
    return [r.to_dict() for r in records]


def deserialize(data: Iterable[Dict[str, Any]]) -> List[MatchRecord]:
    return [MatchRecord.from_dict(d) for d in data]
