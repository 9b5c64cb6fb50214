# poifinder/core/notability.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

BASE_SCORE = 50

WEIGHT_STRUCTURED_ENTITY = 20
WEIGHT_WIKIPEDIA = 15
WEIGHT_UNESCO = 30
WEIGHT_HERITAGE = 15
WEIGHT_HIGH_VISITORS = 10
WEIGHT_WEBSITE = 5
WEIGHT_OPENING_HOURS = 3
WEIGHT_IMAGE = 5
WEIGHT_HISTORIC = 12

HIGH_VISITOR_THRESHOLD = 1_000_000


@dataclass(frozen=True)
class NotabilityFlags:
    """Attribute flags the notability score is computed from."""
    has_structured_entity: bool = False
    has_wikipedia: bool = False
    unesco: bool = False
    heritage: bool = False
    high_visitors: bool = False
    has_website: bool = False
    has_opening_hours: bool = False
    has_image: bool = False
    historic: bool = False

    @classmethod
    def from_poi_fields(
        cls,
        *,
        external_entity_id: Optional[str] = None,
        wikipedia_title: Optional[str] = None,
        heritage_status: Optional[str] = None,
        annual_visitors: Optional[int] = None,
        website: Optional[str] = None,
        opening_hours: Optional[str] = None,
        image_url: Optional[str] = None,
        historic: bool = False,
    ) -> "NotabilityFlags":
        unesco = bool(heritage_status) and "unesco" in heritage_status.lower()
        return cls(
            has_structured_entity=bool(external_entity_id),
            has_wikipedia=bool(wikipedia_title),
            unesco=unesco,
            heritage=bool(heritage_status) and not unesco,
            high_visitors=annual_visitors is not None and annual_visitors > HIGH_VISITOR_THRESHOLD,
            has_website=bool(website),
            has_opening_hours=bool(opening_hours),
            has_image=bool(image_url),
            historic=historic,
        )


def calculate_notability_score(flags: NotabilityFlags, base: int = BASE_SCORE) -> int:
    score = base
    if flags.has_structured_entity:
        score += WEIGHT_STRUCTURED_ENTITY
    if flags.has_wikipedia:
        score += WEIGHT_WIKIPEDIA
    if flags.unesco:
        score += WEIGHT_UNESCO
    elif flags.heritage:
        score += WEIGHT_HERITAGE
    if flags.high_visitors:
        score += WEIGHT_HIGH_VISITORS
    if flags.has_website:
        score += WEIGHT_WEBSITE
    if flags.has_opening_hours:
        score += WEIGHT_OPENING_HOURS
    if flags.has_image:
        score += WEIGHT_IMAGE
    if flags.historic:
        score += WEIGHT_HISTORIC
    return max(0, min(100, int(score)))
