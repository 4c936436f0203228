"""Confidence and keyword filtering for raw detection regions.

Object regions are reduced to their top concept, kept only when that concept
is confident enough and its name contains none of the blocked keywords.
Keyword matching is a plain substring test on the lower-cased name, so short
keywords over-filter ("arm" also drops "alarm").  Face regions are passed
through untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .models import DetectedObject, MarginBox, Region

logger = logging.getLogger(__name__)

DEFAULT_MIN_CONFIDENCE = 0.75
CONFIDENCE_DECIMALS = 4

# Human body parts and people; the face detector already covers these.
BLOCKED_KEYWORDS: tuple[str, ...] = (
    "human", "person", "people", "man", "woman", "boy", "girl",
    "face", "head", "hair", "eye", "nose", "mouth", "ear", "lip",
    "forehead", "cheek", "chin", "neck", "shoulder", "arm", "hand",
    "finger", "leg", "foot", "body", "skin", "portrait", "selfie",
    "facial", "profile",
)


@dataclass
class FilterStats:
    kept: int = 0
    below_confidence: int = 0
    blocked: int = 0
    without_concepts: int = 0
    clamped: int = 0

    @property
    def filtered(self) -> int:
        return self.below_confidence + self.blocked


@dataclass
class FilterResult:
    objects: list[DetectedObject] = field(default_factory=list)
    stats: FilterStats = field(default_factory=FilterStats)


def is_blocked(name: str, blocked_keywords: Iterable[str] = BLOCKED_KEYWORDS) -> bool:
    lowered = name.lower()
    return any(keyword in lowered for keyword in blocked_keywords)


def filter_regions(
    regions: Sequence[Region],
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    blocked_keywords: Iterable[str] = BLOCKED_KEYWORDS,
) -> FilterResult:
    """Filter object regions and report how many were dropped and why."""
    keywords = tuple(k.lower() for k in blocked_keywords)
    result = FilterResult()

    for region in regions:
        concept = region.top_concept
        if concept is None:
            result.stats.without_concepts += 1
            continue

        if concept.value < min_confidence:
            result.stats.below_confidence += 1
            continue

        if is_blocked(concept.name, keywords):
            result.stats.blocked += 1
            continue

        confidence = concept.value
        if confidence > 1.0:
            # Confidences are fractions in [0, 1].
            result.stats.clamped += 1
            confidence = 1.0

        result.objects.append(
            DetectedObject(
                name=concept.name,
                confidence=round(confidence, CONFIDENCE_DECIMALS),
                box=region.box,
            )
        )
        logger.debug("Kept: %s (%d%%)", concept.name, round(concept.value * 100))

    result.stats.kept = len(result.objects)
    logger.info(
        "Found %d objects with %d%%+ confidence (filtered %d items)",
        result.stats.kept,
        round(min_confidence * 100),
        result.stats.filtered,
    )
    return result


def filter_objects(
    regions: Sequence[Region],
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    blocked_keywords: Iterable[str] = BLOCKED_KEYWORDS,
) -> list[DetectedObject]:
    return filter_regions(regions, min_confidence, blocked_keywords).objects


def map_faces(regions: Sequence[Region]) -> list[MarginBox]:
    """Face regions are trusted as-is; only their geometry is kept.

    The provider reports corner coordinates; faces travel in margin form, so
    the far edges are turned into margins here.
    """
    faces = [region.box.to_margins() for region in regions]
    logger.info("Found %d faces", len(faces))
    return faces
