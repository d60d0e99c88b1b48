"""
Embedded RXML detection.

Every Pike string literal is scanned for RXML markers: tags, attributes
inside tags, and ``&scope.variable;`` entities. Literals whose weighted
marker density clears the confidence floor become embedded regions.
"""

import logging
import re
from typing import List, Optional, Tuple

from src.pike_lsp.analysis.lexer import string_literals
from src.pike_lsp.config import DetectorConfig
from src.pike_lsp.constants import (
    RXML_DENSITY_SCALE,
    RXML_WEIGHT_ATTRIBUTE,
    RXML_WEIGHT_ENTITY,
    RXML_WEIGHT_KNOWN_TAG,
    RXML_WEIGHT_UNKNOWN_TAG,
)
from src.pike_lsp.models import DetectionResult, EmbeddedRegion, Marker

logger = logging.getLogger(__name__)

MARKER_TAG = "tag"
MARKER_ATTRIBUTE = "attribute"
MARKER_ENTITY = "entity"

TAG_PATTERN = re.compile(r"<(/?)([A-Za-z][\w:.-]*)([^<>]*?)(/?)>")
ATTRIBUTE_PATTERN = re.compile(r"([A-Za-z_][\w:.-]*)\s*=\s*\\?[\"']")
ENTITY_PATTERN = re.compile(r"&([A-Za-z_][\w-]*)\.([\w.-]+);")


def find_markers(content: str, config: DetectorConfig) -> List[Marker]:
    """Collect RXML markers in content, ordered by offset."""
    markers = []
    for match in TAG_PATTERN.finditer(content):
        markers.append(Marker(MARKER_TAG, match.group(2).lower(), match.start()))
        if match.group(1):
            continue
        body_start = match.start(3)
        for attribute in ATTRIBUTE_PATTERN.finditer(match.group(3)):
            markers.append(
                Marker(MARKER_ATTRIBUTE, attribute.group(1), body_start + attribute.start())
            )

    for match in ENTITY_PATTERN.finditer(content):
        # &amp; and friends have no scope and never match; unknown scopes are ignored
        if match.group(1) in config.known_scopes:
            markers.append(
                Marker(MARKER_ENTITY, f"{match.group(1)}.{match.group(2)}", match.start())
            )

    markers.sort(key=lambda marker: marker.offset)
    return markers


def marker_weight(marker: Marker, config: DetectorConfig) -> float:
    if marker.type == MARKER_TAG:
        if marker.name in config.known_tags:
            return RXML_WEIGHT_KNOWN_TAG
        return RXML_WEIGHT_UNKNOWN_TAG
    if marker.type == MARKER_ENTITY:
        return RXML_WEIGHT_ENTITY
    return RXML_WEIGHT_ATTRIBUTE


def score(content: str, markers: List[Marker], config: DetectorConfig) -> float:
    """Weighted marker density, clamped to [0, 1]."""
    if not content or not markers:
        return 0.0
    weighted = sum(marker_weight(marker, config) for marker in markers)
    return min(1.0, weighted * RXML_DENSITY_SCALE / len(content))


def detect(source: str, config: Optional[DetectorConfig] = None) -> DetectionResult:
    """
    Find string literals in source that likely contain RXML.

    Args:
        source: Pike source text
        config: Lookup tables and confidence floor; defaults to DetectorConfig()

    Returns:
        DetectionResult with regions in document order
    """
    config = config or DetectorConfig()
    regions: List[EmbeddedRegion] = []
    scanned = 0

    for literal in string_literals(source):
        scanned += 1
        if literal.content_end <= literal.content_start:
            continue

        content = source[literal.content_start:literal.content_end]
        markers = find_markers(content, config)
        if not markers:
            continue

        confidence = score(content, markers, config)
        if confidence < config.confidence_floor:
            logger.debug(
                f"Literal at {literal.start} scored {confidence:.2f}, below floor {config.confidence_floor}"
            )
            continue

        regions.append(
            EmbeddedRegion(
                start=literal.content_start,
                end=literal.content_end,
                content=content,
                confidence=confidence,
                markers=tuple(markers),
                full_start=literal.start,
                full_end=literal.end,
            )
        )

    logger.debug(f"Scanned {scanned} string literals, found {len(regions)} RXML regions")
    return DetectionResult(regions=tuple(regions), literals_scanned=scanned)


def region_at(regions: Tuple[EmbeddedRegion, ...], offset: int) -> Optional[EmbeddedRegion]:
    """The region whose content contains the document offset, if any."""
    for region in regions:
        if region.start <= offset < region.end:
            return region
    return None
