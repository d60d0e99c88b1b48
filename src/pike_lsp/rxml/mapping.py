"""
Translation between embedded-content coordinates and document coordinates.

Content offsets are relative to the first character inside a literal's
delimiters. Translation is purely additive; the content is the raw literal
text, escapes included, so lengths agree on both sides.
"""

from dataclasses import dataclass
from typing import Optional

from src.pike_lsp.document import LineIndex
from src.pike_lsp.errors import LSPError
from src.pike_lsp.models import EmbeddedRegion, Position, Range


@dataclass(frozen=True)
class PositionMapping:
    document_start: int
    content_length: int


def mapping_for(region: EmbeddedRegion) -> PositionMapping:
    return PositionMapping(document_start=region.start, content_length=region.length)


def to_document(region: EmbeddedRegion, content_offset: int) -> int:
    """
    Map a content offset to a document offset.

    The content length itself is accepted so that range ends can be mapped.

    Raises:
        LSPError: If content_offset lies outside the region's content
    """
    mapping = mapping_for(region)
    if not 0 <= content_offset <= mapping.content_length:
        raise LSPError(
            f"Content offset {content_offset} is outside region of length {mapping.content_length}",
            layer="server",
        )
    return mapping.document_start + content_offset


def to_content(region: EmbeddedRegion, document_offset: int) -> Optional[int]:
    """Map a document offset into the region, or None if it falls outside it."""
    if region.start <= document_offset < region.end:
        return document_offset - region.start
    return None


class RegionMapper:
    """Line/character translation for one region, with both line tables precomputed."""

    def __init__(self, region: EmbeddedRegion, document_index: LineIndex):
        self.region = region
        self.document_index = document_index
        self.content_index = LineIndex(region.content)

    def position_to_document(self, position: Position) -> Position:
        offset = to_document(self.region, self.content_index.offset_at(position))
        return self.document_index.position_at(offset)

    def range_to_document(self, content_range: Range) -> Range:
        return Range(
            self.position_to_document(content_range.start),
            self.position_to_document(content_range.end),
        )

    def position_to_content(self, position: Position) -> Optional[Position]:
        offset = to_content(self.region, self.document_index.offset_at(position))
        if offset is None:
            return None
        return self.content_index.position_at(offset)

    def document_range(self) -> Range:
        """The literal including its delimiters, in document coordinates."""
        return self.document_index.range_at(self.region.full_start, self.region.full_end)
