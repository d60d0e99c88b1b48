"""
Text documents and flat-offset <-> line/character conversion.
"""

import bisect
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from urllib.parse import unquote

from src.pike_lsp.models import Position, Range

_IDENTIFIER_CHAR = re.compile(r"[A-Za-z0-9_]")


class LineIndex:
    """Precomputed line-start table for one text."""

    def __init__(self, text: str):
        self._length = len(text)
        self._line_starts = [0]
        for index, char in enumerate(text):
            if char == "\n":
                self._line_starts.append(index + 1)

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def position_at(self, offset: int) -> Position:
        """Convert a flat offset to a position, clamping into the text."""
        offset = max(0, min(offset, self._length))
        line = bisect.bisect_right(self._line_starts, offset) - 1
        return Position(line, offset - self._line_starts[line])

    def offset_at(self, position: Position) -> int:
        """Convert a position to a flat offset, clamping into the text."""
        if position.line >= len(self._line_starts):
            return self._length
        line_start = self._line_starts[position.line]
        if position.line + 1 < len(self._line_starts):
            line_end = self._line_starts[position.line + 1] - 1
        else:
            line_end = self._length
        return min(line_start + position.character, line_end)

    def range_at(self, start: int, end: int) -> Range:
        return Range(self.position_at(start), self.position_at(end))


@dataclass
class TextDocument:
    """An open document as seen by the analysis service."""

    uri: str
    text: str
    version: int = 0
    language_id: str = "pike"
    _index: Optional[LineIndex] = field(default=None, init=False, repr=False, compare=False)

    def __setattr__(self, name, value):
        super().__setattr__(name, value)
        # Edits invalidate the cached line table
        if name == "text":
            super().__setattr__("_index", None)

    @property
    def index(self) -> LineIndex:
        if self._index is None:
            self._index = LineIndex(self.text)
        return self._index

    @property
    def file_path(self) -> str:
        if self.uri.startswith("file://"):
            return unquote(self.uri[len("file://"):])
        return self.uri

    def lines(self) -> List[str]:
        return self.text.split("\n")

    def offset_at(self, position: Position) -> int:
        return self.index.offset_at(position)

    def position_at(self, offset: int) -> Position:
        return self.index.position_at(offset)

    def word_at(self, position: Position) -> Optional[Tuple[str, Range]]:
        """Get the Pike identifier touching position, if any."""
        offset = self.offset_at(position)
        start = offset
        end = offset
        while start > 0 and _IDENTIFIER_CHAR.match(self.text[start - 1]):
            start -= 1
        while end < len(self.text) and _IDENTIFIER_CHAR.match(self.text[end]):
            end += 1
        if start == end:
            return None
        return self.text[start:end], self.index.range_at(start, end)
