#!/usr/bin/env python3
"""
Data models shared by the bridge, the position resolver and the RXML engine.

All positions surfaced by these models are zero-based. Only ``Token.line``
keeps the analyzer's one-based convention.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True, order=True)
class Position:
    """Position in a document expressed as zero-based line and character offset."""
    line: int
    character: int

    def __post_init__(self):
        if self.line < 0 or self.character < 0:
            raise ValueError(f"Position must be non-negative, got {self.line}:{self.character}")

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "character": self.character}


@dataclass(frozen=True)
class Range:
    """Range in a document expressed as start and end positions."""
    start: Position
    end: Position

    def contains(self, other: "Range") -> bool:
        return self.start <= other.start and other.end <= self.end

    def overlaps(self, other: "Range") -> bool:
        return self.start < other.end and other.start < self.end

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}


TOKEN_IDENTIFIER = "identifier"
TOKEN_KEYWORD = "keyword"
TOKEN_OTHER = "other"


@dataclass(frozen=True)
class Token:
    """One lexical unit from the host tokenizer; line is one-based."""
    text: str
    line: int
    kind: str = TOKEN_OTHER

    def __post_init__(self):
        if self.line < 1:
            raise ValueError(f"Token line must be >= 1, got {self.line}")

    @property
    def is_identifier(self) -> bool:
        return self.kind == TOKEN_IDENTIFIER


@dataclass(frozen=True)
class LocationRef:
    """A resolved definition or reference target."""
    file_path: str
    line: int


@dataclass(frozen=True)
class Occurrence:
    """One match of a symbol name."""
    text: str
    start: Position
    end: Position

    @property
    def range(self) -> Range:
        return Range(self.start, self.end)


@dataclass(frozen=True)
class TextEdit:
    range: Range
    new_text: str


@dataclass(frozen=True)
class Marker:
    """An RXML marker found inside a literal; offset is content-local."""
    type: str
    name: str
    offset: int


@dataclass(frozen=True)
class EmbeddedRegion:
    """
    A candidate RXML fragment inside a Pike string literal.

    ``start``/``end`` delimit the literal's content in document offsets;
    ``full_start``/``full_end`` include the quote delimiters.
    """
    start: int
    end: int
    content: str
    confidence: float
    markers: Tuple[Marker, ...] = ()
    full_start: int = -1
    full_end: int = -1

    def __post_init__(self):
        if not self.start < self.end:
            raise ValueError(f"Region must satisfy start < end, got {self.start}..{self.end}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be within [0, 1], got {self.confidence}")
        if self.full_start < 0:
            object.__setattr__(self, "full_start", self.start)
        if self.full_end < 0:
            object.__setattr__(self, "full_end", self.end)

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class DetectionResult:
    regions: Tuple[EmbeddedRegion, ...]
    literals_scanned: int = 0


ORIGIN_HOST = "host"
ORIGIN_EMBEDDED = "embedded"


@dataclass
class SymbolNode:
    """One entry in a symbol tree; a parent exclusively owns its children."""
    name: str
    kind: str
    range: Range
    children: List["SymbolNode"] = field(default_factory=list)
    detail: Optional[str] = None
    origin: str = ORIGIN_HOST

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "name": self.name,
            "kind": self.kind,
            "range": self.range.to_dict(),
            "children": [child.to_dict() for child in self.children],
        }
        if self.detail is not None:
            result["detail"] = self.detail
        return result


SEVERITY_ERROR = 1
SEVERITY_WARNING = 2
SEVERITY_INFORMATION = 3
SEVERITY_HINT = 4


@dataclass(frozen=True)
class Diagnostic:
    range: Range
    message: str
    severity: int = SEVERITY_ERROR
    source: str = "pike"
