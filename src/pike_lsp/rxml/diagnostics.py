"""
Diagnostics for embedded RXML, reported in content coordinates.
"""

from typing import List, Optional

from src.pike_lsp.config import DetectorConfig
from src.pike_lsp.document import LineIndex
from src.pike_lsp.models import (
    SEVERITY_ERROR,
    SEVERITY_INFORMATION,
    SEVERITY_WARNING,
    Diagnostic,
)
from src.pike_lsp.rxml.symbols import parse_structure

DIAGNOSTIC_SOURCE = "rxml"


def validate(content: str, config: Optional[DetectorConfig] = None) -> List[Diagnostic]:
    """
    Check tag usage in one RXML fragment.

    Reports unknown tags (information), deprecated tags (warning), container
    tags that are never closed (error) and closing tags with nothing open to
    close (error). Results are ordered by position.
    """
    config = config or DetectorConfig()
    structure = parse_structure(content, config)
    index = LineIndex(content)
    found = []

    for tag in structure.tags:
        if tag.closing:
            continue
        if tag.name not in config.known_tags:
            found.append((tag.start, Diagnostic(
                range=index.range_at(tag.start, tag.end),
                message=f"Unknown RXML tag <{tag.name}>",
                severity=SEVERITY_INFORMATION,
                source=DIAGNOSTIC_SOURCE,
            )))
        if tag.name in config.deprecated_tags:
            found.append((tag.start, Diagnostic(
                range=index.range_at(tag.start, tag.end),
                message=f"<{tag.name}> is deprecated: {config.deprecated_tags[tag.name]}",
                severity=SEVERITY_WARNING,
                source=DIAGNOSTIC_SOURCE,
            )))

    for tag in structure.unclosed:
        found.append((tag.start, Diagnostic(
            range=index.range_at(tag.start, tag.end),
            message=f"Unclosed RXML container <{tag.name}>",
            severity=SEVERITY_ERROR,
            source=DIAGNOSTIC_SOURCE,
        )))

    for tag in structure.unexpected:
        found.append((tag.start, Diagnostic(
            range=index.range_at(tag.start, tag.end),
            message=f"Unexpected closing tag </{tag.name}>",
            severity=SEVERITY_ERROR,
            source=DIAGNOSTIC_SOURCE,
        )))

    found.sort(key=lambda item: item[0])
    return [diagnostic for _, diagnostic in found]
