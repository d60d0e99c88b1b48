"""
Symbol extraction for embedded RXML.

Tags are matched into an element tree: container tags open a scope that the
matching closing tag ends, everything else is a leaf. The structure is kept
alongside the mismatches found while building it so diagnostics can reuse
the same walk.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from src.pike_lsp.config import DetectorConfig
from src.pike_lsp.document import LineIndex
from src.pike_lsp.models import ORIGIN_EMBEDDED, SymbolNode
from src.pike_lsp.rxml.detector import TAG_PATTERN

SYMBOL_KIND_TAG = "tag"

_NAME_ATTRIBUTE = re.compile(r"\b(?:variable|name|scope|source)\s*=\s*\\?[\"']([^\"'\\]*)")


@dataclass
class TagSpan:
    """A single tag occurrence in content offsets."""
    name: str
    start: int
    end: int
    closing: bool = False
    self_closing: bool = False
    attributes: str = ""


@dataclass
class Element:
    tag: TagSpan
    end: int
    children: List["Element"] = field(default_factory=list)
    closed: bool = True


@dataclass
class TagStructure:
    elements: List[Element]
    tags: List[TagSpan]
    unclosed: List[TagSpan]
    unexpected: List[TagSpan]


def scan_tags(content: str) -> List[TagSpan]:
    return [
        TagSpan(
            name=match.group(2).lower(),
            start=match.start(),
            end=match.end(),
            closing=bool(match.group(1)),
            self_closing=bool(match.group(4)),
            attributes=match.group(3),
        )
        for match in TAG_PATTERN.finditer(content)
    ]


def _opens_scope(tag: TagSpan, later_closers: set, config: DetectorConfig) -> bool:
    if tag.closing or tag.self_closing:
        return False
    if tag.name in config.container_tags:
        return True
    # Unknown tags only nest when something later closes them
    return tag.name not in config.known_tags and tag.name in later_closers


def parse_structure(content: str, config: Optional[DetectorConfig] = None) -> TagStructure:
    """Match tags in content into a tree of elements."""
    config = config or DetectorConfig()
    tags = scan_tags(content)

    closers_after = []
    seen = set()
    for tag in reversed(tags):
        closers_after.append(set(seen))
        if tag.closing:
            seen.add(tag.name)
    closers_after.reverse()

    roots: List[Element] = []
    stack: List[Element] = []
    unclosed: List[TagSpan] = []
    unexpected: List[TagSpan] = []

    for tag, later_closers in zip(tags, closers_after):
        siblings = stack[-1].children if stack else roots

        if tag.closing:
            open_names = [element.tag.name for element in stack]
            if tag.name not in open_names:
                unexpected.append(tag)
                continue
            while stack:
                element = stack.pop()
                if element.tag.name == tag.name:
                    element.end = tag.end
                    break
                element.end = tag.start
                element.closed = False
                unclosed.append(element.tag)
            continue

        element = Element(tag=tag, end=tag.end)
        siblings.append(element)
        if _opens_scope(tag, later_closers, config):
            stack.append(element)

    while stack:
        element = stack.pop()
        element.end = len(content)
        element.closed = False
        unclosed.append(element.tag)

    unclosed.sort(key=lambda tag: tag.start)
    return TagStructure(elements=roots, tags=tags, unclosed=unclosed, unexpected=unexpected)


def _detail(tag: TagSpan) -> Optional[str]:
    match = _NAME_ATTRIBUTE.search(tag.attributes)
    return match.group(1) if match else None


def _to_node(element: Element, index: LineIndex) -> SymbolNode:
    return SymbolNode(
        name=f"<{element.tag.name}>",
        kind=SYMBOL_KIND_TAG,
        range=index.range_at(element.tag.start, element.end),
        children=[_to_node(child, index) for child in element.children],
        detail=_detail(element.tag),
        origin=ORIGIN_EMBEDDED,
    )


def extract_symbols(content: str, config: Optional[DetectorConfig] = None) -> List[SymbolNode]:
    """Build the RXML symbol tree of content, in content coordinates."""
    structure = parse_structure(content, config)
    index = LineIndex(content)
    return [_to_node(element, index) for element in structure.elements]
