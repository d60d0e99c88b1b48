"""
Host symbol tree built from analyzer parse results.

The analyzer reports a declaration line per symbol, either as ``line``, as a
``position`` mapping, or as a compound ``"file:line"`` location string. The
name is located on that line to produce an exact range.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from src.pike_lsp.analysis.locations import parse_location
from src.pike_lsp.errors import BridgeError
from src.pike_lsp.models import ORIGIN_HOST, Position, Range, SymbolNode

logger = logging.getLogger(__name__)


def _declaration_line(symbol: Dict[str, Any]) -> int:
    """Zero-based declaration line of an analyzer symbol."""
    if isinstance(symbol.get("line"), int):
        return max(0, symbol["line"] - 1)
    position = symbol.get("position")
    if isinstance(position, dict) and isinstance(position.get("line"), int):
        return max(0, position["line"] - 1)
    if isinstance(position, str):
        return parse_location(position).line
    return 0


def _end_line(symbol: Dict[str, Any]) -> Optional[int]:
    for key in ("end_line", "endLine"):
        if isinstance(symbol.get(key), int):
            return max(0, symbol[key] - 1)
    return None


def _detail(symbol: Dict[str, Any]) -> Optional[str]:
    symbol_type = symbol.get("type")
    if isinstance(symbol_type, dict):
        return symbol_type.get("name")
    if isinstance(symbol_type, str):
        return symbol_type
    return None


def _line_end(lines: Sequence[str], line: int) -> Position:
    if line >= len(lines):
        line = len(lines) - 1
    return Position(line, len(lines[line]))


def _convert(symbol: Dict[str, Any], lines: Sequence[str]) -> SymbolNode:
    if not isinstance(symbol, dict) or not isinstance(symbol.get("name"), str):
        raise BridgeError(f"Malformed symbol from analyzer: {symbol!r}")

    name = symbol["name"]
    line = min(_declaration_line(symbol), len(lines) - 1)
    column = lines[line].find(name)
    start = Position(line, max(column, 0))
    end = Position(line, start.character + len(name))

    children = [_convert(child, lines) for child in symbol.get("children") or []]

    end_line = _end_line(symbol)
    if end_line is not None and end_line >= line:
        end = max(end, _line_end(lines, end_line))
    for child in children:
        end = max(end, child.range.end)

    children.sort(key=lambda node: node.range.start)
    return SymbolNode(
        name=name,
        kind=str(symbol.get("kind", "variable")),
        range=Range(start, end),
        children=children,
        detail=_detail(symbol),
        origin=ORIGIN_HOST,
    )


def build_host_tree(symbols: Sequence[Dict[str, Any]], text: str) -> List[SymbolNode]:
    """
    Convert analyzer symbols into a sorted host tree.

    Raises:
        BridgeError: If a symbol entry is malformed
    """
    lines = text.split("\n")
    nodes = [_convert(symbol, lines) for symbol in symbols]
    nodes.sort(key=lambda node: node.range.start)
    logger.debug(f"Built host symbol tree with {len(nodes)} top-level symbols")
    return nodes
