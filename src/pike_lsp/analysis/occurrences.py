"""
Position resolver for occurrences and rename.

The analyzer's tokens carry a line but no column. Columns are recovered by
searching each line for the token's text: for every distinct token text on a
line we record the offsets of its 1st, 2nd, ... substring match, then walk
the tokens in order and hand the Nth token with that text the Nth offset.

Known limitation: the search is substring-based, not token-boundary-based.
On ``foofoo = foo;`` the only ``foo`` token takes the first substring match,
which sits inside ``foofoo``, and reports character 0 instead of 9. This is
kept on purpose and covered by a regression test.
"""

import logging
from typing import Dict, List, Optional, Sequence

from src.pike_lsp.analysis.tokens import TokenStreamProvider
from src.pike_lsp.document import TextDocument
from src.pike_lsp.errors import PikeError
from src.pike_lsp.models import Occurrence, Position, Range, Token

logger = logging.getLogger(__name__)

OffsetTable = Dict[int, Dict[str, List[int]]]


def substring_offsets(line_text: str, text: str) -> List[int]:
    """Offsets of successive matches of text, each search resuming past the previous match."""
    offsets = []
    if not text:
        return offsets
    index = line_text.find(text)
    while index != -1:
        offsets.append(index)
        index = line_text.find(text, index + len(text))
    return offsets


def build_offset_table(lines: Sequence[str], tokens: Sequence[Token]) -> OffsetTable:
    """Map zero-based line -> token text -> candidate offsets on that line."""
    table: OffsetTable = {}
    for token in tokens:
        line_index = token.line - 1
        if line_index >= len(lines):
            continue
        per_line = table.setdefault(line_index, {})
        if token.text not in per_line:
            per_line[token.text] = substring_offsets(lines[line_index], token.text)
    return table


def find_occurrences(source: str, symbol: str, tokens: Sequence[Token]) -> List[Occurrence]:
    """
    Return one occurrence per token whose text equals symbol.

    When a line has more matching tokens than substring matches the extra
    entries get character 0 instead of failing the whole request.
    """
    if not symbol:
        return []

    lines = source.split("\n")
    table = build_offset_table(lines, tokens)
    counters: Dict[tuple, int] = {}
    occurrences = []

    for token in tokens:
        if token.text != symbol:
            continue
        line_index = token.line - 1
        key = (line_index, token.text)
        slot = counters.get(key, 0)
        counters[key] = slot + 1

        offsets = table.get(line_index, {}).get(token.text, [])
        if slot < len(offsets):
            character = offsets[slot]
        else:
            logger.debug(
                f"No substring match #{slot + 1} for '{symbol}' on line {line_index}, using character 0"
            )
            character = 0

        occurrences.append(
            Occurrence(
                text=symbol,
                start=Position(line_index, character),
                end=Position(line_index, character + len(symbol)),
            )
        )
    return occurrences


def prepare_rename(tokens: Sequence[Token], line: int) -> Optional[dict]:
    """
    Find the rename target on a zero-based line.

    Returns the first non-keyword identifier on that line. The character is
    approximated as 0; a character-accurate prepare step is not attempted.
    """
    for token in tokens:
        if token.line == line + 1 and token.is_identifier:
            return {
                "range": Range(Position(line, 0), Position(line, len(token.text))),
                "placeholder": token.text,
            }
    return None


class PositionResolver:
    """Occurrence and rename positions on top of a token stream provider."""

    def __init__(self, token_stream: TokenStreamProvider):
        self._token_stream = token_stream

    def _tokens_or_none(self, source: str) -> Optional[List[Token]]:
        # A missing tokenizer and bridge failures propagate; analyzer errors degrade
        self._token_stream.require_available()
        try:
            return self._token_stream.tokenize(source)
        except PikeError as e:
            logger.warning(f"Tokenization failed, returning no positions: {e}")
            return None

    def find_occurrences(
        self,
        source: str,
        symbol: str,
        line: Optional[int] = None,
        character: Optional[int] = None,
    ) -> List[Occurrence]:
        """
        Find every token occurrence of symbol in source.

        If symbol is empty and a zero-based reference position is given, the
        identifier at that position is used as the symbol.
        """
        if not symbol and line is not None and character is not None:
            word = TextDocument(uri="", text=source).word_at(Position(line, character))
            symbol = word[0] if word else ""
        if not symbol:
            return []

        tokens = self._tokens_or_none(source)
        if tokens is None:
            return []
        occurrences = find_occurrences(source, symbol, tokens)
        logger.debug(f"Found {len(occurrences)} occurrences of '{symbol}'")
        return occurrences

    def prepare_rename(self, source: str, line: int) -> Optional[dict]:
        tokens = self._tokens_or_none(source)
        if tokens is None:
            return None
        return prepare_rename(tokens, line)
