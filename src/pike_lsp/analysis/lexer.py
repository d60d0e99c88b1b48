"""
In-process Pike lexer.

Follows Pike's own literal rules so string boundaries agree with the
analyzer: ``"..."`` with backslash escapes on a single line, ``#"..."``
multi-line strings with escapes, ``#{ ... #}`` verbatim blocks, and
character literals. Comments are recognised so that quotes inside them never
open a string. Preprocessor directives lex as one token, but their bodies
are still searched for string literals (``#define TPL "<if>...</if>"``).

``LocalAnalysisProvider`` exposes the lexer through the analysis-provider
interface so the core runs without a Pike binary.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from src.pike_lsp.analysis.keywords import DECLARATION_KEYWORDS, PIKE_KEYWORDS
from src.pike_lsp.analysis.provider import CAP_RESOLVE, CAP_TOKENIZE, AnalysisProvider

logger = logging.getLogger(__name__)

KIND_IDENTIFIER = "identifier"
KIND_NUMBER = "number"
KIND_STRING = "string"
KIND_CHAR = "char"
KIND_COMMENT = "comment"
KIND_DIRECTIVE = "directive"
KIND_OPERATOR = "operator"

_WHITESPACE = re.compile(r"\s+")
_LINE_COMMENT = re.compile(r"//[^\n]*")
_BLOCK_COMMENT = re.compile(r"/\*.*?(?:\*/|\Z)", re.S)
_DIRECTIVE = re.compile(r"#[ \t]*[A-Za-z_]\w*(?:\\\n|[^\n])*")
_DIRECTIVE_NAME = re.compile(r"#[ \t]*[A-Za-z_]\w*")
_STRING = re.compile(r'"(?:\\.|[^"\\\n])*(?:"|(?=\n)|\Z)', re.S)
_MULTILINE_STRING = re.compile(r'#"(?:\\.|[^"\\])*(?:"|\Z)', re.S)
_VERBATIM_STRING = re.compile(r"#\{.*?(?:#\}|\Z)", re.S)
_CHAR = re.compile(r"'(?:\\.|[^'\\\n])*'")
_NUMBER = re.compile(r"0[xX][0-9a-fA-F]+|0[bB][01]+|\d+(?:\.\d+)?(?:[eE][+-]?\d+)?")
_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_OPERATOR = re.compile(
    r"\.\.\.|->|::|<<=|>>=|\+\+|--|==|!=|<=|>=|&&|\|\||<<|>>"
    r"|\+=|-=|\*=|/=|%=|&=|\|=|\^=|\.\.|\(\[|\]\)|\(\{|\}\)|.",
    re.S,
)


@dataclass(frozen=True)
class LexToken:
    """A token with its kind, flat offset and one-based line."""
    text: str
    kind: str
    offset: int
    line: int

    @property
    def end(self) -> int:
        return self.offset + len(self.text)


@dataclass(frozen=True)
class StringLiteral:
    """A string literal span; content excludes the delimiters."""
    start: int
    end: int
    content_start: int
    content_end: int
    terminated: bool


def _at_line_start(source: str, pos: int) -> bool:
    line_start = source.rfind("\n", 0, pos) + 1
    return source[line_start:pos].strip() == ""


def _match_at(source: str, pos: int):
    char = source[pos]
    if char == "/":
        match = _LINE_COMMENT.match(source, pos) or _BLOCK_COMMENT.match(source, pos)
        if match:
            return match, KIND_COMMENT
    elif char == "#":
        match = _MULTILINE_STRING.match(source, pos) or _VERBATIM_STRING.match(source, pos)
        if match:
            return match, KIND_STRING
        if _at_line_start(source, pos):
            match = _DIRECTIVE.match(source, pos)
            if match:
                return match, KIND_DIRECTIVE
    elif char == '"':
        return _STRING.match(source, pos), KIND_STRING
    elif char == "'":
        match = _CHAR.match(source, pos)
        if match:
            return match, KIND_CHAR
    elif char.isdigit():
        return _NUMBER.match(source, pos), KIND_NUMBER
    elif char.isalpha() or char == "_":
        match = _IDENTIFIER.match(source, pos)
        if match:
            return match, KIND_IDENTIFIER
    return _OPERATOR.match(source, pos), KIND_OPERATOR


def lex(source: str, include_comments: bool = False) -> Iterator[LexToken]:
    """Split Pike source into tokens, skipping whitespace."""
    pos = 0
    line = 1
    length = len(source)
    while pos < length:
        whitespace = _WHITESPACE.match(source, pos)
        if whitespace:
            line += whitespace.group().count("\n")
            pos = whitespace.end()
            continue

        match, kind = _match_at(source, pos)
        text = match.group()
        if kind != KIND_COMMENT or include_comments:
            yield LexToken(text=text, kind=kind, offset=pos, line=line)
        line += text.count("\n")
        pos = match.end()


def _string_tokens(source: str, base: int = 0) -> Iterator[LexToken]:
    for token in lex(source):
        if token.kind == KIND_STRING:
            yield LexToken(text=token.text, kind=token.kind, offset=base + token.offset, line=token.line)
        elif token.kind == KIND_DIRECTIVE:
            body_start = _DIRECTIVE_NAME.match(token.text).end()
            yield from _string_tokens(token.text[body_start:], base + token.offset + body_start)


def string_literals(source: str) -> Iterator[StringLiteral]:
    """Enumerate string literals using Pike's boundary rules, including those in directives."""
    for token in _string_tokens(source):
        text = token.text
        if text.startswith("#{"):
            opening, closing = 2, "#}"
        elif text.startswith('#"'):
            opening, closing = 2, '"'
        else:
            opening, closing = 1, '"'
        terminated = len(text) >= opening + len(closing) and text.endswith(closing)
        content_end = token.end - len(closing) if terminated else token.end
        yield StringLiteral(
            start=token.offset,
            end=token.end,
            content_start=token.offset + opening,
            content_end=content_end,
            terminated=terminated,
        )


class LocalAnalysisProvider(AnalysisProvider):
    """Analysis provider backed by the in-process lexer."""

    @property
    def capabilities(self):
        return frozenset({CAP_TOKENIZE, CAP_RESOLVE})

    def tokenize(self, source: str) -> List[Dict[str, Any]]:
        return [
            {"text": token.text, "line": token.line}
            for token in lex(source)
        ]

    def resolve_location(
        self, source: str, filename: str, symbol: str, line: int
    ) -> Optional[str]:
        """
        Find the declaration of symbol by token shape.

        A declaration is the symbol preceded by a type or declaration
        keyword, or by another identifier (a user type), and followed by
        something other than a member access.
        """
        tokens = list(lex(source))
        for index, token in enumerate(tokens):
            if token.text != symbol or token.kind != KIND_IDENTIFIER or index == 0:
                continue
            previous = tokens[index - 1]
            if previous.kind != KIND_IDENTIFIER:
                continue
            if previous.text in PIKE_KEYWORDS and previous.text not in DECLARATION_KEYWORDS:
                continue
            following = tokens[index + 1].text if index + 1 < len(tokens) else ""
            if following in (".", "->"):
                continue
            logger.debug(f"Resolved {symbol} to declaration on line {token.line}")
            return f"{filename}:{token.line}"
        return None
