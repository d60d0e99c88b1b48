"""
Token stream provider: wraps the analyzer's tokenizer and classifies tokens.
"""

import logging
import re
from typing import Any, FrozenSet, List, Optional

from src.pike_lsp.analysis.keywords import PIKE_KEYWORDS
from src.pike_lsp.analysis.provider import CAP_TOKENIZE, AnalysisProvider
from src.pike_lsp.errors import PikeError
from src.pike_lsp.models import TOKEN_IDENTIFIER, TOKEN_KEYWORD, TOKEN_OTHER, Token

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def classify(text: str, keywords: FrozenSet[str] = PIKE_KEYWORDS) -> str:
    """Best-effort classification of a token's text."""
    if text in keywords:
        return TOKEN_KEYWORD
    if _IDENTIFIER.fullmatch(text):
        return TOKEN_IDENTIFIER
    return TOKEN_OTHER


class TokenStreamProvider:
    """Turns the analyzer's raw token payload into classified ``Token`` objects."""

    def __init__(self, provider: Optional[AnalysisProvider],
                 keywords: FrozenSet[str] = PIKE_KEYWORDS):
        self._provider = provider
        self._keywords = keywords

    @property
    def available(self) -> bool:
        return self._provider is not None and self._provider.supports(CAP_TOKENIZE)

    def require_available(self) -> None:
        if not self.available:
            raise PikeError("Pike tokenizer is not available")

    def tokenize(self, source: str) -> List[Token]:
        """
        Tokenize source with the analyzer.

        Raises:
            PikeError: If no tokenizer is available or a raw token is malformed
        """
        self.require_available()
        raw_tokens = self._provider.tokenize(source)
        tokens = [self._convert(raw) for raw in raw_tokens]
        logger.debug(f"Tokenized {len(source)} characters into {len(tokens)} tokens")
        return tokens

    def _convert(self, raw: Any) -> Token:
        if isinstance(raw, Token):
            return raw
        if not isinstance(raw, dict):
            raise PikeError(f"Tokenizer returned a {type(raw).__name__}, expected an object")
        text = raw.get("text")
        line = raw.get("line")
        if not isinstance(text, str) or not isinstance(line, int) or line < 1:
            raise PikeError(f"Tokenizer returned an invalid token: {raw!r}")
        return Token(text=text, line=line, kind=classify(text, self._keywords))
