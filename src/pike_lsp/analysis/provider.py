"""
Analysis provider interface.

The Pike analyzer is treated as a capability rather than a library: anything
that can tokenize, resolve locations, parse symbols or run diagnostics can
stand in for it, in-process or out-of-process.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, FrozenSet, List, Optional, TYPE_CHECKING

from src.pike_lsp.errors import BridgeError, PikeError

if TYPE_CHECKING:
    from src.pike_lsp.bridge.bridge import PikeBridge

logger = logging.getLogger(__name__)

CAP_TOKENIZE = "tokenize"
CAP_RESOLVE = "resolve"
CAP_PARSE = "parse"
CAP_DIAGNOSTICS = "diagnostics"


class AnalysisProvider(ABC):
    """Base class for analyzers the service can delegate to."""

    @property
    @abstractmethod
    def capabilities(self) -> FrozenSet[str]:
        """Names of the operations this provider implements."""

    def supports(self, capability: str) -> bool:
        return capability in self.capabilities

    def _unsupported(self, capability: str) -> PikeError:
        return PikeError(f"Analyzer does not provide '{capability}'")

    def tokenize(self, source: str) -> List[Dict[str, Any]]:
        """Return raw tokens as ``{"text": str, "line": int}`` dicts (one-based lines)."""
        raise self._unsupported(CAP_TOKENIZE)

    def resolve_location(
        self, source: str, filename: str, symbol: str, line: int
    ) -> Optional[str]:
        """Return a compound ``path[:line]`` location for symbol, or None."""
        raise self._unsupported(CAP_RESOLVE)

    def parse_symbols(self, source: str, filename: str) -> List[Dict[str, Any]]:
        """Return the host symbol payload for source."""
        raise self._unsupported(CAP_PARSE)

    def run_diagnostics(self, source: str, filename: str) -> List[Dict[str, Any]]:
        """Return analyzer diagnostics for source."""
        raise self._unsupported(CAP_DIAGNOSTICS)


def _require_list(result: Any, key: str, method: str) -> List[Any]:
    if not isinstance(result, dict) or not isinstance(result.get(key), list):
        raise BridgeError(f"Malformed {method} result: expected a '{key}' list")
    return result[key]


class BridgeAnalysisProvider(AnalysisProvider):
    """Analysis provider that forwards every call to the Pike subprocess."""

    def __init__(self, bridge: "PikeBridge"):
        self._bridge = bridge

    @property
    def capabilities(self) -> FrozenSet[str]:
        return frozenset({CAP_TOKENIZE, CAP_RESOLVE, CAP_PARSE, CAP_DIAGNOSTICS})

    def tokenize(self, source: str) -> List[Dict[str, Any]]:
        result = self._bridge.send("tokenize", {"code": source})
        return _require_list(result, "tokens", "tokenize")

    def resolve_location(
        self, source: str, filename: str, symbol: str, line: int
    ) -> Optional[str]:
        result = self._bridge.send(
            "resolve",
            {"code": source, "filename": filename, "symbol": symbol, "line": line},
        )
        if not isinstance(result, dict):
            raise BridgeError("Malformed resolve result: expected an object")
        location = result.get("location")
        if location is not None and not isinstance(location, str):
            raise BridgeError(f"Malformed resolve result: location is {type(location).__name__}")
        return location

    def parse_symbols(self, source: str, filename: str) -> List[Dict[str, Any]]:
        result = self._bridge.send("parse", {"code": source, "filename": filename})
        return _require_list(result, "symbols", "parse")

    def run_diagnostics(self, source: str, filename: str) -> List[Dict[str, Any]]:
        result = self._bridge.send("diagnostics", {"code": source, "filename": filename})
        return _require_list(result, "diagnostics", "diagnostics")
