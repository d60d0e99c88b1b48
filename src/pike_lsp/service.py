"""
Analysis service: the entry points used by protocol-facing features.

Navigation-class operations (definition, symbol tree) let analyzer errors
propagate so the caller can report them. Diagnostics and embedded-RXML
enhancements degrade instead: a failure there is logged and the operation
returns what it could compute.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from src.pike_lsp.analysis.keywords import PIKE_KEYWORDS
from src.pike_lsp.analysis.locations import parse_location
from src.pike_lsp.analysis.occurrences import PositionResolver
from src.pike_lsp.analysis.provider import CAP_DIAGNOSTICS, AnalysisProvider, BridgeAnalysisProvider
from src.pike_lsp.analysis.tokens import TokenStreamProvider
from src.pike_lsp.config import DetectorConfig
from src.pike_lsp.document import TextDocument
from src.pike_lsp.errors import LSPError
from src.pike_lsp.models import (
    SEVERITY_ERROR,
    SEVERITY_HINT,
    SEVERITY_INFORMATION,
    SEVERITY_WARNING,
    Diagnostic,
    EmbeddedRegion,
    LocationRef,
    Occurrence,
    Position,
    Range,
    SymbolNode,
    TextEdit,
)
from src.pike_lsp.rxml.detector import detect, region_at
from src.pike_lsp.rxml.diagnostics import validate
from src.pike_lsp.rxml.mapping import RegionMapper
from src.pike_lsp.rxml.symbols import extract_symbols
from src.pike_lsp.symbols.host import build_host_tree
from src.pike_lsp.symbols.merge import merge

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

_SEVERITIES = {
    "error": SEVERITY_ERROR,
    "warning": SEVERITY_WARNING,
    "info": SEVERITY_INFORMATION,
    "information": SEVERITY_INFORMATION,
    "hint": SEVERITY_HINT,
}


class AnalysisService:
    """Combines the analyzer, the position resolver and the RXML engine per document."""

    def __init__(self, provider: AnalysisProvider, detector_config: Optional[DetectorConfig] = None):
        self.provider = provider
        self.detector_config = detector_config or DetectorConfig.from_env()
        self.tokens = TokenStreamProvider(provider)
        self.resolver = PositionResolver(self.tokens)

    @classmethod
    def for_bridge(cls, bridge, detector_config: Optional[DetectorConfig] = None) -> "AnalysisService":
        return cls(BridgeAnalysisProvider(bridge), detector_config)

    def resolve_symbol_at(self, document: TextDocument, position: Position) -> Optional[LocationRef]:
        """
        Resolve the identifier at position to its definition.

        Analyzer and bridge errors propagate.
        """
        word = document.word_at(position)
        if word is None:
            return None
        symbol = word[0]
        raw = self.provider.resolve_location(
            document.text, document.file_path, symbol, position.line + 1
        )
        if not raw:
            logger.debug(f"No definition found for '{symbol}'")
            return None
        return parse_location(raw)

    def find_occurrences(
        self,
        document: TextDocument,
        symbol_name: str,
        position: Optional[Position] = None,
    ) -> List[Occurrence]:
        line = position.line if position else None
        character = position.character if position else None
        return self.resolver.find_occurrences(document.text, symbol_name, line, character)

    def prepare_rename(self, document: TextDocument, position: Position) -> Optional[Dict[str, Any]]:
        return self.resolver.prepare_rename(document.text, position.line)

    def rename(self, document: TextDocument, position: Position, new_name: str) -> List[TextEdit]:
        """
        Build the edits renaming the identifier at position.

        Raises:
            LSPError: If new_name is not a valid, non-keyword Pike identifier
        """
        if not _IDENTIFIER.fullmatch(new_name) or new_name in PIKE_KEYWORDS:
            raise LSPError(f"'{new_name}' is not a valid Pike identifier", layer="server")
        word = document.word_at(position)
        if word is None:
            return []
        occurrences = self.find_occurrences(document, word[0])
        return [TextEdit(range=occurrence.range, new_text=new_name) for occurrence in occurrences]

    def detect_embedded_regions(self, document: TextDocument) -> List[EmbeddedRegion]:
        return list(detect(document.text, self.detector_config).regions)

    def embedded_region_at(self, document: TextDocument, position: Position) -> Optional[EmbeddedRegion]:
        """The RXML region whose content contains position, if any."""
        regions = detect(document.text, self.detector_config).regions
        return region_at(regions, document.offset_at(position))

    def get_symbol_tree(self, document: TextDocument) -> List[SymbolNode]:
        """
        Host symbols with embedded RXML templates merged in.

        Host analysis errors propagate; if the RXML enhancement fails the
        host tree is returned alone.
        """
        payload = self.provider.parse_symbols(document.text, document.file_path)
        host_tree = build_host_tree(payload, document.text)

        try:
            regions = self.detect_embedded_regions(document)
            embedded = [
                (region, extract_symbols(region.content, self.detector_config))
                for region in regions
            ]
            return merge(host_tree, embedded, document.text)
        except Exception as e:
            logger.warning(f"RXML symbol enhancement failed for {document.uri}: {e}")
            return host_tree

    def get_diagnostics(self, document: TextDocument) -> List[Diagnostic]:
        """Analyzer diagnostics plus RXML diagnostics, ordered by position."""
        diagnostics: List[Diagnostic] = []

        if self.provider.supports(CAP_DIAGNOSTICS):
            try:
                raw = self.provider.run_diagnostics(document.text, document.file_path)
                diagnostics.extend(self._convert_diagnostic(item, document) for item in raw)
            except LSPError as e:
                logger.warning(f"Pike diagnostics unavailable for {document.uri}: {e.chain}")

        try:
            diagnostics.extend(self._embedded_diagnostics(document))
        except Exception as e:
            logger.warning(f"RXML diagnostics failed for {document.uri}: {e}")

        diagnostics.sort(key=lambda diagnostic: diagnostic.range.start)
        return diagnostics

    def _embedded_diagnostics(self, document: TextDocument) -> List[Diagnostic]:
        result = []
        for region in self.detect_embedded_regions(document):
            mapper = RegionMapper(region, document.index)
            for diagnostic in validate(region.content, self.detector_config):
                result.append(Diagnostic(
                    range=mapper.range_to_document(diagnostic.range),
                    message=diagnostic.message,
                    severity=diagnostic.severity,
                    source=diagnostic.source,
                ))
        return result

    def _convert_diagnostic(self, raw: Dict[str, Any], document: TextDocument) -> Diagnostic:
        if not isinstance(raw, dict):
            raise LSPError(f"Malformed diagnostic from analyzer: {raw!r}", layer="pike")

        position = raw.get("position")
        if isinstance(raw.get("line"), int):
            line = max(0, raw["line"] - 1)
        elif isinstance(position, dict) and isinstance(position.get("line"), int):
            line = max(0, position["line"] - 1)
        elif isinstance(position, str):
            line = parse_location(position).line
        else:
            line = 0

        lines = document.lines()
        line = min(line, len(lines) - 1)
        text = lines[line]
        indent = len(text) - len(text.lstrip())

        severity = raw.get("severity", SEVERITY_ERROR)
        if isinstance(severity, str):
            severity = _SEVERITIES.get(severity.lower(), SEVERITY_ERROR)

        return Diagnostic(
            range=Range(Position(line, indent), Position(line, len(text))),
            message=str(raw.get("message", "")),
            severity=severity,
            source="pike",
        )
