"""
Bridge, position resolution and embedded RXML analysis for Pike sources.

Provides the analysis service consumed by protocol-facing features such as
navigation, rename, document symbols and diagnostics.
"""

from src.pike_lsp.errors import LSPError, BridgeError, PikeError
from src.pike_lsp.bridge import PikeBridge, create_pike_bridge
from src.pike_lsp.service import AnalysisService

__all__ = [
    'AnalysisService',
    'BridgeError',
    'LSPError',
    'PikeBridge',
    'PikeError',
    'create_pike_bridge',
]
