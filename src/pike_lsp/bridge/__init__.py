"""
Process bridge to the out-of-process Pike analyzer.
"""

from src.pike_lsp.bridge.bridge import PendingCall, PikeBridge, create_pike_bridge
from src.pike_lsp.bridge.manager import BridgeManager, HealthStatus
from src.pike_lsp.bridge.process import PikeProcess

__all__ = [
    "BridgeManager",
    "HealthStatus",
    "PendingCall",
    "PikeBridge",
    "PikeProcess",
    "create_pike_bridge",
]
