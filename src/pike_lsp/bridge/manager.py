"""
Health monitoring around a PikeBridge.
"""

import logging
import threading
import time
from collections import deque
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from src.pike_lsp.bridge.bridge import PikeBridge
from src.pike_lsp.constants import MAX_RECENT_ERRORS
from src.pike_lsp.errors import LSPError

logger = logging.getLogger(__name__)


@dataclass
class HealthStatus:
    uptime: float
    connected: bool
    pid: Optional[int]
    version: Optional[str]
    recent_errors: List[str] = field(default_factory=list)
    spawn_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class BridgeManager:
    """
    Wraps a PikeBridge with uptime, version and recent-error tracking.

    Stderr lines mentioning "error" are kept, newest last, up to
    MAX_RECENT_ERRORS entries.
    """

    def __init__(self, bridge: PikeBridge):
        self.bridge = bridge
        self._started = time.monotonic()
        self._errors = deque(maxlen=MAX_RECENT_ERRORS)
        self._errors_lock = threading.Lock()
        self._version: Optional[str] = None
        bridge.on_stderr(self._record_stderr)

    def _record_stderr(self, line: str) -> None:
        if "error" in line.lower():
            with self._errors_lock:
                self._errors.append(line)

    @property
    def recent_errors(self) -> List[str]:
        with self._errors_lock:
            return list(self._errors)

    def start(self) -> None:
        self._started = time.monotonic()
        self.bridge.start()
        self._version = self.get_version()

    def stop(self) -> None:
        self.bridge.stop()

    def get_version(self) -> Optional[str]:
        """Ask the analyzer for its version; failures are logged, not raised."""
        try:
            version = self.bridge.get_version()
        except LSPError as e:
            logger.warning(f"Could not determine Pike version: {e}")
            return None
        if version:
            logger.info(f"Pike analyzer version: {version}")
        return version

    def health_status(self) -> HealthStatus:
        return HealthStatus(
            uptime=time.monotonic() - self._started,
            connected=self.bridge.is_running(),
            pid=self.bridge.pid,
            version=self._version,
            recent_errors=self.recent_errors,
            spawn_count=self.bridge.spawn_count,
        )
