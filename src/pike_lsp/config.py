"""
Configuration for the bridge and the RXML detector.

Values come from the environment; ``src/__init__`` has already loaded a
``.env`` file, if one exists, before this module is used.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional

from src.pike_lsp.constants import (
    ANALYZER_PATH_DEFAULT,
    BRIDGE_TIMEOUT_DEFAULT,
    PIKE_PATH_DEFAULT,
    RXML_CONFIDENCE_FLOOR_DEFAULT,
)
from src.pike_lsp.rxml.catalog import CONTAINER_TAGS, DEPRECATED_TAGS, KNOWN_SCOPES, KNOWN_TAGS


def _float_from_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


@dataclass
class BridgeConfig:
    """
    Settings for spawning and talking to the Pike analyzer.

    Attributes:
        pike_path: Pike executable
        analyzer_path: Analyzer script passed to the executable
        timeout: Default per-request timeout in seconds
        traffic_log_dir: Directory for YAML request/response records, or None
        env: Extra environment variables for the subprocess
    """

    pike_path: str = PIKE_PATH_DEFAULT
    analyzer_path: str = ANALYZER_PATH_DEFAULT
    timeout: float = BRIDGE_TIMEOUT_DEFAULT
    traffic_log_dir: Optional[str] = None
    env: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.timeout <= 0:
            raise ValueError(f"Bridge timeout must be positive, got {self.timeout}")

    @property
    def command(self) -> List[str]:
        return [self.pike_path, self.analyzer_path]

    @classmethod
    def from_env(cls) -> "BridgeConfig":
        return cls(
            pike_path=os.environ.get("PIKE_PATH", PIKE_PATH_DEFAULT),
            analyzer_path=os.environ.get("PIKE_ANALYZER_PATH", ANALYZER_PATH_DEFAULT),
            timeout=_float_from_env("PIKE_BRIDGE_TIMEOUT", BRIDGE_TIMEOUT_DEFAULT),
            traffic_log_dir=os.environ.get("PIKE_BRIDGE_TRAFFIC_LOG") or None,
        )


@dataclass
class DetectorConfig:
    """Lookup tables and thresholds for embedded RXML detection."""

    confidence_floor: float = RXML_CONFIDENCE_FLOOR_DEFAULT
    known_tags: FrozenSet[str] = KNOWN_TAGS
    known_scopes: FrozenSet[str] = KNOWN_SCOPES
    container_tags: FrozenSet[str] = CONTAINER_TAGS
    deprecated_tags: Dict[str, str] = field(default_factory=lambda: dict(DEPRECATED_TAGS))

    def __post_init__(self):
        if not 0.0 <= self.confidence_floor <= 1.0:
            raise ValueError(
                f"Confidence floor must be within [0, 1], got {self.confidence_floor}"
            )

    @classmethod
    def from_env(cls) -> "DetectorConfig":
        return cls(
            confidence_floor=_float_from_env(
                "RXML_CONFIDENCE_FLOOR", RXML_CONFIDENCE_FLOOR_DEFAULT
            ),
        )
