"""
Structured logging module for bridge traffic.

This module provides a StructuredLogger class that records request/response
exchanges with the Pike analyzer to a single YAML file.
"""

import logging
import re
import threading
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)


class StructuredLogger:
    """
    A logger that records structured data to a YAML file.

    The StructuredLogger maintains a single YAML file with multiple entries,
    each identified by a unique key made from a base key and a counter.
    """

    def __init__(self, log_path: str, file_name: str = "bridge-traffic.yaml"):
        """
        Initialize a structured logger with the specified log path.

        Args:
            log_path: Directory path where the log file will be stored
            file_name: Name of the YAML file inside log_path
        """
        self.log_dir = Path(log_path)
        self.log_file = self.log_dir / file_name
        self.counter = 0
        self.lock = threading.Lock()

        self.log_dir.mkdir(parents=True, exist_ok=True)

        if not self.log_file.exists():
            with open(self.log_file, 'w', encoding='utf-8') as f:
                f.write("# Pike bridge traffic\n")
            logger.info(f"Created new traffic log at {self.log_file}")
        else:
            self._count_existing_entries()
            logger.info(f"Using existing traffic log at {self.log_file} with {self.counter} entries")

    def _count_existing_entries(self) -> None:
        """Continue numbering after the highest existing entry."""
        with open(self.log_file, 'r', encoding='utf-8') as f:
            content = f.read()
        matches = re.findall(r'^\w+_(\d+):', content, re.MULTILINE)
        if matches:
            self.counter = max(int(m) for m in matches) + 1

    def record(self, key: str, data: Any) -> str:
        """
        Record structured data with the given key.

        Args:
            key: Base key for the log entry (will be appended with counter)
            data: Structured data to log

        Returns:
            The complete key used for the entry
        """
        with self.lock:
            entry_key = f"{key}_{self.counter}"
            self.counter += 1
            with open(self.log_file, 'a', encoding='utf-8') as f:
                yaml.safe_dump(
                    {entry_key: data},
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    allow_unicode=True,
                )
            logger.debug(f"Recorded entry with key {entry_key}")
            return entry_key

    def load(self) -> Dict[str, Any]:
        """Read all recorded entries back."""
        with self.lock:
            with open(self.log_file, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f) or {}
