"""
Pike analyzer subprocess.

Owns one child process speaking line-delimited JSON over stdin/stdout.
Output lines, stderr lines and the exit code are delivered to callbacks
from daemon reader threads.
"""

import logging
import os
import subprocess
import threading
import time
from typing import Callable, Dict, List, Optional

from src.pike_lsp.constants import GRACEFUL_SHUTDOWN_DELAY
from src.pike_lsp.errors import BridgeError

logger = logging.getLogger(__name__)

MessageCallback = Callable[[str], None]
ExitCallback = Callable[[Optional[int]], None]


class PikeProcess:
    """A running analyzer subprocess with reader threads for stdout and stderr."""

    def __init__(
        self,
        on_message: MessageCallback,
        on_stderr: MessageCallback,
        on_exit: ExitCallback,
    ):
        self._on_message = on_message
        self._on_stderr = on_stderr
        self._on_exit = on_exit
        self._process: Optional[subprocess.Popen] = None
        self._write_lock = threading.Lock()
        self._exit_reported = False

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    def is_alive(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def spawn(self, command: List[str], env: Optional[Dict[str, str]] = None) -> None:
        """
        Start the analyzer.

        Raises:
            BridgeError: If the executable cannot be started
        """
        process_env = os.environ.copy()
        process_env.update(env or {})

        logger.info(f"Starting Pike analyzer with command: {' '.join(command)}")
        try:
            self._process = subprocess.Popen(
                command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=process_env,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            raise BridgeError(f"Failed to start Pike analyzer: {e}", cause=e) from e

        logger.info(f"Pike analyzer started with PID {self._process.pid}")

        threading.Thread(
            target=self._read_stdout, daemon=True, name=f"pike-stdout-{self._process.pid}"
        ).start()
        threading.Thread(
            target=self._read_stderr, daemon=True, name=f"pike-stderr-{self._process.pid}"
        ).start()

    def send(self, line: str) -> None:
        """Write one message line to the analyzer's stdin."""
        process = self._process
        if process is None or process.poll() is not None:
            raise BridgeError("Pike analyzer is not running")
        with self._write_lock:
            try:
                process.stdin.write(line + "\n")
                process.stdin.flush()
            except (BrokenPipeError, ValueError, OSError) as e:
                raise BridgeError(f"Failed to write to Pike analyzer: {e}", cause=e) from e

    def _read_stdout(self) -> None:
        process = self._process
        try:
            for line in process.stdout:
                line = line.rstrip("\r\n")
                if line.strip():
                    self._on_message(line)
        except (OSError, ValueError) as e:
            logger.error(f"Error reading from Pike analyzer: {e}")
        finally:
            code = process.wait()
            logger.debug("Stdout reader exiting")
            self._report_exit(code)

    def _read_stderr(self) -> None:
        process = self._process
        try:
            for line in process.stderr:
                line = line.rstrip("\r\n")
                if line:
                    self._on_stderr(line)
        except (OSError, ValueError) as e:
            logger.debug(f"Stderr reader stopped: {e}")

    def _report_exit(self, code: Optional[int]) -> None:
        if self._exit_reported:
            return
        self._exit_reported = True
        logger.info(f"Pike analyzer exited (exit code: {code})")
        self._on_exit(code)

    def kill(self) -> None:
        """Stop the subprocess, escalating from terminate to kill."""
        process = self._process
        if process is None:
            return

        try:
            if process.stdin:
                process.stdin.close()
        except OSError as e:
            logger.debug(f"Error closing analyzer stdin: {e}")

        if process.poll() is None:
            process.terminate()

            deadline = time.monotonic() + GRACEFUL_SHUTDOWN_DELAY
            while process.poll() is None and time.monotonic() < deadline:
                time.sleep(0.05)

            if process.poll() is None:
                logger.warning("Process did not terminate gracefully, forcing kill")
                process.kill()
                try:
                    process.wait(timeout=1)
                except subprocess.TimeoutExpired:
                    logger.error("Process failed to terminate even after kill signal")

        logger.info(f"Process stopped (exit code: {process.returncode})")
