"""
Pike bridge: correlated request/response calls over one analyzer subprocess.

Any number of callers may have requests in flight. Each request gets a
unique id that is never reused, even across respawns; responses are matched
back by id in whatever order they arrive. A caller blocks only on its own
response, its timeout, or the death of the subprocess.
"""

import itertools
import logging
import threading
import time
from concurrent.futures import CancelledError, Future, InvalidStateError, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import yaml

from src.pike_lsp.bridge.codec import decode_message, encode_request, is_notification, unwrap_response
from src.pike_lsp.bridge.process import PikeProcess
from src.pike_lsp.config import BridgeConfig
from src.pike_lsp.errors import BridgeError, BridgeTimeoutError, LSPError
from src.pike_lsp.utils.structured_logger import StructuredLogger

logger = logging.getLogger(__name__)

# Analyzer log notification levels -> Python logging levels
_LOG_LEVELS = {1: logging.ERROR, 2: logging.WARNING, 3: logging.INFO, 4: logging.DEBUG}


@dataclass
class _PendingRequest:
    request_id: int
    method: str
    params: Dict[str, Any]
    future: Future
    generation: int
    started: float = field(default_factory=time.monotonic)
    deadline: Optional[threading.Timer] = None


class PendingCall:
    """Handle on one in-flight request."""

    def __init__(self, bridge: "PikeBridge", request: _PendingRequest):
        self._bridge = bridge
        self._request = request

    @property
    def id(self) -> int:
        return self._request.request_id

    @property
    def method(self) -> str:
        return self._request.method

    def done(self) -> bool:
        return self._request.future.done()

    def result(self, timeout: Optional[float] = None) -> Any:
        """
        Wait for the response and return its result payload.

        The call's deadline runs from submission whether or not anyone waits.
        A shorter timeout here times the call out early.

        Raises:
            BridgeTimeoutError: If no response arrived in time; the id is retired
            BridgeError: On transport failure, protocol violation or subprocess death
            PikeError: If the analyzer reported an error
        """
        future = self._request.future
        done, _ = wait([future], timeout=timeout)
        if not done:
            self._bridge._expire(self._request)
        try:
            return future.result()
        except CancelledError as e:
            raise BridgeError(f"{self.method} request (id={self.id}) was cancelled", cause=e) from e

    def cancel(self) -> None:
        """Stop waiting; the analyzer keeps working and its response is discarded."""
        self._bridge._retire(self.id)
        if self._request.deadline is not None:
            self._request.deadline.cancel()
        self._request.future.cancel()


class PikeBridge:
    """Manages the analyzer subprocess and the table of outstanding requests."""

    def __init__(
        self,
        config: Optional[BridgeConfig] = None,
        process_factory: Optional[Callable[..., Any]] = None,
        traffic_logger: Optional[StructuredLogger] = None,
    ):
        self.config = config or BridgeConfig.from_env()
        self._process_factory = process_factory or PikeProcess
        self._traffic = traffic_logger
        if self._traffic is None and self.config.traffic_log_dir:
            self._traffic = StructuredLogger(self.config.traffic_log_dir)

        self._process = None
        self._generation = 0
        self._pending: Dict[int, _PendingRequest] = {}
        self._ids = itertools.count(1)
        self._needs_respawn = False
        self._stopped = False

        # _lock guards the pending table and the current process; _spawn_lock
        # serializes (re)spawns so concurrent callers never start two processes
        self._lock = threading.Lock()
        self._spawn_lock = threading.Lock()

        self._stderr_listeners: List[Callable[[str], None]] = []
        self._notification_listeners: List[Callable[[Dict[str, Any]], None]] = []

    @property
    def spawn_count(self) -> int:
        return self._generation

    @property
    def pid(self) -> Optional[int]:
        process = self._process
        return process.pid if process is not None else None

    @property
    def pending_ids(self) -> List[int]:
        with self._lock:
            return sorted(self._pending)

    def is_running(self) -> bool:
        process = self._process
        return process is not None and not self._needs_respawn and process.is_alive()

    def on_stderr(self, listener: Callable[[str], None]) -> None:
        self._stderr_listeners.append(listener)

    def on_notification(self, listener: Callable[[Dict[str, Any]], None]) -> None:
        self._notification_listeners.append(listener)

    def start(self) -> None:
        """Spawn the analyzer if it is not already running."""
        with self._spawn_lock:
            self._stopped = False
            if not self.is_running():
                self._spawn_locked()

    def stop(self) -> None:
        """Stop the analyzer and fail every outstanding request."""
        with self._spawn_lock:
            self._stopped = True
            with self._lock:
                process = self._process
                self._process = None
        self._fail_pending(
            lambda pending: True,
            lambda pending: BridgeError(f"{pending.method} request (id={pending.request_id}) aborted: bridge stopped"),
        )
        if process is not None:
            logger.info("Shutting down Pike analyzer")
            process.kill()

    def _spawn_locked(self) -> None:
        generation = self._generation + 1

        # Anything still waiting on an older process can never be answered
        self._fail_pending(
            lambda pending: pending.generation < generation,
            lambda pending: BridgeError(
                f"{pending.method} request (id={pending.request_id}) lost: Pike analyzer was replaced"
            ),
        )

        process = self._process_factory(
            on_message=self._handle_line,
            on_stderr=self._handle_stderr,
            on_exit=lambda code: self._handle_exit(code, generation),
        )
        process.spawn(self.config.command, self.config.env)

        with self._lock:
            self._process = process
            self._generation = generation
            self._needs_respawn = False
        logger.info(f"Pike analyzer ready (spawn #{generation}, pid {process.pid})")

    def _ensure_running(self) -> Tuple[Any, int]:
        if self._stopped:
            raise BridgeError("Pike bridge is stopped")
        with self._lock:
            process, generation = self._process, self._generation
        if process is not None and not self._needs_respawn and process.is_alive():
            return process, generation

        with self._spawn_lock:
            if self._stopped:
                raise BridgeError("Pike bridge is stopped")
            if not self.is_running():
                if self._process is not None:
                    logger.warning("Respawning Pike analyzer after unexpected exit")
                self._spawn_locked()
            with self._lock:
                return self._process, self._generation

    def submit(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> PendingCall:
        """
        Send a request without waiting for its response.

        Raises:
            BridgeError: If the analyzer cannot be started or written to
        """
        process, generation = self._ensure_running()

        request_id = next(self._ids)
        line = encode_request(request_id, method, params)
        request = _PendingRequest(
            request_id=request_id,
            method=method,
            params=params or {},
            future=Future(),
            generation=generation,
        )
        with self._lock:
            self._pending[request_id] = request

        logger.debug(f"Sending request {request_id}: {method}")
        try:
            process.send(line)
        except BridgeError as e:
            self._retire(request_id)
            raise BridgeError(f"Failed to send {method} request to Pike analyzer", cause=e) from e

        call_timeout = self.config.timeout if timeout is None else timeout
        deadline = threading.Timer(call_timeout, self._expire, args=(request,))
        deadline.daemon = True
        request.deadline = deadline
        deadline.start()
        return PendingCall(self, request)

    def send(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Send a request and wait for its result payload."""
        return self.submit(method, params, timeout).result()

    def get_version(self) -> Optional[str]:
        result = self.send("get_version")
        if isinstance(result, dict):
            return result.get("version")
        return None

    def _retire(self, request_id: int) -> bool:
        with self._lock:
            retired = self._pending.pop(request_id, None) is not None
        if retired:
            logger.debug(f"Retired request id {request_id}")
        return retired

    def _complete(self, pending: _PendingRequest, result: Any = None,
                  error: Optional[BaseException] = None) -> None:
        if pending.deadline is not None:
            pending.deadline.cancel()
        try:
            if error is not None:
                pending.future.set_exception(error)
            else:
                pending.future.set_result(result)
        except InvalidStateError:
            logger.debug(f"Request {pending.request_id} was cancelled before completion")

    def _expire(self, pending: _PendingRequest) -> None:
        """Retire a request whose deadline passed and fail its future."""
        if not self._retire(pending.request_id):
            return
        elapsed = time.monotonic() - pending.started
        logger.error(f"{pending.method} request (id={pending.request_id}) timed out after {elapsed:.1f} seconds")
        self._complete(pending, error=BridgeTimeoutError(
            f"{pending.method} request (id={pending.request_id}) timed out after {elapsed:.1f}s"
        ))

    def _fail_pending(
        self,
        predicate: Callable[[_PendingRequest], bool],
        make_error: Callable[[_PendingRequest], BridgeError],
    ) -> int:
        with self._lock:
            doomed = [pending for pending in self._pending.values() if predicate(pending)]
            for pending in doomed:
                del self._pending[pending.request_id]
        for pending in doomed:
            self._complete(pending, error=make_error(pending))
        return len(doomed)

    def _handle_line(self, line: str) -> None:
        try:
            message = decode_message(line)
        except BridgeError as e:
            logger.error(f"Discarding analyzer output: {e.message}")
            return

        if is_notification(message):
            self._handle_notification(message)
            return
        if "method" in message:
            logger.warning(f"Received analyzer request (not implemented): {message['method']}")
            return
        if "id" not in message:
            logger.warning(f"Received unrecognized message format: {list(message.keys())}")
            return

        request_id = message["id"]
        with self._lock:
            pending = self._pending.pop(request_id, None)
        if pending is None:
            logger.debug(f"Discarding response for retired or unknown request id {request_id!r}")
            return

        self._record_traffic(pending, message)
        try:
            result = unwrap_response(message)
        except LSPError as error:
            logger.debug(f"Request {request_id} ({pending.method}) failed: {error}")
            self._complete(pending, error=error)
        else:
            self._complete(pending, result=result)

    def _handle_notification(self, message: Dict[str, Any]) -> None:
        method = message.get("method", "unknown")
        params = message.get("params") or {}
        if method in ("log", "window/logMessage"):
            level = _LOG_LEVELS.get(params.get("type", 3), logging.INFO)
            logger.log(level, f"[Pike] {params.get('message', '')}")
        else:
            logger.debug(f"Received notification: {method}")

        for listener in self._notification_listeners:
            listener(message)

    def _handle_stderr(self, line: str) -> None:
        logger.debug(f"[Pike stderr] {line}")
        for listener in self._stderr_listeners:
            listener(line)

    def _handle_exit(self, code: Optional[int], generation: int) -> None:
        with self._lock:
            if self._stopped or generation != self._generation:
                logger.debug(f"Ignoring exit of retired analyzer process (spawn #{generation})")
                return

        failed = self._fail_pending(
            lambda pending: pending.generation == generation,
            lambda pending: BridgeError(
                f"{pending.method} request (id={pending.request_id}) failed: "
                f"Pike analyzer exited unexpectedly (exit code: {code})"
            ),
        )
        logger.error(f"Pike analyzer exited unexpectedly (exit code: {code}), failed {failed} pending requests")

        with self._lock:
            if generation == self._generation:
                self._needs_respawn = True

    def _record_traffic(self, pending: _PendingRequest, response: Dict[str, Any]) -> None:
        if self._traffic is None:
            return
        try:
            self._traffic.record("request", {
                "id": pending.request_id,
                "method": pending.method,
                "params": pending.params,
                "response": response,
                "duration_ms": round((time.monotonic() - pending.started) * 1000, 2),
            })
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to record bridge traffic: {e}")


def create_pike_bridge(config: Optional[BridgeConfig] = None, start: bool = True) -> PikeBridge:
    """Create a bridge from configuration (the environment by default) and start it."""
    bridge = PikeBridge(config or BridgeConfig.from_env())
    if start:
        bridge.start()
    return bridge
