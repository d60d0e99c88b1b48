"""
Integration tests running PikeBridge against a real subprocess.

The Pike interpreter is replaced by fake_analyzer.py, run with the current
Python interpreter, so pipes, reader threads and process exit are real.
"""

import os
import sys
import time
import unittest

from src.pike_lsp.analysis.provider import BridgeAnalysisProvider
from src.pike_lsp.analysis.occurrences import PositionResolver
from src.pike_lsp.analysis.tokens import TokenStreamProvider
from src.pike_lsp.bridge import BridgeManager, PikeBridge
from src.pike_lsp.config import BridgeConfig
from src.pike_lsp.errors import BridgeError, BridgeTimeoutError, PikeError

FAKE_ANALYZER = os.path.join(os.path.dirname(os.path.abspath(__file__)), "fake_analyzer.py")


def make_config():
    return BridgeConfig(
        pike_path=sys.executable,
        analyzer_path=FAKE_ANALYZER,
        timeout=5.0,
        env={"PYTHONIOENCODING": "utf-8", "PYTHONUNBUFFERED": "1"},
    )


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return False


class TestBridgeIntegration(unittest.TestCase):

    def setUp(self):
        config = make_config()
        self.bridge = PikeBridge(config=config)
        self.bridge.start()

    def tearDown(self):
        self.bridge.stop()

    def test_round_trip(self):
        self.assertEqual(self.bridge.send("echo", {"text": "héllo"}), {"text": "héllo"})
        self.assertIsNotNone(self.bridge.pid)

    def test_out_of_order_delivery(self):
        slow = self.bridge.submit("sleep", {"seconds": 0.5})
        fast = self.bridge.submit("echo", {"n": 1})

        self.assertEqual(fast.result(), {"n": 1})
        self.assertFalse(slow.done())
        self.assertEqual(slow.result(), {"slept": 0.5})

    def test_analyzer_error(self):
        with self.assertRaises(PikeError) as ctx:
            self.bridge.send("fail")
        self.assertEqual(ctx.exception.code, -32000)

    def test_timeout_then_late_response(self):
        with self.assertRaises(BridgeTimeoutError):
            self.bridge.send("sleep", {"seconds": 0.5}, timeout=0.1)

        # Let the late response arrive; it must be dropped quietly
        time.sleep(0.6)
        self.assertEqual(self.bridge.pending_ids, [])
        self.assertEqual(self.bridge.send("echo", {"after": True}), {"after": True})

    def test_crash_then_respawn(self):
        pending = self.bridge.submit("sleep", {"seconds": 3})
        first_pid = self.bridge.pid
        self.bridge.submit("crash")

        with self.assertRaises(BridgeError) as ctx:
            pending.result(timeout=5.0)
        self.assertIn("exited unexpectedly", ctx.exception.message)

        self.assertEqual(self.bridge.send("echo", {"alive": True}), {"alive": True})
        self.assertEqual(self.bridge.spawn_count, 2)
        self.assertNotEqual(self.bridge.pid, first_pid)

    def test_tokens_through_resolver(self):
        resolver = PositionResolver(TokenStreamProvider(BridgeAnalysisProvider(self.bridge)))
        source = "foo.bar(foo, foobar);"
        occurrences = resolver.find_occurrences(source, "foo")
        self.assertEqual([o.start.character for o in occurrences], [0, 8])


class TestBridgeManagerIntegration(unittest.TestCase):

    def test_health_status(self):
        config = make_config()
        manager = BridgeManager(PikeBridge(config=config))
        manager.start()
        try:
            manager.bridge.send("stderr", {"line": "Compiler Error: undefined identifier"})
            self.assertTrue(wait_for(lambda: manager.recent_errors))

            status = manager.health_status()
            self.assertTrue(status.connected)
            self.assertEqual(status.version, "8.0.1956")
            self.assertEqual(status.pid, manager.bridge.pid)
            self.assertEqual(status.recent_errors, ["Compiler Error: undefined identifier"])
            self.assertGreaterEqual(status.uptime, 0)
        finally:
            manager.stop()
