"""
Unit tests for BridgeManager health reporting.
"""

import unittest

from src.pike_lsp.bridge.bridge import PikeBridge
from src.pike_lsp.bridge.manager import BridgeManager
from src.pike_lsp.config import BridgeConfig
from src.pike_lsp.constants import MAX_RECENT_ERRORS
from fakes import FakeProcessFactory


def version_responder(method, params):
    if method == "get_version":
        return {"version": "8.0.1956"}
    return {}


class TestBridgeManager(unittest.TestCase):

    def setUp(self):
        self.factory = FakeProcessFactory(responder=version_responder)
        self.bridge = PikeBridge(config=BridgeConfig(timeout=1.0), process_factory=self.factory)
        self.manager = BridgeManager(self.bridge)

    def tearDown(self):
        self.manager.stop()

    def test_health_before_start(self):
        status = self.manager.health_status()
        self.assertFalse(status.connected)
        self.assertIsNone(status.pid)
        self.assertIsNone(status.version)
        self.assertEqual(status.recent_errors, [])

    def test_health_after_start(self):
        self.manager.start()
        status = self.manager.health_status()
        self.assertTrue(status.connected)
        self.assertEqual(status.pid, self.factory.latest.pid)
        self.assertEqual(status.version, "8.0.1956")
        self.assertEqual(status.spawn_count, 1)
        self.assertGreaterEqual(status.uptime, 0)
        self.assertEqual(status.to_dict()["version"], "8.0.1956")

    def test_recent_errors_keep_only_error_lines(self):
        self.manager.start()
        process = self.factory.latest
        process.simulate_stderr("Compiling module.pike")
        process.simulate_stderr("module.pike:3: Error: Undefined identifier foo")
        self.assertEqual(self.manager.recent_errors, ["module.pike:3: Error: Undefined identifier foo"])

    def test_recent_errors_are_capped(self):
        self.manager.start()
        process = self.factory.latest
        for index in range(MAX_RECENT_ERRORS + 3):
            process.simulate_stderr(f"error {index}")
        errors = self.manager.recent_errors
        self.assertEqual(len(errors), MAX_RECENT_ERRORS)
        self.assertEqual(errors[-1], f"error {MAX_RECENT_ERRORS + 2}")
        self.assertEqual(errors[0], "error 3")

    def test_version_failure_is_tolerated(self):
        def failing(method, params):
            return None

        factory = FakeProcessFactory(responder=failing)
        bridge = PikeBridge(config=BridgeConfig(timeout=0.05), process_factory=factory)
        manager = BridgeManager(bridge)
        with self.assertLogs("src.pike_lsp.bridge.manager", level="WARNING") as logs:
            manager.start()
        self.assertIsNone(manager.health_status().version)
        self.assertTrue(any("Could not determine Pike version" in line for line in logs.output))
        manager.stop()

    def test_disconnected_after_crash(self):
        self.manager.start()
        self.factory.latest.simulate_exit(1)
        self.assertFalse(self.manager.health_status().connected)
