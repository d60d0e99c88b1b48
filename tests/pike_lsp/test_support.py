"""
Tests for the supporting pieces: wire codec, documents, configuration and
the YAML traffic recorder.
"""

import json
import os
import shutil
import tempfile
import unittest

import pytest

from src.pike_lsp.bridge.codec import decode_message, encode_request, is_notification, unwrap_response
from src.pike_lsp.config import BridgeConfig
from src.pike_lsp.constants import BRIDGE_TIMEOUT_DEFAULT
from src.pike_lsp.document import LineIndex, TextDocument
from src.pike_lsp.errors import BridgeError, PikeError
from src.pike_lsp.models import Position, Range, Token
from src.pike_lsp.utils.structured_logger import StructuredLogger


class TestCodec(unittest.TestCase):

    def test_encode_request(self):
        line = encode_request(7, "resolve", {"symbol": "ünïcode"})
        self.assertNotIn("\n", line)
        self.assertEqual(json.loads(line), {
            "jsonrpc": "2.0", "id": 7, "method": "resolve", "params": {"symbol": "ünïcode"},
        })

    def test_encode_defaults_params(self):
        self.assertEqual(json.loads(encode_request(1, "get_version", None))["params"], {})

    def test_encode_unserializable_params(self):
        with self.assertRaises(BridgeError):
            encode_request(1, "parse", {"code": object()})

    def test_decode_rejects_garbage(self):
        with self.assertRaises(BridgeError):
            decode_message("{not json")
        with self.assertRaises(BridgeError):
            decode_message("[1, 2]")

    def test_is_notification(self):
        self.assertTrue(is_notification({"method": "log"}))
        self.assertFalse(is_notification({"id": 1, "method": "log"}))
        self.assertFalse(is_notification({"id": 1, "result": None}))

    def test_unwrap_result(self):
        self.assertIsNone(unwrap_response({"id": 1, "result": None}))
        self.assertEqual(unwrap_response({"id": "a", "result": [1]}), [1])

    def test_unwrap_errors(self):
        with self.assertRaises(PikeError) as ctx:
            unwrap_response({"id": 1, "error": {"message": "bad", "code": 3}})
        self.assertEqual(ctx.exception.code, 3)

        for message in [{"id": 1}, {"id": 1, "error": {"code": 3}}, {"id": 1.5, "result": 1}]:
            with self.assertRaises(BridgeError):
                unwrap_response(message)


class TestDocument(unittest.TestCase):

    def test_line_index_round_trip(self):
        text = "ab\n\ncdef\n"
        index = LineIndex(text)
        self.assertEqual(index.line_count, 4)
        for offset in range(len(text) + 1):
            self.assertEqual(index.offset_at(index.position_at(offset)), offset)

    def test_line_index_clamps(self):
        index = LineIndex("ab\ncd")
        self.assertEqual(index.position_at(100), Position(1, 2))
        self.assertEqual(index.offset_at(Position(0, 50)), 2)
        self.assertEqual(index.offset_at(Position(9, 0)), 5)

    def test_word_at(self):
        document = TextDocument(uri="file:///tmp/a.pike", text="int foo_bar = 1;")
        self.assertEqual(document.word_at(Position(0, 6)),
                         ("foo_bar", Range(Position(0, 4), Position(0, 11))))
        self.assertEqual(document.word_at(Position(0, 11))[0], "foo_bar")
        self.assertIsNone(document.word_at(Position(0, 13)))

    def test_text_change_rebuilds_index(self):
        document = TextDocument(uri="file:///tmp/a.pike", text="int x;")
        self.assertEqual(document.position_at(6), Position(0, 6))
        document.text = "int x;\nint y;"
        self.assertEqual(document.position_at(10), Position(1, 3))
        self.assertEqual(document.word_at(Position(1, 4))[0], "y")

    def test_file_path(self):
        self.assertEqual(TextDocument(uri="file:///a%20b/c.pike", text="").file_path, "/a b/c.pike")
        self.assertEqual(TextDocument(uri="untitled:1", text="").file_path, "untitled:1")


@pytest.mark.parametrize("line, character", [(-1, 0), (0, -1)])
def test_positions_are_non_negative(line, character):
    with pytest.raises(ValueError):
        Position(line, character)


def test_token_lines_are_one_based():
    with pytest.raises(ValueError):
        Token("x", 0)


def test_bridge_config_from_env(monkeypatch):
    monkeypatch.setenv("PIKE_PATH", "/opt/pike/bin/pike")
    monkeypatch.setenv("PIKE_ANALYZER_PATH", "/opt/pike-lsp/analyzer.pike")
    monkeypatch.setenv("PIKE_BRIDGE_TIMEOUT", "2.5")
    monkeypatch.setenv("PIKE_BRIDGE_TRAFFIC_LOG", "/tmp/traffic")

    config = BridgeConfig.from_env()
    assert config.command == ["/opt/pike/bin/pike", "/opt/pike-lsp/analyzer.pike"]
    assert config.timeout == 2.5
    assert config.traffic_log_dir == "/tmp/traffic"


def test_bridge_config_defaults(monkeypatch):
    for name in ["PIKE_PATH", "PIKE_ANALYZER_PATH", "PIKE_BRIDGE_TIMEOUT", "PIKE_BRIDGE_TRAFFIC_LOG"]:
        monkeypatch.delenv(name, raising=False)
    config = BridgeConfig.from_env()
    assert config.timeout == BRIDGE_TIMEOUT_DEFAULT
    assert config.traffic_log_dir is None


def test_bridge_config_bad_timeout(monkeypatch):
    monkeypatch.setenv("PIKE_BRIDGE_TIMEOUT", "soon")
    with pytest.raises(ValueError) as excinfo:
        BridgeConfig.from_env()
    assert "PIKE_BRIDGE_TIMEOUT" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, ValueError)


class TestStructuredLogger(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_record_and_load(self):
        recorder = StructuredLogger(self.temp_dir)
        self.assertEqual(recorder.record("request", {"method": "parse", "id": 1}), "request_0")
        self.assertEqual(recorder.record("request", {"method": "tokenize", "id": 2}), "request_1")

        entries = recorder.load()
        self.assertEqual(entries["request_1"], {"method": "tokenize", "id": 2})
        self.assertTrue(os.path.exists(os.path.join(self.temp_dir, "bridge-traffic.yaml")))

    def test_numbering_continues_across_instances(self):
        StructuredLogger(self.temp_dir).record("request", {"id": 1})
        recorder = StructuredLogger(self.temp_dir)
        self.assertEqual(recorder.counter, 1)
        self.assertEqual(recorder.record("request", {"id": 2}), "request_1")
