"""
JSON-RPC framing for the Pike analyzer.

The analyzer reads one JSON object per line on stdin and writes one per line
on stdout. Responses must carry an id and either a ``result`` or an
``error``; anything else is a protocol violation.
"""

import json
from typing import Any, Dict, Optional

import jsonschema

from src.pike_lsp.errors import BridgeError, PikeError

RESPONSE_SCHEMA = {
    "type": "object",
    "required": ["id"],
    "properties": {
        "id": {"type": ["integer", "string"]},
        "error": {
            "anyOf": [
                {"type": "string"},
                {
                    "type": "object",
                    "required": ["message"],
                    "properties": {
                        "message": {"type": "string"},
                        "code": {"type": "integer"},
                    },
                },
            ]
        },
    },
    "anyOf": [{"required": ["result"]}, {"required": ["error"]}],
}


def encode_request(request_id: int, method: str, params: Optional[Dict[str, Any]]) -> str:
    """Serialize a request as a single JSON line (without the newline)."""
    message = {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": method,
        "params": params if params is not None else {},
    }
    try:
        return json.dumps(message, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise BridgeError(f"Cannot serialize parameters for {method}", cause=e) from e


def decode_message(line: str) -> Dict[str, Any]:
    """Parse one line of analyzer output."""
    try:
        message = json.loads(line)
    except json.JSONDecodeError as e:
        raise BridgeError(f"Invalid JSON from analyzer: {line[:100]}", cause=e) from e
    if not isinstance(message, dict):
        raise BridgeError(f"Analyzer sent a {type(message).__name__}, expected an object")
    return message


def is_notification(message: Dict[str, Any]) -> bool:
    return "method" in message and "id" not in message


def unwrap_response(message: Dict[str, Any]) -> Any:
    """
    Return the result payload of a response.

    Raises:
        BridgeError: If the payload violates the response envelope
        PikeError: If the analyzer reported an error
    """
    try:
        jsonschema.validate(message, RESPONSE_SCHEMA)
    except jsonschema.ValidationError as e:
        raise BridgeError(
            f"Protocol violation in response {message.get('id')!r}: {e.message}", cause=e
        ) from e

    if "error" in message:
        error = message["error"]
        if isinstance(error, str):
            raise PikeError(error)
        raise PikeError(error["message"], code=error.get("code"), data=error.get("data"))
    return message["result"]
