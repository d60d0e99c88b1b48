"""
Layered error types for the Pike LSP bridge.

Every error records the layer it originated in:
- server: caller misuse or an internal invariant violation
- bridge: transport, framing, timeout or subprocess lifecycle failures
- pike: the external analyzer reported a failure or crashed mid-analysis

Causes are kept as an explicit ``cause`` attribute so ``chain`` reads like
"hover request failed -> bridge timeout -> pike subprocess not responding".
"""

from typing import List, Optional

LAYERS = ("server", "bridge", "pike")


class LSPError(Exception):
    """Base class for all errors raised by the bridge stack."""

    def __init__(self, message: str, layer: str, cause: Optional[BaseException] = None):
        if layer not in LAYERS:
            raise ValueError(f"Unknown error layer: {layer}")
        super().__init__(message)
        self.message = message
        self.layer = layer
        self.cause = cause

    @property
    def name(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        return f"{self.name} [{self.layer}]: {self.message}"

    def __repr__(self) -> str:
        return f"{self.name}({self.message!r}, layer={self.layer!r})"

    def chain_errors(self) -> List[BaseException]:
        """Get all errors in the chain, outermost first."""
        errors: List[BaseException] = [self]
        seen = {id(self)}
        current = self.cause
        while current is not None and id(current) not in seen:
            errors.append(current)
            seen.add(id(current))
            current = getattr(current, "cause", None)
        return errors

    @property
    def chain(self) -> str:
        """Get the full error chain as a readable string."""
        return " -> ".join(_message_of(err) for err in self.chain_errors())

    def caused_by(self, error_type: type) -> bool:
        """Check whether any error in the chain is an instance of error_type."""
        return any(isinstance(err, error_type) for err in self.chain_errors())


class BridgeError(LSPError):
    """Error in the bridge layer (timeouts, framing, stdin/stdout, process death)."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, "bridge", cause)


class BridgeTimeoutError(BridgeError):
    """A bridge request did not receive its response in time."""


class PikeError(LSPError):
    """Error reported by, or caused by, the Pike analyzer itself."""

    def __init__(self, message: str, cause: Optional[BaseException] = None,
                 code: Optional[int] = None, data: Optional[object] = None):
        super().__init__(message, "pike", cause)
        self.code = code
        self.data = data


def _message_of(error: BaseException) -> str:
    if isinstance(error, LSPError):
        return error.message
    return str(error)
