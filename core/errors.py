"""
Error taxonomy for the chat engine.

Only InvalidInput is ever reported to callers of the orchestrator. Completion
and store errors are raised by the collaborators and absorbed by the
conversation pipeline.
"""


class ChatEngineError(Exception):
    """Base class for engine errors"""


class InvalidInput(ChatEngineError, ValueError):
    """Caller supplied an empty family id or message"""


class CompletionError(ChatEngineError):
    """The external completion service could not produce a reply"""


class UpstreamUnavailable(CompletionError):
    """No credential is configured for the completion service"""


class TransportError(CompletionError):
    """Network failure, timeout or non-2xx response"""

    def __init__(self, message: str, status: int = None):
        super().__init__(message)
        self.status = status


class MalformedResponse(CompletionError):
    """Response body could not be parsed into a reply"""


class StoreError(ChatEngineError):
    """Reading or writing the durable profile store failed"""
