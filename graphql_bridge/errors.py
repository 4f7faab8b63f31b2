"""
Defines project-specific exception classes.
"""
from typing import Optional


class BridgeBaseError(Exception):
    """Base class for all custom exceptions in GraphQL Bridge."""
    pass


class ConfigurationError(BridgeBaseError):
    """Raised when loading or validating the configuration file fails."""
    pass


class BodyNotParsedError(BridgeBaseError):
    """
    Raised when a request reaches the bridge without a structured body,
    i.e. the body-parsing middleware was not installed upstream.
    """
    pass


class ResponseAlreadyStartedError(BridgeBaseError):
    """Raised when headers or status are changed after the response started."""
    pass


class EngineError(BridgeBaseError):
    """
    Raised when the GraphQL execution engine is unusable or reports an
    error outside of a GraphQL response.
    """

    def __init__(self,
                 message: str,
                 engine_name: Optional[str] = None,
                 orig_exc: Optional[Exception] = None):
        self.engine_name = engine_name
        self.orig_exc = orig_exc

        full_msg = "GraphQL engine error"
        if engine_name:
            full_msg += f" (engine: {engine_name})"
        full_msg += f": {message}"
        if orig_exc:
            full_msg += f" (original error: {type(orig_exc).__name__})"
        super().__init__(full_msg)


class EngineNotStartedError(EngineError):
    """Raised when the engine is used before its start-up completed."""

    def __init__(self, expression: str, engine_name: Optional[str] = None):
        self.expression = expression
        super().__init__(
            f"You must call start() on the engine before passing it to {expression}.",
            engine_name=engine_name,
        )


class EngineStartupError(EngineError):
    """Raised when the engine fails its own start-up checks."""
    pass
