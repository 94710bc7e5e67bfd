"""Exception taxonomy for raster model filters and engine bindings."""


class ModelFilterError(Exception):
    """Base class for model filter failures."""


class ConfigurationError(ModelFilterError, ValueError):
    """Filter parameters are inconsistent or incomplete."""


class IntrospectionError(ModelFilterError, KeyError):
    """A named tensor cannot be found or described by the session."""

    def __init__(self, tensor_name: str, message: str | None = None):
        self.tensor_name = tensor_name
        self.message = message or f"tensor '{tensor_name}' not found in graph"
        super().__init__(self.message)

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead.
        return self.message


class ExecutionError(ModelFilterError, RuntimeError):
    """The engine failed while running the session."""

    def __init__(self, message: str, *, engine_message: str = "", debug_report: str = ""):
        self.engine_message = engine_message
        self.debug_report = debug_report
        full_message = message
        if debug_report:
            full_message = f"{message}\n{debug_report}"
        super().__init__(full_message)


class SessionNotSetError(ConfigurationError, ExecutionError):
    """Session or graph missing when the filter needs them."""

    def __init__(self, message: str):
        ExecutionError.__init__(self, message)


class EngineError(RuntimeError):
    """Native engine failure re-raised by a session adapter."""
