"""Engine-specific exceptions."""


class EngineError(Exception):
    """Base exception for engine errors."""


class ConnectionError(EngineError):
    """Raised when the engine cannot connect to the search backend."""


class QueryError(EngineError):
    """Raised when a search query fails."""


class ConfigurationError(EngineError):
    """Raised when engine or model configuration is invalid."""
