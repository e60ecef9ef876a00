"""Structured error types for the agent system."""


class AgentError(Exception):
    """Base error for all agent operations."""
    pass


class TransportError(AgentError):
    """Raised when the language-model endpoint cannot produce a reply."""

    def __init__(self, message: str, model: str = ""):
        self.model = model
        super().__init__(message)


class ConfigError(AgentError):
    """Raised when a configuration value is rejected."""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"{key}: {message}")


class SessionError(AgentError):
    """Raised when a saved session cannot be restored."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Session '{name}' could not be loaded: {reason}")
