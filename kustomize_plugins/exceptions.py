"""Exceptions related to kustomize-plugins."""

__all__ = [
    "KustomizePluginException",
    "InputException",
    "MarshalException",
    "ConfigException",
    "PluginStateException",
    "GenerateException",
]


class KustomizePluginException(Exception):
    """Generic base exception used for this library."""


class InputException(KustomizePluginException):
    """Raised when the input files or values are not formatted as expected."""


class MarshalException(KustomizePluginException):
    """Raised when plugin options cannot be serialized into a payload."""

    def __init__(self, capability: str, message: str) -> None:
        super().__init__(f"builtin {capability} marshal: {message}")
        self.capability = capability


class ConfigException(KustomizePluginException):
    """Raised when a plugin rejects its configuration payload."""

    def __init__(self, capability: str, payload: bytes, message: str) -> None:
        super().__init__(
            f"builtin {capability} config: {payload.decode('utf-8', errors='replace')!r}: {message}"
        )
        self.capability = capability
        self.payload = payload
        self.message = message


class PluginStateException(KustomizePluginException):
    """Raised when a plugin is used outside of its configured state."""


class GenerateException(InputException):
    """Raised when a generator is unable to produce its resource."""
