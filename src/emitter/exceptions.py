class EmitterError(Exception):
    """Base exception for the emitter package."""


class ListenerTypeError(EmitterError, TypeError):
    """Raised in strict mode when a non-callable is registered as a listener."""


class MixinError(EmitterError, TypeError):
    """Raised when an object cannot receive the emitter methods."""


class ConfigError(EmitterError):
    """Raised when a settings file is missing or cannot be parsed."""
