"""
Minimal observer-pattern utility.

An :class:`Emitter` lets callers register listeners against event keys,
dispatch events synchronously, and deregister listeners again. Its methods can
be mixed into existing objects with :func:`mixin`.
"""
from .emitter import EMITTER_METHODS, Emitter, Listener, OnceListener, mixin, registry_of
from .exceptions import ConfigError, EmitterError, ListenerTypeError, MixinError

__version__ = "1.0.0"

__all__ = [
    "EMITTER_METHODS",
    "ConfigError",
    "Emitter",
    "EmitterError",
    "Listener",
    "ListenerTypeError",
    "MixinError",
    "OnceListener",
    "mixin",
    "registry_of",
]
