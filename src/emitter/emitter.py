"""
Synchronous listener registry.

Listeners are grouped by event key and invoked in registration order. The
registry can be used on its own, subclassed, or mixed into an existing object
so that object gains the full method set without inheriting from ``Emitter``.
"""
from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional

from .exceptions import ListenerTypeError, MixinError
from .settings import SETTINGS

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]

# Public names granted to a host object by mixin().
EMITTER_METHODS = (
    "listeners",
    "on",
    "once",
    "only",
    "off",
    "emit",
    "has",
    "addListener",
    "addEventListener",
    "removeListener",
    "removeListeners",
    "removeAllListeners",
    "removeEventListener",
    "hasListeners",
    "add_listener",
    "remove_listener",
    "remove_all_listeners",
    "has_listeners",
)


def _describe(fn: Any) -> str:
    return getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or repr(fn)


def _check_listener(fn: Any) -> None:
    if SETTINGS.strict and not callable(fn):
        raise ListenerTypeError(f"listener must be callable, got {type(fn).__name__}")


class OnceListener:
    """Wrapper registered by :meth:`Emitter.once`.

    Deregisters itself from ``emitter`` and then calls ``fn``. ``fn`` is kept so
    that ``off(event, fn)`` still finds the wrapper by the caller's reference.
    """

    def __init__(self, emitter: "Emitter", event: Hashable, fn: Listener) -> None:
        self.emitter = emitter
        self.event = event
        self.fn = fn

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        self.emitter.off(self.event, self)
        return self.fn(*args, **kwargs)

    def __repr__(self) -> str:
        return f"OnceListener({_describe(self.fn)})"


def _matches(listener: Any, fn: Any) -> bool:
    if listener == fn:
        return True
    return isinstance(listener, OnceListener) and listener.fn == fn


def _remove_all(fn: Any, listeners: List[Listener]) -> int:
    """Remove every entry of ``listeners`` matching ``fn`` in place; return the count."""
    removed = 0
    i = 0
    while i < len(listeners):
        if _matches(listeners[i], fn):
            # Entries shift left; re-check the same index.
            del listeners[i]
            removed += 1
        else:
            i += 1
    return removed


def _option_first(options: Any) -> bool:
    if not options:
        return False
    if isinstance(options, Mapping):
        return bool(options.get("first"))
    return bool(getattr(options, "first", False))


class Emitter:
    """Observer registry mapping event keys to ordered listener lists.

    ``Emitter()`` builds a standalone registry. ``Emitter(obj)`` mixes the
    registry methods into ``obj`` and returns ``obj`` (see :func:`mixin`).
    Subclasses are constructed normally and need not call ``Emitter.__init__``;
    bookkeeping is created lazily on first use.

    Example:
        emitter = Emitter()
        emitter.on("status", print).emit("status", "ready")
    """

    def __new__(cls, obj: Any = None, *args: Any, **kwargs: Any):
        if cls is Emitter and obj is not None:
            return mixin(obj)
        return super().__new__(cls)

    @staticmethod
    def mixin(obj: Any) -> Any:
        """Mix the registry methods into ``obj`` and return it."""
        return mixin(obj)

    # ------------------------ Internal state ------------------------
    def _store(self) -> Dict[Hashable, List[Listener]]:
        store = getattr(self, "_listeners", None)
        if store is None:
            store = self._listeners = {}
        return store

    def _tracked(self) -> Dict[Hashable, Listener]:
        tracked = getattr(self, "_exclusive", None)
        if tracked is None:
            tracked = self._exclusive = {}
        return tracked

    # ------------------------ Core API ------------------------
    def listeners(self, event: Hashable) -> List[Listener]:
        """Return the live list of listeners registered for ``event``."""
        store = self._store()
        if event not in store:
            store[event] = []
        return store[event]

    def on(self, event: Hashable, fn: Listener) -> "Emitter":
        """Append ``fn`` to the listeners of ``event``.

        The same callback may be registered more than once, except on an event
        with an exclusive listener (see :meth:`only`), where earlier entries of
        ``fn`` are removed first.
        """
        _check_listener(fn)
        if event in self._tracked():
            self.off(event, fn)
        self.listeners(event).append(fn)
        logger.debug("Registered listener %s for event %r", _describe(fn), event)
        return self

    def once(self, event: Hashable, fn: Listener) -> "Emitter":
        """Register ``fn`` to be invoked at most once, then removed.

        ``off(event, fn)`` cancels the registration before it fires.
        """
        _check_listener(fn)
        return self.on(event, OnceListener(self, event, fn))

    def only(
        self,
        event: Optional[Hashable] = None,
        options: Any = None,
        fn: Optional[Listener] = None,
        *,
        first: bool = False,
    ) -> "Emitter":
        """Keep a single exclusive listener for ``event``.

        Unlike :meth:`once`, which limits how often a listener *fires*, this
        limits how many exclusive listeners are *registered*. Installing one
        clears the other listeners of ``event``. A later ``only`` call for the
        same event replaces the exclusive listener, unless any call on this
        registry passed ``first`` (``first=True`` or ``{"first": True}``), in
        which case the original exclusive listener is kept for every event.
        The options may be passed before or after the listener.

        ``only(event)`` drops the listeners of ``event`` and its exclusive slot;
        ``only()`` removes every exclusive listener and forgets all slots.
        """
        if callable(options):
            # only(event, fn) or only(event, fn, options)
            fn, options = options, (None if callable(fn) else fn)

        if first or _option_first(options):
            self._first_wins = True

        tracked = self._tracked()
        if event is None:
            for key, listener in list(tracked.items()):
                self.off(key, listener)
            self._exclusive = {}
            logger.debug("Cleared all exclusive listeners")
            return self

        if event not in tracked:
            self.off(event)

        if fn is None:
            self.off(event)
            tracked.pop(event, None)
            logger.debug("Cleared exclusive listener for event %r", event)
            return self

        _check_listener(fn)
        if event in tracked:
            if not getattr(self, "_first_wins", False):
                self.off(event, tracked[event])
            else:
                fn = tracked[event]
                self.off(event)
                logger.debug("Kept first exclusive listener %s for event %r", _describe(fn), event)

        tracked[event] = fn
        return self.on(event, fn)

    def off(self, event: Optional[Hashable] = None, fn: Optional[Listener] = None) -> "Emitter":
        """Remove listeners.

        - ``off()`` removes every listener of every event.
        - ``off(event)`` removes every listener of ``event``.
        - ``off(event, fn)`` removes each entry equal to ``fn``, including
          :meth:`once` wrappers around ``fn``.

        Exclusive slots tracked by :meth:`only` are left as they are.
        """
        if event is None:
            self._listeners = {}
            logger.debug("Removed all listeners")
            return self

        if fn is None:
            self._store()[event] = []
            logger.debug("Removed all listeners for event %r", event)
            return self

        removed = _remove_all(fn, self.listeners(event))
        if removed:
            logger.debug("Removed %d registration(s) of %s from event %r", removed, _describe(fn), event)
        return self

    def emit(self, event: Hashable, *args: Any, **kwargs: Any) -> "Emitter":
        """Invoke the listeners of ``event`` in registration order.

        The listener list is copied first, so listeners added or removed while
        dispatching only affect later calls. Exceptions raised by a listener
        propagate to the caller and the remaining listeners are skipped.
        """
        listeners = list(self._store().get(event, ()))
        logger.debug("Emitting event %r to %d listener(s)", event, len(listeners))
        for fn in listeners:
            fn(*args, **kwargs)
        return self

    def has(self, event: Hashable) -> bool:
        """Return True if ``event`` has at least one registered listener."""
        return bool(self._store().get(event))

    # Aliases
    hasListeners = has_listeners = has

    addListener = addEventListener = add_listener = on

    removeListener = removeListeners = removeAllListeners = removeEventListener = off
    remove_listener = remove_all_listeners = off


def registry_of(obj: Any) -> Optional[Emitter]:
    """Return the :class:`Emitter` backing ``obj``, or None if it has none."""
    if isinstance(obj, Emitter):
        return obj
    for name in EMITTER_METHODS:
        bound = getattr(getattr(obj, name, None), "__wrapped__", None)
        registry = getattr(bound, "__self__", None)
        if isinstance(registry, Emitter):
            return registry
    return None


def _forward(host: Any, method: Callable[..., Any]) -> Callable[..., Any]:
    registry = method.__self__

    @functools.wraps(method)
    def forward(*args: Any, **kwargs: Any) -> Any:
        result = method(*args, **kwargs)
        # Chain on the host rather than on the hidden registry.
        return host if result is registry else result

    return forward


def mixin(obj: Any) -> Any:
    """Give ``obj`` the full registry method set and return it.

    The bookkeeping lives in a private :class:`Emitter` reachable only through
    the installed methods, so it never appears among ``obj``'s own attributes.
    Attributes ``obj`` already owns are left untouched.

    The forwarding methods themselves are stored in ``obj.__dict__``, so they
    show up in ``vars(obj)``. A ``copy.copy`` of the host forwards to the same
    registry as the original, and the host can no longer be pickled because
    the forwarders are closures.

    Example:
        class Job:
            pass

        job = mixin(Job())
        job.on("done", print).emit("done", "ok")
    """
    if registry_of(obj) is not None:
        return obj
    if isinstance(obj, type):
        raise MixinError(f"cannot mix emitter methods into class {obj.__name__}; subclass Emitter instead")

    try:
        own = vars(obj)
    except TypeError:
        raise MixinError(f"cannot mix emitter methods into {type(obj).__name__} instance") from None

    registry = Emitter()
    installed = []
    for name in EMITTER_METHODS:
        if name in own:
            continue
        try:
            setattr(obj, name, _forward(obj, getattr(registry, name)))
        except AttributeError as exc:
            raise MixinError(f"cannot set {name!r} on {type(obj).__name__} instance") from exc
        installed.append(name)
    logger.debug("Mixed %d emitter method(s) into %s", len(installed), type(obj).__name__)
    return obj


__all__ = [
    "EMITTER_METHODS",
    "Emitter",
    "Listener",
    "OnceListener",
    "mixin",
    "registry_of",
]
