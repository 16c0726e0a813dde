"""Tag-name to handler registry."""

from __future__ import annotations

import logging
import threading
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Any, Callable, ContextManager, Dict, Optional, Protocol, Set, runtime_checkable

from .parser import AttributeSet, is_valid_tag_name

logger = logging.getLogger(__name__)


@runtime_checkable
class TagHandler(Protocol):
    """Object-style handler: renders one tag occurrence."""

    def render(self, attributes: AttributeSet, content: Optional[str], tag: str) -> Any:
        ...


class BracketeerError(Exception):
    """Base class for errors raised by the registry and the engine."""


class RegistryFrozenError(BracketeerError, RuntimeError):
    """Raised when a frozen registry is mutated."""


@dataclass(frozen=True)
class HandlerEntry:
    handler: Any
    timeout: Optional[float] = None

    def resolve(self) -> Optional[Callable[..., Any]]:
        """Return the callable to invoke, or None when the handler is not invocable."""
        render = getattr(self.handler, "render", None)
        if callable(render) and not isinstance(self.handler, type):
            return render
        if callable(self.handler):
            return self.handler
        return None


class Registry:
    """
    Mapping of tag names to handlers.

    A registry is normally filled once during start-up and then only read.
    Pass ``thread_safe=True`` when it is shared between threads, and call
    ``freeze()`` once registration is complete.
    """

    def __init__(self, thread_safe: bool = False) -> None:
        self._handlers: Dict[str, HandlerEntry] = {}
        self._lock = threading.RLock() if thread_safe else None
        self._frozen = False

    def _guard(self) -> ContextManager[Any]:
        return self._lock if self._lock is not None else nullcontext()

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise RegistryFrozenError("Registry is frozen; handlers can no longer be changed")

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        with self._guard():
            self._frozen = True

    def register(self, name: str, handler: Any = None, timeout: Optional[float] = None):
        """
        Register ``handler`` for tag ``name``.

        Invalid names are ignored and False is returned. A later registration
        for the same name replaces the earlier one. Without ``handler`` this
        returns a decorator.
        """
        if handler is None:
            def decorator(func: Callable[..., Any]):
                self.register(name, func, timeout=timeout)
                return func

            return decorator

        if timeout is not None and timeout <= 0:
            raise ValueError("Handler timeout must be positive")
        if not is_valid_tag_name(name):
            logger.debug(f"Ignoring invalid tag name {name!r}")
            return False
        with self._guard():
            self._ensure_mutable()
            if name in self._handlers:
                logger.debug(f"Tag '{name}' already registered, overwriting")
            self._handlers[name] = HandlerEntry(handler=handler, timeout=timeout)
        logger.debug(f"Registered tag: {name}")
        return True

    def unregister(self, name: str) -> None:
        with self._guard():
            self._ensure_mutable()
            if self._handlers.pop(name, None) is not None:
                logger.debug(f"Unregistered tag: {name}")

    def clear(self) -> None:
        with self._guard():
            self._ensure_mutable()
            self._handlers = {}
        logger.debug("Cleared tag registry")

    def exists(self, name: str) -> bool:
        with self._guard():
            return name in self._handlers

    def get(self, name: str) -> Optional[HandlerEntry]:
        with self._guard():
            return self._handlers.get(name)

    def names(self) -> Set[str]:
        with self._guard():
            return set(self._handlers)

    def __len__(self) -> int:
        with self._guard():
            return len(self._handlers)

    def __contains__(self, name: object) -> bool:
        with self._guard():
            return name in self._handlers
