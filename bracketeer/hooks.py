"""
Extension points around tag rendering.

An Engine owns one ``Hooks`` table for actions (callbacks notified of a
rendering event, return value ignored) and one ``Filters`` table for
filters (callbacks that receive a value and return its replacement).
Callbacks for a point run in priority order, lower first, and in
registration order within one priority.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class HookPoints:
    """Names of the actions and filters an Engine fires."""

    # Actions
    BEFORE_RENDER = "before_render"  # (tag, attributes)
    AFTER_RENDER = "after_render"  # (tag, output)

    # Filters
    PRE_RENDER = "pre_render"  # None -> replacement text; non-None skips the handler
    RENDER = "render"  # handler output -> final output
    MERGE_DEFAULTS = "merge_defaults"  # merged attributes -> merged attributes
    STRIP_TAG_NAMES = "strip_tag_names"  # tag names -> tag names to strip


def _read_only(value: Any) -> Any:
    if isinstance(value, dict):
        return MappingProxyType(dict(value))
    if isinstance(value, list):
        return tuple(value)
    if isinstance(value, set):
        return frozenset(value)
    return value


@dataclass(frozen=True, order=True)
class _Callback:
    priority: int
    sequence: int
    function: Callable[..., Any] = field(compare=False)


class _CallbackTable:
    """Prioritized callbacks per extension point."""

    kind = "callback"

    def __init__(self) -> None:
        self._points: Dict[str, List[_Callback]] = {}
        self._sequence = itertools.count()

    def _add(self, point: str, function: Callable[..., Any], priority: int) -> None:
        if not callable(function):
            raise TypeError(f"{self.kind} callback must be callable")
        callbacks = self._points.setdefault(point, [])
        callbacks.append(_Callback(priority, next(self._sequence), function))
        callbacks.sort()

    def _remove(self, point: str, function: Callable[..., Any]) -> None:
        callbacks = self._points.get(point)
        if callbacks:
            self._points[point] = [callback for callback in callbacks if callback.function is not function]

    def _has(self, point: str) -> bool:
        return bool(self._points.get(point))

    def _run(self, point: str, call: Callable[[Callable[..., Any]], Any]) -> None:
        for callback in list(self._points.get(point, ())):
            try:
                call(callback.function)
            except Exception as exc:
                logger.warning(f"{self.kind.capitalize()} '{point}' callback {callback.function!r} failed: {exc}")


class Hooks(_CallbackTable):
    """Actions fired around tag rendering."""

    kind = "action"

    def add_action(self, hook_name: str, callback: Callable[..., Any], priority: int = 10) -> None:
        """
        Add an action.

        Args:
            hook_name: Name of the action, usually a HookPoints constant
            callback: Function to call
            priority: Lower = earlier execution (default: 10)
        """
        self._add(hook_name, callback, priority)

    def do_action(self, hook_name: str, *args: Any, **kwargs: Any) -> None:
        """
        Call every callback registered for ``hook_name``.

        Callbacks receive read-only copies of mutable arguments. A failing
        callback is logged and the remaining callbacks still run.
        """
        if not self._has(hook_name):
            return
        frozen_args = tuple(_read_only(arg) for arg in args)
        frozen_kwargs = {key: _read_only(arg) for key, arg in kwargs.items()}
        self._run(hook_name, lambda function: function(*frozen_args, **frozen_kwargs))

    def remove_action(self, hook_name: str, callback: Callable[..., Any]) -> None:
        self._remove(hook_name, callback)

    def has_action(self, hook_name: str) -> bool:
        return self._has(hook_name)


class Filters(_CallbackTable):
    """Value filters applied during tag rendering."""

    kind = "filter"

    def add_filter(self, tag: str, callback: Callable[..., Any], priority: int = 10) -> None:
        """
        Add a filter.

        Args:
            tag: Filter name, usually a HookPoints constant
            callback: Receives the current value plus the filter arguments
                and returns the new value
            priority: Lower = earlier execution (default: 10)
        """
        self._add(tag, callback, priority)

    def apply_filters(self, tag: str, value: Any, *args: Any, **kwargs: Any) -> Any:
        """
        Pass ``value`` through every filter registered for ``tag``.

        Returns the value unchanged when no filter is registered. A failing
        callback is logged and skipped, leaving the value it received as is.
        """
        if not self._has(tag):
            return value
        frozen_args = tuple(_read_only(arg) for arg in args)
        frozen_kwargs = {key: _read_only(arg) for key, arg in kwargs.items()}
        current = _read_only(value)

        def step(function: Callable[..., Any]) -> None:
            nonlocal current
            current = function(current, *frozen_args, **frozen_kwargs)

        self._run(tag, step)
        return current

    def remove_filter(self, tag: str, callback: Callable[..., Any]) -> None:
        self._remove(tag, callback)

    def has_filter(self, tag: str) -> bool:
        return self._has(tag)
