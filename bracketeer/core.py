"""Tag engine: scan text for registered tags and substitute handler output."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .config import EngineConfig
from .hooks import Filters, HookPoints, Hooks
from .parser import (
    AttributeSet,
    Match,
    build_unwrap_pattern,
    find_tag_names,
    iter_matches,
    merge_defaults,
    parse_attributes,
)
from .registry import BracketeerError, HandlerEntry, Registry

logger = logging.getLogger(__name__)


class HandlerError(BracketeerError):
    """A tag handler raised while rendering. The original error is ``__cause__``."""

    def __init__(self, tag: str, message: str) -> None:
        super().__init__(message)
        self.tag = tag


class HandlerTimeoutError(HandlerError):
    """A tag handler ran past its timeout."""


def _coerce_output(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


class Engine:
    """
    Processes bracket tags in text against a Registry.

    One engine is meant to serve one request or thread. Sharing an engine
    between threads requires a thread-safe, frozen registry.
    """

    def __init__(self, registry: Optional[Registry] = None, config: Optional[EngineConfig] = None):
        self.registry = registry if registry is not None else Registry()
        self.config = config if config is not None else EngineConfig()
        self.hooks = Hooks()
        self.filters = Filters()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

    def __enter__(self) -> "Engine":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Release the worker thread used for timed handlers."""
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False)

    def register(self, name: str, handler: Any = None, timeout: Optional[float] = None):
        """Register a handler for tag ``name``; see Registry.register."""
        return self.registry.register(name, handler, timeout=timeout)

    def unregister(self, name: str) -> None:
        self.registry.unregister(name)

    # -- scanning ---------------------------------------------------------

    def process(self, text: str) -> str:
        """Replace every registered tag in ``text`` with its handler output."""
        if "[" not in text:
            return text

        names = self.registry.names().intersection(find_tag_names(text))
        if not names:
            return text

        return self._substitute(text, names, self._render_match)

    def strip_tags(self, text: str) -> str:
        """Remove registered tags and their content without calling handlers."""
        if "[" not in text:
            return text

        names = self.registry.names()
        if not names:
            return text
        names = set(self.filters.apply_filters(HookPoints.STRIP_TAG_NAMES, sorted(names), text))
        if not names:
            return text

        return self._substitute(text, names, lambda match: match.escape_open + match.escape_close)

    def contains_tag(self, text: str, name: str) -> bool:
        """Whether tag ``name`` occurs in ``text``, including inside other tags' content."""
        if "[" not in text:
            return False
        if not self.registry.exists(name):
            return False
        return self._contains(text, name, self.registry.names())

    def _contains(self, text: str, name: str, names: Iterable[str]) -> bool:
        for match in iter_matches(text, names):
            if match.name == name:
                return True
            if match.content and self._contains(match.content, name, names):
                return True
        return False

    def unwrap_paragraphs(self, text: str) -> str:
        """Drop ``<p>`` wrapping that surrounds a standalone tag."""
        names = self.registry.names()
        if not names:
            return text
        return build_unwrap_pattern(names).sub(r"\1", text)

    def render(self, text: str) -> str:
        """Process a full page: unwrap standalone tags, then substitute them."""
        if self.config.unwrap_paragraphs:
            text = self.unwrap_paragraphs(text)
        return self.process(text)

    def _substitute(self, text: str, names: Iterable[str], replace: Callable[[Match], str]) -> str:
        pieces: List[str] = []
        cursor = 0
        for match in iter_matches(text, names):
            pieces.append(text[cursor : match.start])
            if match.escaped:
                pieces.append(match.raw[1:-1])
            else:
                pieces.append(replace(match))
            cursor = match.end
        if not pieces:
            return text
        pieces.append(text[cursor:])
        return "".join(pieces)

    # -- rendering --------------------------------------------------------

    def _render_match(self, match: Match) -> str:
        attributes = parse_attributes(match.raw_attributes)
        entry = self.registry.get(match.name)
        handler = entry.resolve() if entry is not None else None
        if handler is None:
            return match.raw

        short_circuit = self.filters.apply_filters(HookPoints.PRE_RENDER, None, match.name, attributes, match)
        if short_circuit is not None:
            return match.escape_open + _coerce_output(short_circuit) + match.escape_close

        self.hooks.do_action(HookPoints.BEFORE_RENDER, match.name, attributes)
        try:
            output = _coerce_output(self._invoke(entry, handler, attributes, match))
        except HandlerError as exc:
            if self.config.strict:
                raise
            logger.error(f"Handler for tag '{match.name}' failed: {exc.__cause__ or exc}", exc_info=True)
            if self.config.error_placeholder is not None:
                return self.config.error_placeholder
            return match.raw

        output = _coerce_output(self.filters.apply_filters(HookPoints.RENDER, output, match.name, attributes, match))
        self.hooks.do_action(HookPoints.AFTER_RENDER, match.name, output)
        return match.escape_open + output + match.escape_close

    def _invoke(self, entry: HandlerEntry, handler: Callable[..., Any], attributes: AttributeSet, match: Match) -> Any:
        timeout = entry.timeout if entry.timeout is not None else self.config.handler_timeout
        try:
            if timeout is None:
                return handler(attributes, match.content, match.name)
            future = self._get_executor().submit(handler, attributes, match.content, match.name)
            try:
                return future.result(timeout=timeout)
            except FutureTimeoutError as exc:
                future.cancel()
                raise HandlerTimeoutError(match.name, f"Handler for tag '{match.name}' exceeded {timeout}s") from exc
        except HandlerError:
            raise
        except Exception as exc:
            raise HandlerError(match.name, f"Error rendering tag '{match.name}'") from exc

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(thread_name_prefix="bracketeer-handler")
            return self._executor

    # -- attributes -------------------------------------------------------

    def merge_defaults(self, defaults: Mapping[str, Any], attributes: Any, tag: Optional[str] = None) -> Dict[str, Any]:
        """
        Fill in defaults for a handler's attributes.

        When ``tag`` is given the result also passes through the
        ``merge_defaults`` filter as ``(merged, defaults, attributes, tag)``.
        """
        merged = merge_defaults(defaults, attributes)
        if tag:
            merged = dict(self.filters.apply_filters(HookPoints.MERGE_DEFAULTS, merged, defaults, attributes, tag))
        return merged


def create_engine(
    handlers: Optional[Mapping[str, Any]] = None,
    config: Optional[EngineConfig] = None,
    registry: Optional[Registry] = None,
) -> Engine:
    """
    Build an Engine and register ``handlers`` on it.

    Registration follows mapping order, so for a duplicated name the last one
    wins. Invalid names are skipped.
    """
    engine = Engine(registry=registry, config=config)
    for name, handler in (handlers or {}).items():
        engine.register(name, handler)
    return engine
