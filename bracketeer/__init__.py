"""
Bracketeer - shortcode-style bracket tags for Python text processing
"""

from .config import EngineConfig
from .core import (
    Engine,
    HandlerError,
    HandlerTimeoutError,
    create_engine,
)
from .hooks import Filters, HookPoints, Hooks
from .parser import (
    Match,
    ParseError,
    TagType,
    build_pattern,
    find_tag_names,
    is_valid_tag,
    is_valid_tag_name,
    iter_matches,
    merge_defaults,
    parse_all,
    parse_attributes,
    parse_tag,
)
from .registry import BracketeerError, Registry, RegistryFrozenError, TagHandler

__version__ = "0.1.0"
__all__ = [
    "BracketeerError",
    "Engine",
    "EngineConfig",
    "Filters",
    "HandlerError",
    "HandlerTimeoutError",
    "HookPoints",
    "Hooks",
    "Match",
    "ParseError",
    "Registry",
    "RegistryFrozenError",
    "TagHandler",
    "TagType",
    "build_pattern",
    "create_engine",
    "find_tag_names",
    "is_valid_tag",
    "is_valid_tag_name",
    "iter_matches",
    "merge_defaults",
    "parse_all",
    "parse_attributes",
    "parse_tag",
]
