"""
Bracket-tag grammar for Bracketeer.

Tags follow the established shortcode convention::

    [tag /]
    [tag foo="bar" baz='bing' qux=1 /]
    [tag foo="bar"]content[/tag]
    [[tag]]                          -> literal [tag]

Scanning is driven by a single compiled pattern per set of tag names. Text
that looks like a tag but does not fit the grammar is left alone.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Pattern, Tuple, Union

AttributeSet = Union[Dict[Union[str, int], str], List[str], str]


class TagType(Enum):
    """Shapes a matched tag can take."""

    SINGLE = "single"  # Self-closing: [tag /]
    BARE = "bare"  # Opening tag with no closing counterpart: [tag]
    DOUBLE = "double"  # Enclosing: [tag]content[/tag]
    ESCAPED = "escaped"  # [[tag]]


class ParseError(ValueError):
    """Raised when a string is not exactly one well-formed tag."""


@dataclass
class Match:
    """One tag occurrence found in a text buffer."""

    tag_type: TagType
    name: str
    raw_attributes: str
    content: Optional[str]
    escape_open: str
    escape_close: str
    raw: str
    start: int
    end: int

    @property
    def escaped(self) -> bool:
        return self.tag_type == TagType.ESCAPED

    @property
    def self_closing(self) -> bool:
        return self.tag_type == TagType.SINGLE

    @property
    def attributes(self) -> AttributeSet:
        return parse_attributes(self.raw_attributes)


# Characters that can never appear in a tag name.
_INVALID_NAME_RE = re.compile(r"[<>&/\[\]\x00-\x20=]")

# Cheap pre-filter: every name that follows an opening bracket.
_CANDIDATE_NAME_RE = re.compile(r"\[([^<>&/\[\]\x00-\x20=]+)")

_ATTRIBUTE_RE = re.compile(
    r"([\w-]+)\s*=\s*\"([^\"]*)\"(?:\s|$)"
    r"|([\w-]+)\s*=\s*'([^']*)'(?:\s|$)"
    r"|([\w-]+)\s*=\s*([^\s'\"]+)(?:\s|$)"
    r"|\"([^\"]*)\"(?:\s|$)"
    r"|'([^']*)'(?:\s|$)"
    r"|(\S+)(?:\s|$)"
)

_SPACE_LIKE_RE = re.compile("[\u00a0\u200b]+")

# Literal text alternating with closed <...> tags.
_CLOSED_MARKUP_RE = re.compile(r"[^<]*(?:<[^>]*>[^<]*)*")

_C_ESCAPE_RE = re.compile(r"\\(x[0-9A-Fa-f]{1,2}|[0-7]{1,3}|.)", re.DOTALL)

_C_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "a": "\a",
    "v": "\v",
    "b": "\b",
    "f": "\f",
}

# Inside an opening tag: anything but "]" or "/", or a "/" not followed by "]".
_ATTRIBUTE_BODY = r"[^\]/]*(?:/(?!\])[^\]/]*)*?"


def is_valid_tag_name(name: str) -> bool:
    """Return True if ``name`` can be registered as a tag name."""
    if not isinstance(name, str) or not name.strip():
        return False
    return _INVALID_NAME_RE.search(name) is None


def find_tag_names(text: str) -> List[str]:
    """Names following every ``[`` in ``text``, in order of appearance."""
    return _CANDIDATE_NAME_RE.findall(text)


def _alternation(names: Iterable[str]) -> Tuple[str, ...]:
    return tuple(sorted(set(names)))


def _tag_pattern_source(alternation: str) -> str:
    return (
        r"\["  # Opening bracket
        r"(\[?)"  # 1: Optional second bracket for [[tag]] escapes
        "(" + alternation + ")"  # 2: Tag name
        r"(?![\w-])"  # Not followed by word character or hyphen
        "(" + _ATTRIBUTE_BODY + ")"  # 3: Attribute substring
        r"(?:"
        r"(/)"  # 4: Self-closing slash ...
        r"\]"  # ... and closing bracket
        r"|"
        r"\]"  # Closing bracket
        r"(?:"
        r"("  # 5: Enclosed content
        r"[^\[]*+"
        r"(?:\[(?!/\2\])[^\[]*+)*+"  # A bracket not starting the closing tag
        r")"
        r"\[/\2\]"  # Closing tag
        r")?"
        r")"
        r"(\]?)"  # 6: Optional second bracket for [[tag]] escapes
    )


@lru_cache(maxsize=128)
def _compile_tag_pattern(names: Tuple[str, ...]) -> Pattern[str]:
    return re.compile(_tag_pattern_source("|".join(re.escape(name) for name in names)))


@lru_cache(maxsize=128)
def _compile_unwrap_pattern(names: Tuple[str, ...]) -> Pattern[str]:
    alternation = "|".join(re.escape(name) for name in names)
    return re.compile(
        r"<p>"
        r"\s*"
        r"("  # 1: The whole tag
        r"\["
        "(" + alternation + ")"  # 2: Tag name
        r"(?![\w-])"
        + _ATTRIBUTE_BODY
        + r"(?:"
        r"/\]"
        r"|"
        r"\]"
        r"(?:"
        r"[^\[]*+"
        r"(?:\[(?!/\2\])[^\[]*+)*+"
        r"\[/\2\]"
        r")?"
        r")"
        r")"
        r"\s*"
        r"</p>",
        re.DOTALL,
    )


@lru_cache(maxsize=256)
def _compile_nesting_pattern(name: str) -> Pattern[str]:
    # Group 1 is set for a closing tag; otherwise a non-self-closing opener matched.
    escaped = re.escape(name)
    return re.compile(r"\[(?:(/)" + escaped + r"\]|" + escaped + r"(?![\w-])" + _ATTRIBUTE_BODY + r"\])")


def build_pattern(names: Iterable[str]) -> Pattern[str]:
    """
    Compile the six-group tag pattern for ``names``.

    Groups:
        1. ``[`` when the tag is escaped as ``[[tag]]``
        2. the tag name
        3. the raw attribute substring
        4. ``/`` for self-closing tags
        5. enclosed content, or None when there is no closing tag
        6. ``]`` when the tag is escaped as ``[[tag]]``

    Patterns are cached by tag-name set.
    """
    key = _alternation(names)
    if not key:
        raise ValueError("At least one tag name is required to build a pattern")
    return _compile_tag_pattern(key)


def build_unwrap_pattern(names: Iterable[str]) -> Pattern[str]:
    """Compile the ``<p>[tag]</p>`` pattern for ``names``."""
    key = _alternation(names)
    if not key:
        raise ValueError("At least one tag name is required to build a pattern")
    return _compile_unwrap_pattern(key)


class _NestingIndex:
    """
    Pairs same-name openers with their closing tags, one pass per name.

    Closers pair with the nearest unpaired opener before them. Escaped
    ``[[tag]]`` occurrences are literals and take no part in the pairing.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        self._closers: Dict[str, Dict[int, Tuple[int, int]]] = {}

    def closer_for(self, name: str, opener: int) -> Optional[Tuple[int, int]]:
        """Span of the closing tag paired with the opener at ``opener``, if any."""
        closers = self._closers.get(name)
        if closers is None:
            closers = self._closers[name] = self._pair(name)
        return closers.get(opener)

    def _pair(self, name: str) -> Dict[int, Tuple[int, int]]:
        text = self._text
        closers: Dict[int, Tuple[int, int]] = {}
        open_positions: List[int] = []
        for found in _compile_nesting_pattern(name).finditer(text):
            start, end = found.span()
            if found.group(1) is None:
                if text[start - 1 : start] == "[" and text[end : end + 1] == "]":
                    continue
                open_positions.append(start)
            elif open_positions:
                closers[open_positions.pop()] = (start, end)
        return closers


def _build_match(found: "re.Match[str]", nesting: _NestingIndex) -> Match:
    text = found.string
    escape_open, name, raw_attributes, slash, content, escape_close = found.groups()
    start, end = found.start(), found.end()

    if escape_open == "[" and escape_close == "]":
        tag_type = TagType.ESCAPED
    elif slash:
        tag_type = TagType.SINGLE
    elif content is None:
        tag_type = TagType.BARE
    else:
        tag_type = TagType.DOUBLE

    if tag_type == TagType.DOUBLE and not escape_open:
        # The pattern stops at the first closing tag, before group 6.
        first_close_end = end - len(escape_close)
        paired = nesting.closer_for(name, start)
        if paired is not None and paired[0] >= first_close_end:
            content = text[found.start(5) : paired[0]]
            end = paired[1]
            escape_close = ""

    return Match(
        tag_type=tag_type,
        name=name,
        raw_attributes=raw_attributes,
        content=content,
        escape_open=escape_open,
        escape_close=escape_close,
        raw=text[start:end],
        start=start,
        end=end,
    )


def iter_matches(text: str, names: Iterable[str]) -> Iterator[Match]:
    """Yield non-overlapping tag matches for ``names``, left to right."""
    pattern = build_pattern(names)
    nesting = _NestingIndex(text)
    cursor = 0
    while cursor < len(text):
        found = pattern.search(text, cursor)
        if found is None:
            return
        match = _build_match(found, nesting)
        yield match
        cursor = match.end


def parse_all(text: str, names: Iterable[str]) -> List[Match]:
    """Parse all tags for ``names`` from text in source order."""
    if "[" not in text:
        return []
    return list(iter_matches(text, names))


def parse_tag(tag_string: str, names: Optional[Iterable[str]] = None) -> Match:
    """
    Parse a string holding exactly one tag.

    When ``names`` is omitted, the first bracketed name in the string is used.
    """
    text = tag_string.strip()
    if not text.startswith("[") or not text.endswith("]"):
        raise ParseError(f"Invalid tag format: {tag_string}")
    if names is None:
        candidates = [name for name in find_tag_names(text) if is_valid_tag_name(name)]
        if not candidates:
            raise ParseError(f"No tag name found in: {tag_string}")
        names = candidates[:1]
    matches = parse_all(text, names)
    if len(matches) != 1 or matches[0].start != 0 or matches[0].end != len(text):
        raise ParseError(f"Tag must contain exactly one tag: {tag_string}")
    return matches[0]


def is_valid_tag(tag_string: str, names: Optional[Iterable[str]] = None) -> bool:
    """Check if a string is exactly one well-formed tag."""
    try:
        parse_tag(tag_string, names)
        return True
    except ParseError:
        return False


def _unescape_c(match: "re.Match[str]") -> str:
    sequence = match.group(1)
    if sequence[0] == "x" and len(sequence) > 1:
        return chr(int(sequence[1:], 16))
    if sequence[0] in "01234567":
        return chr(int(sequence, 8) & 0xFF)
    return _C_ESCAPES.get(sequence, sequence)


def strip_c_slashes(value: str) -> str:
    """Resolve C-style backslash escapes (``\\n``, ``\\x41``, ``\\101``, ``\\"``)."""
    if "\\" not in value:
        return value
    return _C_ESCAPE_RE.sub(_unescape_c, value)


def _reject_unclosed_markup(value: str) -> str:
    if "<" in value and _CLOSED_MARKUP_RE.fullmatch(value) is None:
        return ""
    return value


def parse_attributes(text: str) -> AttributeSet:
    """
    Parse the attribute substring of a tag.

    Returns:
        A dict keyed by lower-cased name when any ``name=value`` pair is
        present (bare values alongside it get integer keys), a list of bare
        values when there are no named pairs, or the left-trimmed input
        string when nothing matches at all.
    """
    text = _SPACE_LIKE_RE.sub(" ", text)
    matches = list(_ATTRIBUTE_RE.finditer(text))
    if not matches:
        return text.lstrip()

    entries: List[Tuple[Optional[str], str]] = []
    for found in matches:
        groups = found.groups()
        if groups[0]:
            entries.append((groups[0].lower(), strip_c_slashes(groups[1])))
        elif groups[2]:
            entries.append((groups[2].lower(), strip_c_slashes(groups[3])))
        elif groups[4]:
            entries.append((groups[4].lower(), strip_c_slashes(groups[5])))
        elif groups[6]:
            entries.append((None, strip_c_slashes(groups[6])))
        elif groups[7]:
            entries.append((None, strip_c_slashes(groups[7])))
        elif groups[8] is not None:
            entries.append((None, strip_c_slashes(groups[8])))

    if not any(key is not None for key, _ in entries):
        return [_reject_unclosed_markup(value) for _, value in entries]

    result: Dict[Union[str, int], str] = {}
    position = 0
    for key, value in entries:
        if key is None:
            result[position] = _reject_unclosed_markup(value)
            position += 1
        else:
            result[key] = _reject_unclosed_markup(value)
    return result


def _as_mapping(attributes: Any) -> Mapping[Any, Any]:
    if isinstance(attributes, Mapping):
        return attributes
    if isinstance(attributes, (list, tuple)):
        return dict(enumerate(attributes))
    return {}


def merge_defaults(defaults: Mapping[str, Any], attributes: Any) -> Dict[str, Any]:
    """
    Fill in defaults for a tag's attributes.

    The result holds exactly the keys of ``defaults``. A key present in
    ``attributes`` wins even when its value is empty; keys unknown to
    ``defaults`` are dropped.
    """
    supplied = _as_mapping(attributes)
    return {name: supplied[name] if name in supplied else default for name, default in defaults.items()}
