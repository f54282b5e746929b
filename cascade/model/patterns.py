"""
Path Pattern Matching
=====================

Compiles path globs into regular expressions for node ownership checks.

Supported Syntax:
-----------------
- ``*``      any run of characters within one path segment
- ``**``     zero or more whole path segments (must be a segment on its own)
- ``?``      exactly one character other than ``/``
- ``[abc]``  character class, with ranges (``[a-z]``) and negation (``[!a-z]``)

Anything else matches literally. Separators are always ``/``.

Design Decisions:
-----------------
1. fnmatch is not used because its ``*`` crosses ``/`` and it has no ``**``
2. Malformed patterns raise PatternError; callers decide whether to swallow it
3. Compiled patterns are cached since the same globs are checked for every
   changed path
"""

import re
from functools import lru_cache


class PatternError(ValueError):
    """Raised when a glob pattern cannot be compiled."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid glob pattern '{pattern}': {reason}")


def _translate_class(pattern: str, segment: str, start: int) -> tuple[str, int]:
    """Translate a ``[...]`` class starting at ``segment[start]``.

    Returns:
        Tuple of (regex fragment, index just past the closing bracket)
    """
    i = start + 1
    negate = False
    if i < len(segment) and segment[i] == "!":
        negate = True
        i += 1

    items = []
    first = True
    while i < len(segment):
        char = segment[i]
        # A ']' right after the opening bracket is a literal member
        if char == "]" and not first:
            break
        first = False
        if i + 2 < len(segment) and segment[i + 1] == "-" and segment[i + 2] != "]":
            low, high = char, segment[i + 2]
            if low > high:
                raise PatternError(pattern, f"invalid range '{low}-{high}'")
            items.append(f"{re.escape(low)}-{re.escape(high)}")
            i += 3
            continue
        items.append(re.escape(char))
        i += 1
    else:
        raise PatternError(pattern, "unclosed character class")

    body = "".join(items)
    if negate:
        return f"[^/{body}]", i + 1
    return f"(?![/])[{body}]", i + 1


def _translate_segment(pattern: str, segment: str) -> str:
    if "**" in segment:
        raise PatternError(pattern, "recursive wildcards must form a single path segment")

    parts = []
    i = 0
    while i < len(segment):
        char = segment[i]
        if char == "*":
            parts.append("[^/]*")
            i += 1
        elif char == "?":
            parts.append("[^/]")
            i += 1
        elif char == "[":
            fragment, i = _translate_class(pattern, segment, i)
            parts.append(fragment)
        else:
            parts.append(re.escape(char))
            i += 1
    return "".join(parts)


def translate(pattern: str) -> str:
    """Translate a glob pattern into an anchored regular expression source.

    Args:
        pattern: Glob pattern using ``/`` separators

    Returns:
        Regex source suitable for ``re.fullmatch``

    Raises:
        PatternError: If the pattern is malformed
    """
    segments = pattern.split("/")
    last = len(segments) - 1
    regex = []

    for index, segment in enumerate(segments):
        if segment == "**":
            if index == last:
                regex.append(".*")
            else:
                # Swallows its own trailing separator so "a/**/b" matches "a/b"
                regex.append("(?:.*/)?")
            continue

        regex.append(_translate_segment(pattern, segment))
        if index != last:
            regex.append("/")

    return "".join(regex)


@lru_cache(maxsize=4096)
def compile_pattern(pattern: str) -> re.Pattern:
    """Compile (and cache) a glob pattern.

    Raises:
        PatternError: If the pattern is malformed
    """
    return re.compile(translate(pattern), re.DOTALL)


def matches(pattern: str, path: str) -> bool:
    """Check whether ``path`` matches the glob ``pattern``.

    Raises:
        PatternError: If the pattern is malformed
    """
    return compile_pattern(pattern).fullmatch(path) is not None
