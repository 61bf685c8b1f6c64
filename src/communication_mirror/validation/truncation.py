"""
Truncation detection over decoded output.

A string looks truncated when:
- it ends with a letter immediately followed by `{`, `[` or `]`
  (e.g. "The plan is making{"), or
- it has more `{` than `}` (or more `[` than `]`) and ends on an opening
  bracket, optionally followed by whitespace.
"""

import re
from typing import Any, Optional, Sequence

from communication_mirror.validation.exceptions import PathPart, TruncationError

_LETTER_THEN_BRACKET = re.compile(r"[a-zA-Z][{\[\]]$")
_TRAILING_OPEN_BRACKET = re.compile(r"[{\[]\s*$")


def is_truncated(text: str) -> bool:
    """Return True if `text` looks cut off mid-token or mid-structure."""
    if not text or not text.strip():
        return False

    trimmed = text.strip()
    if _LETTER_THEN_BRACKET.search(trimmed):
        return True

    unbalanced = (
        trimmed.count("{") > trimmed.count("}")
        or trimmed.count("[") > trimmed.count("]")
    )
    return unbalanced and bool(_TRAILING_OPEN_BRACKET.search(trimmed))


def find_truncated_leaf(
    value: Any, path: Sequence[PathPart] = ()
) -> Optional[tuple[tuple[PathPart, ...], str]]:
    """
    Depth-first search for the first truncated string leaf.

    Returns:
        (path, text) of the first flagged leaf, or None
    """
    if isinstance(value, str):
        return (tuple(path), value) if is_truncated(value) else None

    if isinstance(value, list):
        for index, item in enumerate(value):
            found = find_truncated_leaf(item, (*path, index))
            if found:
                return found

    elif isinstance(value, dict):
        for key, item in value.items():
            found = find_truncated_leaf(item, (*path, key))
            if found:
                return found

    return None


def ensure_not_truncated(value: Any) -> None:
    """
    Raises:
        TruncationError: Naming the path and fragment of the first flagged leaf
    """
    found = find_truncated_leaf(value)
    if found:
        path, fragment = found
        raise TruncationError(path, fragment)
