"""
Brace Scanning - locate JSON-looking spans inside free text.

Model replies mix prose and JSON. Regular expressions cannot match nested
braces, so these helpers walk the text with a bracket stack instead. Double
quoted strings are honoured inside a span, so a "}" inside a summary does
not close the object early.
"""

from typing import Iterator, Optional, Tuple

_CLOSERS = {"{": "}", "[": "]"}


def find_balanced_end(text: str, start: int) -> Optional[int]:
    """
    Find the index of the bracket closing the one at ``text[start]``.

    Args:
        text: Text to scan
        start: Index of an opening "{" or "["

    Returns:
        Index of the matching closer, or None when the span never closes
        or a closer of the wrong kind appears first.
    """
    if start >= len(text) or text[start] not in _CLOSERS:
        return None

    stack = []
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]

        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in "}]":
            if not stack or stack.pop() != ch:
                return None
            if not stack:
                return i

    return None


def iter_balanced_spans(text: str) -> Iterator[Tuple[int, int]]:
    """
    Yield ``(start, end)`` slices of top-level balanced {...} / [...] spans.

    Openers that never close are skipped, and scanning resumes at the next
    character, so a stray "{" in prose does not hide a later object.
    """
    i = 0
    while i < len(text):
        if text[i] in _CLOSERS:
            end = find_balanced_end(text, i)
            if end is not None:
                yield i, end + 1
                i = end + 1
                continue
        i += 1


def greedy_span(text: str) -> Optional[Tuple[int, int]]:
    """
    First opener through the last closer of the same kind.

    Mirrors a greedy ``\\{.*\\}`` / ``\\[.*\\]`` match: the first "{" or "["
    that has a closer of its kind somewhere after it wins.
    """
    for i, ch in enumerate(text):
        if ch in _CLOSERS:
            end = text.rfind(_CLOSERS[ch])
            if end > i:
                return i, end + 1
    return None
