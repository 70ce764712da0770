"""
Text Sanitizer - strip action JSON from the prose shown to the user.

The assistant reply is rendered as markdown in the chat. Anything that is
(or could be read as) action JSON must disappear from it, while sentences,
bullets, headers and emphasis survive.

Passes, applied in order:
1. drop fenced code blocks (and any dangling fence marker)
2. drop brace/bracket spans carrying an "action" key
3. drop spans carrying an "actions": [...] wrapper
4. drop leftover zoned-time objects ("dateTime" + "timeZone")
5. drop lines made only of JSON punctuation
6. collapse blank-line runs, trim commas/whitespace at both ends

Every pass only deletes characters, and sanitize() repeats the passes until
the text stops changing, so sanitize(sanitize(s)) == sanitize(s).
"""

import json
import re
from typing import Callable

from app.ai.actions.scanning import iter_balanced_spans


_FENCED_BLOCK_RE = re.compile(r"```.*?```", re.DOTALL)
_FENCE_MARKER_RE = re.compile(r"```[A-Za-z]*")

_ACTION_KEY_RE = re.compile(r'"action"\s*:')
_ACTIONS_WRAPPER_RE = re.compile(r'"actions"\s*:\s*\[')

_PUNCTUATION_LINE_RE = re.compile(r"^\s*[\[\]{},]+\s*$")
_BLANK_RUN_RE = re.compile(r"\n{3,}")
_EDGE_RE = re.compile(r"^[,\s]+|[,\s]+$")

# Bullet marker followed by 2+ spaces ("-   item")
_BULLET_SPACING_RE = re.compile(r"(^|\n)([-*+])[ \t]{2,}")
# Inline list glued to a colon ("Options: * one")
_INLINE_BULLET_RE = re.compile(r"(:)\s+(\*)\s")


def _strip_spans(text: str, predicate: Callable[[str], bool]) -> str:
    """
    Remove every top-level {...}/[...] span whose text satisfies predicate.

    A matching "[...]" span that is not JSON is prose in brackets (a
    markdown link label, an aside); only the JSON inside it is removed.
    """
    pieces = []
    cursor = 0
    for start, end in iter_balanced_spans(text):
        span = text[start:end]
        if not predicate(span):
            continue
        pieces.append(text[cursor:start])
        if span.startswith("[") and not _parses(span):
            pieces.append("[" + _strip_spans(span[1:-1], predicate) + "]")
        cursor = end
    pieces.append(text[cursor:])
    return "".join(pieces)


def _parses(span: str) -> bool:
    try:
        json.loads(span)
    except ValueError:
        return False
    return True


def _is_action_span(span: str) -> bool:
    return _ACTION_KEY_RE.search(span) is not None


def _is_wrapper_span(span: str) -> bool:
    return _ACTIONS_WRAPPER_RE.search(span) is not None


def _is_zoned_time_span(span: str) -> bool:
    return '"dateTime"' in span and '"timeZone"' in span


def _sanitize_once(text: str) -> str:
    cleaned = _FENCED_BLOCK_RE.sub("", text)
    cleaned = _FENCE_MARKER_RE.sub("", cleaned)

    cleaned = _strip_spans(cleaned, _is_action_span)
    cleaned = _strip_spans(cleaned, _is_wrapper_span)
    cleaned = _strip_spans(cleaned, _is_zoned_time_span)

    lines = []
    for line in cleaned.split("\n"):
        if _PUNCTUATION_LINE_RE.match(line):
            continue
        lines.append("" if not line.strip() else line)
    cleaned = "\n".join(lines)

    cleaned = _BLANK_RUN_RE.sub("\n\n", cleaned)
    return _EDGE_RE.sub("", cleaned)


def sanitize(text: str) -> str:
    """
    Remove action JSON artifacts from an assistant reply.

    Args:
        text: Raw model reply

    Returns:
        Prose safe to show the user. Sentences that merely mention the word
        "action" are kept; only JSON-shaped spans are removed.
    """
    if not text:
        return ""

    current = text
    while True:
        cleaned = _sanitize_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned


def tidy_markdown(text: str) -> str:
    """
    Small markdown fixes applied to sanitized prose before streaming.

    - "-   item" becomes "- item"
    - "Options: * a" puts the bullet on its own line
    - trailing whitespace is dropped
    """
    tidied = _BULLET_SPACING_RE.sub(lambda m: f"{m.group(1)}{m.group(2)} ", text)
    tidied = _INLINE_BULLET_RE.sub(lambda m: f"{m.group(1)}\n{m.group(2)} ", tidied)
    return tidied.rstrip()
