"""
Action Extractor - pull calendar actions out of an assistant reply.

The model is asked to embed calendar mutations as JSON, but it does so in
many shapes:

- one action object:          {"action": "create_event", ...}
- an array of actions:        [{"action": ...}, {"action": ...}]
- a wrapper object:           {"actions": [...]}
- a bare event (implicit create): {"summary": "Lunch", "start": {...}, ...}

and often inside ```json fences, sometimes repeating the same action in
several fences. extract_actions() normalizes all of that into one flat,
de-duplicated list in first-seen order. Payloads are never modified; the
only transformation is wrapping a bare event as a create_event action.

Malformed JSON is expected from an LLM and is silently dropped.
"""

import json
import logging
import re
from enum import Enum
from typing import Any, Dict, List, Set

from app.ai.actions.scanning import greedy_span, iter_balanced_spans


logger = logging.getLogger("calendar_assistant.ai.extractor")

# ```json ... ``` or ``` ... ``` (the fence must end its opening line)
_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\r?\n(.*?)```", re.DOTALL | re.IGNORECASE)


class CandidateKind(str, Enum):
    """What a parsed JSON object turned out to be."""
    WRAPPER = "wrapper"          # {"actions": [...]}
    ACTION = "action"            # has an "action" (or "type") tag
    EVENT_SHAPE = "event_shape"  # bare event, treated as an implicit create
    NOT_ACTION = "not_action"


def classify_candidate(obj: Dict[str, Any]) -> CandidateKind:
    """
    Decide what a parsed JSON object is, in fixed priority order.

    The wrapper check comes first so that an object like
    {"type": "actions", "actions": [...]} yields its members, not itself.
    """
    if isinstance(obj.get("actions"), list):
        return CandidateKind.WRAPPER
    if obj.get("action") or obj.get("type"):
        return CandidateKind.ACTION
    if obj.get("summary") and (obj.get("start") or obj.get("end")):
        return CandidateKind.EVENT_SHAPE
    return CandidateKind.NOT_ACTION


def _carries_actions(value: Any) -> bool:
    if isinstance(value, list):
        return any(_carries_actions(item) for item in value)
    return isinstance(value, dict) and classify_candidate(value) is not CandidateKind.NOT_ACTION


def find_candidates(text: str) -> List[str]:
    """
    Collect JSON candidate strings from a reply.

    Fenced blocks win. Only when there are none does a single unfenced
    span become the candidate: the greedy first-opener-to-last-closer span
    when it parses, else the first balanced span that parses and carries
    an action. Markdown links ("[site](url)") ahead of the JSON are skipped
    that way.
    """
    fenced = [m.group(1).strip() for m in _FENCE_RE.finditer(text)]
    if fenced:
        return fenced

    span = greedy_span(text)
    if span is None:
        return []

    candidate = text[span[0]:span[1]]
    if _parses(candidate):
        return [candidate]

    for start, end in iter_balanced_spans(text):
        candidate = text[start:end]
        try:
            parsed = json.loads(candidate)
        except ValueError:
            continue
        if _carries_actions(parsed):
            return [candidate]
    return []


def extract_actions(text: str) -> List[Dict[str, Any]]:
    """
    Extract calendar actions embedded in free text.

    Args:
        text: Full assistant reply

    Returns:
        Flat list of action payloads, de-duplicated by canonical JSON,
        in first-seen order. Empty when the text carries no actions.
    """
    if not text:
        return []

    actions: List[Dict[str, Any]] = []
    seen: Set[str] = set()

    def remember(action: Dict[str, Any]) -> None:
        key = json.dumps(action, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
        if key in seen:
            return
        seen.add(key)
        actions.append(action)

    def consider(value: Any) -> None:
        if isinstance(value, list):
            for item in value:
                consider(item)
            return
        if not isinstance(value, dict):
            return

        kind = classify_candidate(value)
        if kind is CandidateKind.WRAPPER:
            for item in value["actions"]:
                consider(item)
        elif kind is CandidateKind.ACTION:
            remember(value)
        elif kind is CandidateKind.EVENT_SHAPE:
            remember({"action": "create_event", "event": value})

    for candidate in find_candidates(text):
        try:
            parsed = json.loads(candidate)
        except ValueError:
            logger.debug(f"Discarding unparseable JSON candidate ({len(candidate)} chars)")
            continue
        consider(parsed)

    return actions


def _parses(candidate: str) -> bool:
    try:
        json.loads(candidate)
    except ValueError:
        return False
    return True
