"""
Shared Prompt Helpers

Reusable functions for prompt construction so the assistant prompt and the
range prompt render conversation context the same way.
"""

import json
from typing import Any, Dict, Iterable, List, Optional


def _as_dict(message: Any) -> Dict[str, str]:
    if hasattr(message, "model_dump"):
        return message.model_dump()
    return {"role": message.get("role", ""), "content": message.get("content", "")}


def format_conversation_history(
    messages: Optional[Iterable[Any]],
    limit: Optional[int] = None,
) -> str:
    """
    Render conversation messages as compact JSON for a prompt.

    Args:
        messages: ConversationMessage models or {"role", "content"} dicts
        limit: Keep only the most recent ``limit`` messages

    Returns:
        JSON array string ("[]" when there is no history)

    Example:
        >>> format_conversation_history([{"role": "user", "content": "hi"}])
        '[{"role":"user","content":"hi"}]'
    """
    items: List[Dict[str, str]] = [_as_dict(m) for m in (messages or [])]
    if limit is not None:
        items = items[-limit:] if limit > 0 else []
    return json.dumps(items, ensure_ascii=False, separators=(",", ":"))
