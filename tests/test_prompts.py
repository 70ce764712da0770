"""
Tests for prompt construction.
"""

import json
from datetime import date

from app.ai.prompts import (
    build_assistant_prompt,
    build_assistant_system_prompt,
    build_range_prompt,
    format_conversation_history,
)
from app.schemas.assistant import ConversationMessage


def test_history_accepts_models_and_dicts():
    history = [
        ConversationMessage(role="user", content="hi"),
        {"role": "assistant", "content": "hello"},
    ]
    assert json.loads(format_conversation_history(history)) == [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
    ]


def test_history_limit_keeps_latest():
    history = [{"role": "user", "content": str(i)} for i in range(10)]
    assert [m["content"] for m in json.loads(format_conversation_history(history, limit=3))] == ["7", "8", "9"]
    assert format_conversation_history(None) == "[]"


def test_range_prompt_truncates_context():
    context = [{"role": "user", "content": f"m{i}"} for i in range(9)]
    prompt = build_range_prompt("next week?", date(2025, 6, 15), context)

    assert prompt.startswith("Today: 2025-06-15\nUser query: next week?")
    assert '"m2"' not in prompt
    assert '"m3"' in prompt


def test_assistant_prompts(known_events):
    system = build_assistant_system_prompt(date(2025, 7, 1), "Europe/Paris")
    assert "Today is 2025-07-01 (Tuesday)" in system
    assert "Europe/Paris" in system

    prompt = build_assistant_prompt("What's on?", known_events, [])
    assert '"recurringEventId":"evt-standup"' in prompt
    assert prompt.endswith("User query: What's on?\n\nProvide an assistant reply.")
