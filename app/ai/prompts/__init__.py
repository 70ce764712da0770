"""
Prompts Module - Centralized prompt templates for AI interactions.

This module contains all prompt templates used by the assistant.
Keeping prompts centralized makes them:
- Easy to update and iterate
- Consistent across the application
- Testable and version-controlled
"""

from app.ai.prompts.assistant_prompts import (
    ACTION_SCHEMA_PROMPT,
    ASSISTANT_GUIDELINES,
    build_assistant_prompt,
    build_assistant_system_prompt,
)
from app.ai.prompts.range_prompts import (
    RANGE_SYSTEM_PROMPT,
    build_range_prompt,
)
from app.ai.prompts.helpers import format_conversation_history

__all__ = [
    "ACTION_SCHEMA_PROMPT",
    "ASSISTANT_GUIDELINES",
    "build_assistant_prompt",
    "build_assistant_system_prompt",
    "RANGE_SYSTEM_PROMPT",
    "build_range_prompt",
    "format_conversation_history",
]
