"""
AI Actions Module - turn an assistant reply into actions + clean prose.

This module provides:
- extract_actions: calendar actions embedded in the reply
- sanitize: the reply with every action JSON artifact removed
- tidy_markdown: small list-formatting fixes for the chat renderer
"""

from app.ai.actions.extractor import (
    CandidateKind,
    classify_candidate,
    extract_actions,
    find_candidates,
)
from app.ai.actions.sanitizer import sanitize, tidy_markdown

__all__ = [
    "CandidateKind",
    "classify_candidate",
    "extract_actions",
    "find_candidates",
    "sanitize",
    "tidy_markdown",
]
