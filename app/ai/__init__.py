"""
AI Module - The language side of the calendar assistant.

Everything that deals with model input or model output lives here. The
services layer composes these pieces into the request flows.

Module Structure:
================
- providers/   Gemini client behind the AIProvider interface
- prompts/     Assistant prompt (action schema + guardrails) and range prompt
- schemas/     Typed calendar actions
- actions/     Action extraction and prose sanitization
- ranges/      Date-range validation, clamping and heuristic fallback
- monitoring/  Structured AI logging

Flow of one chat turn:
=====================
    query ──► ranges (which window?) ──► events fetched
                                           │
    prompt (events + schema + history) ◄───┘
        │
        ▼
    Gemini reply ──► actions.extract_actions ──► actions frame
                └──► actions.sanitize ─────────► prose frames
"""
