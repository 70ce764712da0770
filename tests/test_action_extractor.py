"""
Tests for the Action Extractor.

Tests for:
- fenced, array, wrapper and bare-event action shapes
- de-duplication across fences
- the no-fence fallback (greedy span, then balanced span)
- malformed or irrelevant JSON being ignored
"""

import json

import pytest

from app.ai.actions.extractor import (
    CandidateKind,
    classify_candidate,
    extract_actions,
    find_candidates,
)


CREATE_LUNCH = {
    "action": "create_event",
    "event": {
        "summary": "Lunch",
        "start": {"date": "2025-07-01"},
        "end": {"date": "2025-07-01"},
    },
}
DELETE_STANDUP = {"action": "delete_event", "target": {"summary": "Daily Standup"}, "scope": "series"}


def fenced(payload) -> str:
    return f"```json\n{json.dumps(payload)}\n```"


# ===========================================================================
# SHAPES
# ===========================================================================

class TestShapes:
    """Every supported shape ends up as a flat action list."""

    def test_single_fenced_action(self):
        text = f"Sure, I'll add that.\n{fenced(CREATE_LUNCH)}"
        assert extract_actions(text) == [CREATE_LUNCH]

    def test_wrapper_is_flattened(self):
        text = f"Done.\n{fenced({'actions': [DELETE_STANDUP, CREATE_LUNCH]})}"

        actions = extract_actions(text)

        assert actions == [DELETE_STANDUP, CREATE_LUNCH]

    def test_array_of_actions(self):
        text = fenced([CREATE_LUNCH, DELETE_STANDUP])
        assert extract_actions(text) == [CREATE_LUNCH, DELETE_STANDUP]

    def test_bare_event_becomes_create(self):
        event = {"summary": "Gym", "start": {"dateTime": "2025-07-01T18:00:00Z"}}

        actions = extract_actions(fenced(event))

        assert actions == [{"action": "create_event", "event": event}]

    def test_type_field_is_accepted(self):
        payload = {"type": "delete_event", "target": {"id": "abc"}}
        assert extract_actions(fenced(payload)) == [payload]

    def test_untagged_fence(self):
        text = f"```\n{json.dumps(CREATE_LUNCH)}\n```"
        assert extract_actions(text) == [CREATE_LUNCH]

    def test_wrapper_inside_array(self):
        text = fenced([{"actions": [CREATE_LUNCH]}, DELETE_STANDUP])
        assert extract_actions(text) == [CREATE_LUNCH, DELETE_STANDUP]


# ===========================================================================
# DE-DUPLICATION
# ===========================================================================

class TestDeduplication:
    """The same action repeated in one reply collapses to one."""

    def test_same_action_in_two_fences(self):
        text = f"{fenced(CREATE_LUNCH)}\nAgain:\n{fenced(CREATE_LUNCH)}"
        assert extract_actions(text) == [CREATE_LUNCH]

    def test_key_order_does_not_matter(self):
        reordered = {"event": CREATE_LUNCH["event"], "action": "create_event"}
        text = f"{fenced(CREATE_LUNCH)}\n{fenced(reordered)}"

        assert len(extract_actions(text)) == 1

    def test_first_seen_order_is_kept(self):
        text = fenced([DELETE_STANDUP, CREATE_LUNCH, DELETE_STANDUP])
        assert extract_actions(text) == [DELETE_STANDUP, CREATE_LUNCH]


# ===========================================================================
# NO-FENCE FALLBACK
# ===========================================================================

class TestFallback:
    """Without fences, the first JSON-looking span is the only candidate."""

    def test_inline_object(self):
        text = f"I'll remove it: {json.dumps(DELETE_STANDUP)} - all done."
        assert extract_actions(text) == [DELETE_STANDUP]

    def test_greedy_span_that_does_not_parse_uses_balanced_span(self):
        text = f"Here: {json.dumps(DELETE_STANDUP)} and a stray }} here"
        assert extract_actions(text) == [DELETE_STANDUP]

    def test_brace_inside_string_value(self):
        payload = {"action": "update_event", "target": {"id": "x"}, "updates": {"summary": "a } b"}}
        text = f"Updating {json.dumps(payload)}"

        assert extract_actions(text) == [payload]

    def test_markdown_link_before_inline_action(self):
        text = (
            "The festival is listed on [the city site](https://example.org). "
            f"Adding it now: {json.dumps(CREATE_LUNCH)}"
        )
        assert extract_actions(text) == [CREATE_LUNCH]

    def test_unrelated_object_before_inline_action_is_skipped(self):
        text = f'Forecast {{"weather": "sunny"}} so {json.dumps(DELETE_STANDUP)} [done]'
        assert find_candidates(text) == [json.dumps(DELETE_STANDUP)]

    def test_fences_win_over_inline_json(self):
        text = f"{json.dumps(DELETE_STANDUP)}\n{fenced(CREATE_LUNCH)}"
        assert find_candidates(text) == [json.dumps(CREATE_LUNCH)]


# ===========================================================================
# NOTHING TO EXTRACT
# ===========================================================================

class TestNoActions:
    """Prose, malformed JSON and unrelated objects yield nothing."""

    @pytest.mark.parametrize("text", [
        "",
        "You have no events tomorrow.",
        "Your next action should be to rest.",
        '```json\n{"action": "create_event", "event": \n```',
        fenced({"weather": "sunny", "temperature": 24}),
        fenced("just a string"),
    ])
    def test_returns_empty_list(self, text):
        assert extract_actions(text) == []

    def test_malformed_fence_does_not_hide_good_one(self):
        text = '```json\n{"action": \n```\n' + fenced(CREATE_LUNCH)
        assert extract_actions(text) == [CREATE_LUNCH]


# ===========================================================================
# CLASSIFICATION
# ===========================================================================

class TestClassifyCandidate:
    """Candidates are classified in a fixed priority order."""

    def test_wrapper_beats_type(self):
        obj = {"type": "actions", "actions": []}
        assert classify_candidate(obj) is CandidateKind.WRAPPER

    def test_action_beats_event_shape(self):
        obj = {"action": "create_event", "summary": "x", "start": {}}
        assert classify_candidate(obj) is CandidateKind.ACTION

    def test_event_shape_needs_start_or_end(self):
        assert classify_candidate({"summary": "x", "end": {"date": "2025-01-01"}}) is CandidateKind.EVENT_SHAPE
        assert classify_candidate({"summary": "x"}) is CandidateKind.NOT_ACTION
