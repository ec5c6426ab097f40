"""Tests for the reasoning service JSON contract."""

import json

import pytest

from patchwise.llm.reasoning import ReasoningService, strip_code_fences
from patchwise.models import EditIntent, Proposal, QuestionIntent, SearchMatch
from patchwise.tools.errors import ReasoningServiceError, SchemaInvalidError


class ScriptedChat:
    """Returns canned assistant replies in order and records the prompts."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def __call__(self, messages, **kwargs):
        self.calls.append({"messages": messages, **kwargs})
        reply = self.replies.pop(0)
        if isinstance(reply, dict):
            return reply
        return {"message": {"role": "assistant", "content": reply}}

    def prompt(self, index):
        return self.calls[index]["messages"][-1]["content"]


EDIT_JSON = json.dumps({
    "intentType": "edit",
    "action": "modify_code",
    "target": "src/server.js",
    "description": "change the port",
})

MATCH = SearchMatch(file="src/server.js", line="app.listen(3000);", line_number=5,
                    file_type="javascript", relevance_score=39)


def _edit_intent():
    return EditIntent.model_validate_json(EDIT_JSON)


class TestStripCodeFences:

    def test_strips_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_plain_text_untouched(self):
        assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'


class TestClassifyIntent:

    def test_fenced_reply_is_parsed(self):
        chat = ScriptedChat(f"```json\n{EDIT_JSON}\n```")
        intent = ReasoningService(chat_fn=chat).classify_intent("use port 8080")
        assert isinstance(intent, EditIntent)
        assert intent.target == "src/server.js"

    def test_history_is_prefixed_to_prompt(self):
        chat = ScriptedChat('{"intentType": "question", "question": "why?"}')
        ReasoningService(chat_fn=chat).classify_intent("why?", "Recent conversation context:\n- a -> accepted\n")
        assert chat.prompt(0).startswith("Recent conversation context:")

    def test_single_corrective_retry(self):
        chat = ScriptedChat("not json at all", '{"intentType": "question", "question": "q"}')
        intent = ReasoningService(chat_fn=chat).classify_intent("q")

        assert isinstance(intent, QuestionIntent)
        assert len(chat.calls) == 2
        assert "not json at all" in chat.prompt(1)
        assert "previous output was invalid" in chat.prompt(1)

    def test_second_failure_raises_schema_invalid(self):
        chat = ScriptedChat('{"intentType": "nope"}', '{"intentType": "still nope"}')
        with pytest.raises(SchemaInvalidError) as exc_info:
            ReasoningService(chat_fn=chat).classify_intent("q")
        assert len(chat.calls) == 2
        assert "still nope" in exc_info.value.raw

    def test_transport_error_raises(self):
        chat = ScriptedChat({"error": "connection refused"})
        with pytest.raises(ReasoningServiceError, match="connection refused"):
            ReasoningService(chat_fn=chat).classify_intent("q")

    def test_model_and_provider_are_forwarded(self):
        chat = ScriptedChat('{"intentType": "question", "question": "q"}')
        ReasoningService(chat_fn=chat, model="m1", provider="openai").classify_intent("q")
        assert chat.calls[0]["model"] == "m1"
        assert chat.calls[0]["provider"] == "openai"


class TestProposals:

    def test_array_of_proposals(self):
        reply = json.dumps([
            {"file": "src/server.js", "original": "3000", "replacement": "8080", "lineNumber": 5, "explanation": "port"},
        ])
        chat = ScriptedChat(reply)
        proposals = ReasoningService(chat_fn=chat).propose_edits(_edit_intent(), MATCH, "    5| app.listen(3000);")

        assert proposals == [Proposal(file="src/server.js", original="3000", replacement="8080", line_number=5, explanation="port")]
        assert "app.listen(3000);" in chat.prompt(0)
        assert '"lineNumber": 5' in chat.prompt(0)

    def test_single_object_is_accepted(self):
        chat = ScriptedChat('{"file": "a.py", "replacement": "x = 1", "lineNumber": null}')
        [proposal] = ReasoningService(chat_fn=chat).propose_edits(_edit_intent(), MATCH)
        assert proposal.is_append

    def test_empty_array_triggers_retry(self):
        chat = ScriptedChat("[]", '[{"file": "a.py", "replacement": "x = 1"}]')
        proposals = ReasoningService(chat_fn=chat).propose_edits(_edit_intent(), MATCH)
        assert len(proposals) == 1
        assert len(chat.calls) == 2

    def test_wrong_types_raise_after_retry(self):
        bad = '[{"file": "a.py", "replacement": "x", "lineNumber": "five"}]'
        chat = ScriptedChat(bad, bad)
        with pytest.raises(SchemaInvalidError):
            ReasoningService(chat_fn=chat).propose_edits(_edit_intent(), MATCH)

    def test_revision_includes_feedback_and_previous(self):
        previous = [Proposal(file="a.py", replacement="x = 1")]
        chat = ScriptedChat('[{"file": "a.py", "replacement": "x = 2"}]')
        [revised] = ReasoningService(chat_fn=chat).revise_proposals("use 2 instead", _edit_intent(), MATCH, previous)

        assert revised.replacement == "x = 2"
        assert "use 2 instead" in chat.prompt(0)
        assert '"replacement": "x = 1"' in chat.prompt(0)


class TestValidateBatch:

    def test_parallel_results(self):
        chat = ScriptedChat('[{"isValid": true, "warnings": ["hmm"]}, {"isValid": false, "errors": ["bad"]}]')
        results = ReasoningService(chat_fn=chat).validate_batch([
            Proposal(file="a.py", replacement="1"),
            Proposal(file="b.py", replacement="2"),
        ])
        assert [r.is_valid for r in results] == [True, False]
        assert results[0].warnings == ["hmm"]
        assert results[1].errors == ["bad"]

    def test_invalid_without_reason_gets_one(self):
        chat = ScriptedChat('[{"isValid": false}]')
        [result] = ReasoningService(chat_fn=chat).validate_batch([Proposal(file="a.py", replacement="1")])
        assert not result.is_valid
        assert result.errors

    def test_unparseable_reply_returns_none(self):
        chat = ScriptedChat("garbage", "more garbage")
        assert ReasoningService(chat_fn=chat).validate_batch([Proposal(file="a.py", replacement="1")]) is None
        assert len(chat.calls) == 2

    def test_transport_error_returns_none(self):
        chat = ScriptedChat({"error": "connection refused"})
        assert ReasoningService(chat_fn=chat).validate_batch([Proposal(file="a.py", replacement="1")]) is None

    def test_long_content_is_clipped_in_prompt(self):
        chat = ScriptedChat('[{"isValid": true}]')
        ReasoningService(chat_fn=chat).validate_batch([Proposal(file="a.py", replacement="y" * 5000)])
        assert "more chars]" in chat.prompt(0)


def test_answer_question_returns_text():
    chat = ScriptedChat("  It starts the server.  ")
    assert ReasoningService(chat_fn=chat).answer_question("what does it do?") == "It starts the server."
