"""Tests for REPL line handling and the CLI entry point."""

import pytest

from patchwise.main import build_parser
from patchwise.memory import ConversationHistory, Outcome
from patchwise.terminal.repl import handle_line, repl_mode


class RecordingOrchestrator:
    """Stands in for ActionOrchestrator at the REPL seam."""

    def __init__(self, history=None):
        self.history = history or ConversationHistory(max_entries=10)
        self.handled = []
        self.output = print

    def handle(self, text):
        self.handled.append(text)


class TestHandleLine:

    def test_exit_commands_end_session(self):
        orchestrator = RecordingOrchestrator()
        lines = []
        assert handle_line("exit", orchestrator, lines.append) is False
        assert handle_line("  QUIT ", orchestrator, lines.append) is False
        assert orchestrator.handled == []

    def test_blank_lines_are_ignored(self):
        orchestrator = RecordingOrchestrator()
        assert handle_line("   ", orchestrator, lambda _: None) is True
        assert orchestrator.handled == []

    def test_requests_go_to_orchestrator(self):
        orchestrator = RecordingOrchestrator()
        assert handle_line("  add a health route ", orchestrator, lambda _: None) is True
        assert orchestrator.handled == ["add a health route"]

    def test_history_command(self):
        history = ConversationHistory(max_entries=10)
        history.add("install express", outcome=Outcome.ACCEPTED)
        orchestrator = RecordingOrchestrator(history)
        lines = []

        handle_line("history", orchestrator, lines.append)

        assert any("install express" in line and "accepted" in line for line in lines)
        assert orchestrator.handled == []

    def test_empty_history(self):
        lines = []
        handle_line("history", RecordingOrchestrator(), lines.append)
        assert lines == ["No conversation history yet."]

    def test_patterns_command(self):
        history = ConversationHistory(max_entries=10)
        history.add("edit", outcome=Outcome.ACCEPTED, files=["src/app.ts"])
        history.add("edit", outcome=Outcome.REJECTED, context="too verbose")
        lines = []

        handle_line("patterns", RecordingOrchestrator(history), lines.append)

        text = "\n".join(lines)
        assert "User frequently works with .ts files" in text
        assert "too verbose" in text

    def test_pasted_error_is_parsed_not_sent(self):
        orchestrator = RecordingOrchestrator()
        lines = []
        traceback = (
            "Traceback (most recent call last):\n"
            '  File "app/main.py", line 3, in <module>\n'
            "ModuleNotFoundError: No module named 'flask'"
        )

        handle_line(traceback, orchestrator, lines.append)

        text = "\n".join(lines)
        assert orchestrator.handled == []
        assert "Detected import error" in text
        assert "app/main.py:3" in text
        assert "Install the module with pip" in text


def test_repl_reads_until_exit():
    orchestrator = RecordingOrchestrator()
    orchestrator.output = lambda _: None
    inputs = iter(["fix the tests", "exit", "never reached"])

    repl_mode(orchestrator, read_input=lambda prompt: next(inputs))

    assert orchestrator.handled == ["fix the tests"]


def test_repl_stops_on_eof():
    orchestrator = RecordingOrchestrator()

    def eof(prompt):
        raise EOFError

    repl_mode(orchestrator, read_input=eof)
    assert orchestrator.handled == []


def test_cli_parser():
    args = build_parser().parse_args(["--safety", "relaxed", "-y", "--provider", "openai", "add", "logging"])
    assert args.request == ["add", "logging"]
    assert args.safety == "relaxed"
    assert args.yes is True
    assert args.provider == "openai"


def test_one_shot_question_exits_zero(project, monkeypatch, capsys):
    from patchwise import main as main_module
    from patchwise.models import QuestionIntent

    class CannedReasoning:
        def __init__(self, model=None, provider=None):
            pass

        def classify_intent(self, user_input, history_context=""):
            return QuestionIntent(intent_type="question", question=user_input)

        def answer_question(self, question, history_context=""):
            return "It is an express app."

    monkeypatch.chdir(project)
    monkeypatch.setattr(main_module, "ReasoningService", CannedReasoning)

    with pytest.raises(SystemExit) as exc_info:
        main_module.main(["what", "is", "this?"])

    assert exc_info.value.code == 0
    assert "It is an express app." in capsys.readouterr().out
