"""Tests for pasted error classification."""

import pytest

from patchwise.tools.error_parser import looks_like_error, parse_error, suggest_fix


PY_TRACEBACK = """Traceback (most recent call last):
  File "/app/main.py", line 10, in <module>
    run()
  File "/app/service/handler.py", line 42, in run
    import missing_pkg
ModuleNotFoundError: No module named 'missing_pkg'
"""

TS_ERROR = "src/index.ts:7:12 - error TS2339: Property 'foo' does not exist on type 'Bar'."

NODE_ERROR = """Error: Cannot find module 'express'
Require stack:
- /app/server.js
code: 'MODULE_NOT_FOUND'
"""


class TestParseError:

    def test_python_traceback_uses_innermost_frame(self):
        parsed = parse_error(PY_TRACEBACK)
        assert parsed.type == "import"
        assert parsed.file == "/app/service/handler.py"
        assert parsed.line == 42
        assert any("pip" in s for s in parsed.suggestions)

    def test_typescript_property_error(self):
        parsed = parse_error(TS_ERROR)
        assert parsed.type == "type"
        assert parsed.file == "src/index.ts"
        assert parsed.line == 7
        assert any("property name" in s for s in parsed.suggestions)

    def test_node_missing_module(self):
        parsed = parse_error(NODE_ERROR)
        assert parsed.type == "import"
        assert any("npm install" in s for s in parsed.suggestions)

    def test_syntax_error(self):
        parsed = parse_error('  File "app.py", line 3\n    def broken(:\nSyntaxError: invalid syntax')
        assert parsed.type == "syntax"
        assert parsed.line == 3

    def test_unknown_text(self):
        parsed = parse_error("something odd happened")
        assert parsed.type == "unknown"
        assert parsed.file is None
        assert suggest_fix(parsed) == "Error detected: something odd happened"


class TestSuggestFix:

    @pytest.mark.parametrize("text,fragment", [
        (PY_TRACEBACK, "Missing dependency"),
        (TS_ERROR, "Type error"),
        ("SyntaxError: bad", "Syntax error"),
        ("Traceback (most recent call last):\nTypeError: nope", "Runtime error"),
    ])
    def test_messages_by_type(self, text, fragment):
        assert fragment in suggest_fix(parse_error(text))


class TestLooksLikeError:

    def test_multiline_traceback(self):
        assert looks_like_error(PY_TRACEBACK)

    def test_single_line_with_location(self):
        assert looks_like_error(TS_ERROR)

    @pytest.mark.parametrize("text", [
        "add error handling to the login route",
        "fix the TypeError in utils",
    ])
    def test_requests_are_not_errors(self, text):
        assert not looks_like_error(text)
