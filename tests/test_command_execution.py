"""Tests for captured and streamed command execution."""

import sys
from pathlib import Path

import pytest

from patchwise import config
from patchwise.tools.command_runner import (
    EXIT_INTERRUPTED,
    EXIT_NOT_FOUND,
    EXIT_TIMEOUT,
    execute_command,
    run_command,
    stream_command,
)


PY = f'"{sys.executable}"'


def py(code: str) -> str:
    return f'{PY} -u -c "{code}"'


class TestCapturedExecution:

    def test_success_captures_stdout(self, tmp_path: Path):
        result = run_command(py("print('hello')"), tmp_path)
        assert result.exit_code == 0
        assert result.ok
        assert result.stdout.strip() == "hello"
        assert result.timed_out is False

    def test_non_zero_exit_is_reported(self, tmp_path: Path):
        result = run_command(py("raise SystemExit(3)"), tmp_path)
        assert result.exit_code == 3
        assert not result.ok

    def test_stderr_is_captured(self, tmp_path: Path):
        result = run_command(py("__import__('sys').stderr.write('oops')"), tmp_path)
        assert result.stderr == "oops"

    def test_runs_in_requested_directory(self, tmp_path: Path):
        result = run_command(py("print(__import__('os').getcwd())"), tmp_path)
        assert Path(result.stdout.strip()).resolve() == tmp_path.resolve()

    def test_missing_executable_is_127(self, tmp_path: Path):
        result = run_command("definitely-not-a-real-binary-xyz --help", tmp_path)
        assert result.exit_code == EXIT_NOT_FOUND
        assert "not found" in result.stderr

    def test_timeout_kills_and_reports(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(config, "TERMINATE_GRACE_SECONDS", 0.5)
        result = run_command(py("__import__('time').sleep(30)"), tmp_path, timeout=0.5)
        assert result.timed_out is True
        assert result.exit_code == EXIT_TIMEOUT
        assert "timeout" in result.stderr

    def test_output_is_tail_truncated(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(config, "OUTPUT_LIMIT", 10)
        result = run_command(py("print('a' * 50 + 'z' * 9)"), tmp_path)
        assert result.stdout.startswith("...[truncated]...")
        assert result.stdout.endswith("z" * 9 + "\n")


class TestExecuteCommand:

    def test_pwd_returns_known_cwd(self, tmp_path: Path):
        result = execute_command("pwd", tmp_path)
        assert result.stdout == str(tmp_path)
        assert result.exit_code == 0

    def test_never_raises_on_parse_error(self, tmp_path: Path):
        result = execute_command("echo 'unterminated", tmp_path)
        assert result.exit_code != 0
        assert "parse" in result.stderr

    def test_interactive_mode_echoes_chunks(self, tmp_path: Path):
        chunks = []
        result = execute_command(py("print('streamed')"), tmp_path, interactive=True, echo=chunks.append)
        assert result.exit_code == 0
        assert b"streamed" in b"".join(c.data for c in chunks)
        assert "streamed" in result.stdout

    def test_interrupt_during_stream_yields_130(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(config, "TERMINATE_GRACE_SECONDS", 0.5)

        def interrupt(chunk):
            raise KeyboardInterrupt

        code = "print('start'); __import__('time').sleep(30)"
        result = execute_command(f"{PY} -u -c \"{code}\"", tmp_path, timeout=30, interactive=True, echo=interrupt)
        assert result.exit_code == EXIT_INTERRUPTED


class TestStreaming:

    def test_chunks_then_result(self, tmp_path: Path):
        stream = stream_command(py("print('one'); print('two')"), tmp_path)
        data = b"".join(chunk.data for chunk in stream if chunk.stream == "stdout")
        assert data.splitlines() == [b"one", b"two"]
        assert stream.result.exit_code == 0

    def test_stream_timeout_escalates(self, tmp_path: Path):
        stream = stream_command(py("__import__('time').sleep(30)"), tmp_path, timeout=0.5, grace=0.5)
        list(stream)
        assert stream.result.timed_out is True
        assert stream.result.exit_code == EXIT_TIMEOUT

    def test_cancel_terminates(self, tmp_path: Path):
        stream = stream_command(py("__import__('time').sleep(30)"), tmp_path, timeout=30, grace=0.5)
        stream.cancel()
        list(stream)
        assert stream.result.exit_code == EXIT_INTERRUPTED

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX exit codes")
    def test_missing_executable_has_result_without_iterating(self, tmp_path: Path):
        stream = stream_command("definitely-not-a-real-binary-xyz", tmp_path)
        assert list(stream) == []
        assert stream.result.exit_code == EXIT_NOT_FOUND
