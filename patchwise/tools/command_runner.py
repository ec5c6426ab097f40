"""
Shell command classification and execution.

Classification:
- strict mode (default) rejects chaining, substitution, shell operators,
  sudo, destructive commands (also behind wrappers such as env or xargs),
  find -delete/-exec, commands outside the allowlist, and package-manager
  script runners
- relaxed and off modes accept every command; they are opt-in through
  PATCHWISE_SHELL_SAFETY

Execution:
- commands without shell syntax are parsed with shlex.split() and run with
  shell=False; only commands accepted in relaxed/off mode reach the shell
- every run is time-boxed; timeouts send SIGTERM to the process group and
  SIGKILL after a grace period
- execution never raises; failures come back as a ShellResult
"""

import os
import queue
import re
import shlex
import signal
import shutil
import subprocess
import sys
import threading
import time
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

from patchwise import config
from patchwise.debug_logger import get_logger
from patchwise.models import OutputChunk, SafetyVerdict, ShellResult


CHAINING_RE = re.compile(r"&&|\|\||;|\r|\n")
SUBSTITUTION_RE = re.compile(r"`|\$\(")
SHELL_OPERATOR_RE = re.compile(r"[|&<>]")

# Anything here needs a real shell to mean what the user typed
SHELL_SYNTAX_RE = re.compile(r"[;&|<>`\r\n*?~]|\$")

WRAPPER_NUMBER_RE = re.compile(r"^[+-]?\d+(\.\d+)?[smhd]?$")

EXIT_TIMEOUT = 124
EXIT_NOT_FOUND = 127
EXIT_CANNOT_EXECUTE = 126
EXIT_INTERRUPTED = 130


def _base_command(token: str) -> str:
    base = os.path.basename(token).lower()
    if base.endswith(".exe"):
        base = base[:-4]
    return base


def is_command_safe(command: str, mode: Optional[str] = None) -> SafetyVerdict:
    """Classify a shell command before it is shown to the user.

    Args:
        command: Raw command text.
        mode: strict, relaxed or off; defaults to the configured mode.

    Returns:
        SafetyVerdict with a human-readable reason when rejected.
    """
    mode = mode or config.get_shell_safety_mode()
    if mode not in config.SHELL_SAFETY_MODES:
        mode = config.DEFAULT_SHELL_SAFETY

    if not command or not command.strip():
        return SafetyVerdict(False, "empty command")

    if mode in ("relaxed", "off"):
        return SafetyVerdict(True)

    if CHAINING_RE.search(command):
        return SafetyVerdict(False, "command chaining (&&, ||, ;) is not allowed")

    if SUBSTITUTION_RE.search(command):
        return SafetyVerdict(False, "command substitution (` or $()) is not allowed")

    if SHELL_OPERATOR_RE.search(command):
        return SafetyVerdict(False, "shell operators (|, &, <, >) are not allowed")

    try:
        tokens = shlex.split(command, posix=(os.name != "nt"))
    except ValueError as e:
        return SafetyVerdict(False, f"failed to parse command: {e}")

    if not tokens:
        return SafetyVerdict(False, "empty command")

    if any(_base_command(tok) == "sudo" for tok in tokens):
        return SafetyVerdict(False, "sudo is not allowed")

    for base, args in _command_chain(tokens):
        if base in config.DESTRUCTIVE_COMMANDS or base.startswith("mkfs"):
            return SafetyVerdict(False, f"destructive command not allowed: {base}")

        if base == "find" and any(arg in config.FIND_ACTION_FLAGS for arg in args):
            return SafetyVerdict(False, "find with -delete or -exec is not allowed")

        if (
            base in config.PACKAGE_MANAGERS
            and args
            and args[0].lower() in config.PACKAGE_SCRIPT_SUBCOMMANDS
        ):
            return SafetyVerdict(False, f"package scripts are not allowed: {base} {args[0]}")

    base = _base_command(tokens[0])
    if config.ENFORCE_COMMAND_ALLOWLIST and base not in config.ALLOW_CMDS:
        return SafetyVerdict(False, f"command not in allowlist: {base}")

    return SafetyVerdict(True)


def _is_wrapper_argument(token: str) -> bool:
    """Options, VAR=value assignments and numbers (nice -n 5, timeout 10s)."""
    return token.startswith("-") or "=" in token or bool(WRAPPER_NUMBER_RE.match(token))


def _command_chain(tokens: List[str]) -> Iterator[Tuple[str, List[str]]]:
    """Yield (base, args) for a command and every command it wraps.

    ``env nice rm -rf src`` yields env, nice and finally rm.
    """
    index = 0
    while index < len(tokens):
        base = _base_command(tokens[index])
        yield base, tokens[index + 1:]
        if base not in config.WRAPPER_COMMANDS:
            return
        index += 1
        while index < len(tokens) and _is_wrapper_argument(tokens[index]):
            index += 1


def _build_args(command: str) -> Tuple[Union[str, List[str]], bool, Optional[str]]:
    """Turn a command string into Popen arguments.

    Returns:
        (args, use_shell, error). ``error`` is set when the command cannot be
        parsed.
    """
    if SHELL_SYNTAX_RE.search(command):
        return command, True, None

    try:
        args = shlex.split(command, posix=(os.name != "nt"))
    except ValueError as e:
        return [], False, f"failed to parse command: {e}"
    if not args:
        return [], False, "empty command"

    resolved = shutil.which(args[0])
    if resolved:
        args[0] = resolved
    return args, False, None


def _popen_kwargs() -> Dict[str, object]:
    if os.name == "nt":
        return {"creationflags": getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", 0)}
    return {"start_new_session": True}


def _send(proc: subprocess.Popen, sig: int) -> None:
    if os.name != "nt":
        try:
            os.killpg(proc.pid, sig)
            return
        except (ProcessLookupError, PermissionError):
            return
    if sig == signal.SIGTERM:
        proc.terminate()
    else:
        proc.kill()


def terminate_process(proc: subprocess.Popen, grace: Optional[float] = None) -> None:
    """SIGTERM the process group, then SIGKILL if it outlives ``grace`` seconds."""
    if proc.poll() is not None:
        return
    grace = config.TERMINATE_GRACE_SECONDS if grace is None else grace

    _send(proc, signal.SIGTERM)
    try:
        proc.wait(timeout=grace)
    except subprocess.TimeoutExpired:
        _send(proc, getattr(signal, "SIGKILL", signal.SIGTERM))
        proc.wait()


def _tail(text: str, limit: int) -> str:
    if limit and len(text) > limit:
        return "...[truncated]...\n" + text[-limit:]
    return text


def _timeout_note(timeout: float) -> str:
    return f"command exceeded {timeout}s timeout and was terminated"


def run_command(command: str, cwd: Union[str, Path], timeout: Optional[float] = None) -> ShellResult:
    """Run a command to completion with captured output.

    Args:
        command: Command text (already classified by the caller).
        cwd: Working directory.
        timeout: Seconds before the process is terminated.

    Returns:
        ShellResult. A missing executable yields exit code 127, a timeout 124.
    """
    timeout = timeout or config.COMMAND_TIMEOUT
    args, use_shell, error = _build_args(command)
    if error:
        return ShellResult(command=command, stderr=error, exit_code=2)

    try:
        proc = subprocess.Popen(
            args,
            shell=use_shell,
            cwd=str(cwd),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            **_popen_kwargs(),
        )
    except FileNotFoundError:
        name = args[0] if isinstance(args, list) else command
        return ShellResult(command=command, stderr=f"command not found: {name}", exit_code=EXIT_NOT_FOUND)
    except OSError as e:
        return ShellResult(command=command, stderr=f"OS error: {e}", exit_code=EXIT_CANNOT_EXECUTE)

    timed_out = False
    try:
        stdout_data, stderr_data = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        timed_out = True
        terminate_process(proc)
        stdout_data, stderr_data = proc.communicate()

    stderr_data = stderr_data or ""
    if timed_out:
        stderr_data = (stderr_data + "\n" if stderr_data else "") + _timeout_note(timeout)

    return ShellResult(
        command=command,
        stdout=_tail(stdout_data or "", config.OUTPUT_LIMIT),
        stderr=_tail(stderr_data, config.OUTPUT_LIMIT),
        exit_code=EXIT_TIMEOUT if timed_out else proc.returncode,
        timed_out=timed_out,
    )


class CommandStream:
    """Live output of a running command.

    Iterating yields OutputChunk objects until the process exits; ``result``
    is available afterwards. ``cancel()`` may be called from another thread.
    """

    def __init__(
        self,
        command: str,
        cwd: Union[str, Path],
        timeout: Optional[float] = None,
        grace: Optional[float] = None,
    ):
        self.command = command
        self.timeout = timeout or config.INTERACTIVE_TIMEOUT
        self.grace = config.TERMINATE_GRACE_SECONDS if grace is None else grace
        self.result: Optional[ShellResult] = None

        self._queue: "queue.Queue[Tuple[str, Optional[bytes]]]" = queue.Queue()
        self._buffers: Dict[str, List[bytes]] = {"stdout": [], "stderr": []}
        self._cancelled = threading.Event()
        self._timed_out = False
        self._open_streams = 0
        self._proc: Optional[subprocess.Popen] = None
        self._readers: List[threading.Thread] = []

        args, use_shell, error = _build_args(command)
        if error:
            self.result = ShellResult(command=command, stderr=error, exit_code=2)
            return

        try:
            self._proc = subprocess.Popen(
                args,
                shell=use_shell,
                cwd=str(cwd),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                **_popen_kwargs(),
            )
        except FileNotFoundError:
            name = args[0] if isinstance(args, list) else command
            self.result = ShellResult(command=command, stderr=f"command not found: {name}", exit_code=EXIT_NOT_FOUND)
            return
        except OSError as e:
            self.result = ShellResult(command=command, stderr=f"OS error: {e}", exit_code=EXIT_CANNOT_EXECUTE)
            return

        for name, pipe in (("stdout", self._proc.stdout), ("stderr", self._proc.stderr)):
            reader = threading.Thread(target=self._pump, args=(name, pipe), daemon=True)
            reader.start()
            self._readers.append(reader)
            self._open_streams += 1

    def _pump(self, name: str, pipe) -> None:
        try:
            while True:
                data = pipe.read1(4096) if hasattr(pipe, "read1") else pipe.read(4096)
                if not data:
                    break
                self._queue.put((name, data))
        except (OSError, ValueError):
            pass
        finally:
            self._queue.put((name, None))

    def cancel(self) -> None:
        self._cancelled.set()

    def __iter__(self) -> Iterator[OutputChunk]:
        if self._proc is None:
            return

        deadline = time.monotonic() + self.timeout
        stopped_at: Optional[float] = None

        while self._open_streams:
            now = time.monotonic()
            if stopped_at is None:
                if now >= deadline:
                    self._timed_out = True
                if self._timed_out or self._cancelled.is_set():
                    terminate_process(self._proc, self.grace)
                    stopped_at = time.monotonic()
            elif now - stopped_at > 1.0:
                # descendants that escaped the process group may hold pipes open
                break

            try:
                name, data = self._queue.get(timeout=0.1)
            except queue.Empty:
                continue
            if data is None:
                self._open_streams -= 1
                continue
            self._buffers[name].append(data)
            yield OutputChunk(stream=name, data=data)

        self._finish()

    def abort(self, exit_code: int = EXIT_INTERRUPTED) -> ShellResult:
        """Stop the process after an interrupt and collect what was produced."""
        self._cancelled.set()
        if self._proc is not None and self.result is None:
            terminate_process(self._proc, self.grace)
            for reader in self._readers:
                reader.join(timeout=1.0)
            self._finish(exit_code)
        return self.result

    def _finish(self, forced_code: Optional[int] = None) -> None:
        if self.result is not None:
            return

        while True:
            try:
                name, data = self._queue.get_nowait()
            except queue.Empty:
                break
            if data is not None:
                self._buffers[name].append(data)

        returncode = self._proc.wait()
        stdout_data = b"".join(self._buffers["stdout"]).decode("utf-8", errors="replace")
        stderr_data = b"".join(self._buffers["stderr"]).decode("utf-8", errors="replace")

        if forced_code is not None:
            exit_code = forced_code
        elif self._timed_out:
            exit_code = EXIT_TIMEOUT
            stderr_data = (stderr_data + "\n" if stderr_data else "") + _timeout_note(self.timeout)
        elif self._cancelled.is_set():
            exit_code = EXIT_INTERRUPTED
        else:
            exit_code = returncode

        self.result = ShellResult(
            command=self.command,
            stdout=_tail(stdout_data, config.OUTPUT_LIMIT),
            stderr=_tail(stderr_data, config.OUTPUT_LIMIT),
            exit_code=exit_code,
            timed_out=self._timed_out,
        )


def stream_command(
    command: str,
    cwd: Union[str, Path],
    timeout: Optional[float] = None,
    grace: Optional[float] = None,
) -> CommandStream:
    return CommandStream(command, cwd, timeout=timeout, grace=grace)


def _echo_chunk(chunk: OutputChunk) -> None:
    target = sys.stdout if chunk.stream == "stdout" else sys.stderr
    buffer = getattr(target, "buffer", None)
    if buffer is not None:
        buffer.write(chunk.data)
    else:
        target.write(chunk.data.decode("utf-8", errors="replace"))
    target.flush()


def execute_command(
    command: str,
    cwd: Union[str, Path],
    timeout: Optional[float] = None,
    interactive: bool = False,
    echo: Optional[Callable[[OutputChunk], None]] = None,
) -> ShellResult:
    """Execute a command and return its result. Never raises.

    Args:
        command: Command text.
        cwd: Working directory.
        timeout: Seconds before termination (defaults depend on ``interactive``).
        interactive: Stream output live instead of capturing it.
        echo: Receives each live chunk in interactive mode (defaults to
            writing to the terminal).
    """
    if command.strip() == "pwd":
        return ShellResult(command=command, stdout=str(cwd), exit_code=0)

    if not interactive:
        result = run_command(command, cwd, timeout=timeout)
    else:
        echo = echo or _echo_chunk
        stream = stream_command(command, cwd, timeout=timeout)
        try:
            for chunk in stream:
                echo(chunk)
            result = stream.result
        except KeyboardInterrupt:
            result = stream.abort(EXIT_INTERRUPTED)

    get_logger().log_command(command, str(cwd), result.exit_code, result.timed_out)
    return result
