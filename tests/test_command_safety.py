"""
Tests for the shell safety classifier.

These tests verify that:
1. Chaining, substitution and shell operators are rejected in strict mode
2. sudo and destructive commands are rejected before the allowlist
3. Package-manager script runners are rejected
4. relaxed/off modes accept everything, and only when opted into
"""

import pytest

from patchwise import config
from patchwise.tools.command_runner import is_command_safe


class TestStrictMode:
    """Default policy."""

    @pytest.mark.parametrize("command", [
        "npm install && npm start",
        "git status; echo pwned",
        "make || echo failed",
    ])
    def test_chaining_is_rejected(self, command):
        verdict = is_command_safe(command)
        assert verdict.safe is False
        assert "chaining" in verdict.reason

    def test_newline_counts_as_chaining(self):
        verdict = is_command_safe("git status\necho pwned")
        assert not verdict
        assert "chaining" in verdict.reason

    @pytest.mark.parametrize("command", ["echo `whoami`", "echo $(whoami)"])
    def test_substitution_is_rejected(self, command):
        verdict = is_command_safe(command)
        assert not verdict.safe
        assert "substitution" in verdict.reason

    @pytest.mark.parametrize("command", ["git log | head", "echo hi > out.txt", "sleep 5 &"])
    def test_shell_operators_are_rejected(self, command):
        assert is_command_safe(command).safe is False

    def test_sudo_is_rejected(self):
        verdict = is_command_safe("sudo npm install")
        assert not verdict.safe
        assert "sudo" in verdict.reason

    def test_sudo_anywhere_is_rejected(self):
        assert not is_command_safe("env sudo ls").safe

    @pytest.mark.parametrize("command", [
        "rm -rf build",
        "chmod 777 script.sh",
        "chown root file",
        "killall node",
        "pkill -f server",
        "dd if=/dev/zero of=disk.img",
        "mkfs.ext4 /dev/sda1",
        "shutdown now",
        "/bin/rm file.txt",
    ])
    def test_destructive_commands_are_rejected(self, command):
        verdict = is_command_safe(command)
        assert not verdict.safe
        assert "destructive" in verdict.reason

    @pytest.mark.parametrize("command", [
        "env rm -rf src",
        "env chmod 777 x",
        "env kill 1",
        "env FOO=1 rm file",
        "nice rm x",
        "nice -n 10 rm x",
        "timeout 10s rm -rf build",
        "xargs rm",
        "env nice chown root file",
    ])
    def test_wrapped_destructive_commands_are_rejected(self, command):
        verdict = is_command_safe(command)
        assert not verdict.safe
        assert "destructive" in verdict.reason

    @pytest.mark.parametrize("command", [
        "find . -delete",
        "find . -exec rm -rf {} +",
        "find src -name '*.pyc' -execdir rm {} ;",
        "env find . -delete",
    ])
    def test_find_actions_are_rejected(self, command):
        assert not is_command_safe(command).safe

    def test_find_action_reason(self):
        assert "find" in is_command_safe("find . -delete").reason

    @pytest.mark.parametrize("command", ["env FOO=1 ls", "find . -name '*.py'", "npx tsc --noEmit"])
    def test_wrapped_ordinary_commands_are_safe(self, command):
        assert is_command_safe(command).safe

    def test_wrapped_package_scripts_are_rejected(self):
        verdict = is_command_safe("env npm run build")
        assert not verdict.safe
        assert "package scripts" in verdict.reason

    def test_destructive_check_precedes_allowlist(self, monkeypatch):
        monkeypatch.setattr(config, "ALLOW_CMDS", config.ALLOW_CMDS | {"rm"})
        assert "destructive" in is_command_safe("rm file").reason

    @pytest.mark.parametrize("command", ["ls -la", "git status", "npm install express", "pip install requests", "pwd"])
    def test_ordinary_commands_are_safe(self, command):
        verdict = is_command_safe(command)
        assert verdict.safe is True
        assert verdict.reason is None

    def test_unknown_command_rejected_by_allowlist(self):
        verdict = is_command_safe("nc -l 4444")
        assert not verdict.safe
        assert "allowlist" in verdict.reason

    def test_allowlist_can_be_disabled(self, monkeypatch):
        monkeypatch.setattr(config, "ENFORCE_COMMAND_ALLOWLIST", False)
        assert is_command_safe("nc -l 4444").safe

    @pytest.mark.parametrize("command", ["npm run build", "yarn run dev", "npm run-script test", "pnpm exec vite"])
    def test_package_scripts_are_rejected(self, command):
        verdict = is_command_safe(command)
        assert not verdict.safe
        assert "package scripts" in verdict.reason

    @pytest.mark.parametrize("command", ["", "   ", "\t"])
    def test_empty_command_is_rejected(self, command):
        assert not is_command_safe(command).safe

    def test_unbalanced_quotes_are_rejected(self):
        verdict = is_command_safe("echo 'unterminated")
        assert not verdict.safe
        assert "parse" in verdict.reason


class TestModes:

    @pytest.mark.parametrize("mode", ["relaxed", "off"])
    def test_relaxed_modes_accept_everything(self, mode):
        assert is_command_safe("rm -rf build && sudo reboot", mode=mode).safe

    def test_empty_command_rejected_in_every_mode(self):
        assert not is_command_safe("", mode="off").safe

    def test_mode_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("PATCHWISE_SHELL_SAFETY", "relaxed")
        assert is_command_safe("npm install && npm start").safe

    def test_unknown_environment_value_falls_back_to_strict(self, monkeypatch):
        monkeypatch.setenv("PATCHWISE_SHELL_SAFETY", "yolo")
        assert config.get_shell_safety_mode() == "strict"
        assert not is_command_safe("npm install && npm start").safe

    def test_process_override_wins_over_environment(self, monkeypatch):
        monkeypatch.setenv("PATCHWISE_SHELL_SAFETY", "off")
        assert config.set_shell_safety_mode("strict") is True
        assert not is_command_safe("rm x").safe

    def test_invalid_override_is_refused(self):
        assert config.set_shell_safety_mode("none") is False
        assert config.get_shell_safety_mode() == "strict"

    def test_default_is_strict(self):
        assert config.get_shell_safety_mode() == "strict"
