"""Tests for command risk classification and confirmation."""

import pytest

from aiterm.risk import RiskLevel, classify_command, confirm_command


class TestClassifyCommand:

    @pytest.mark.parametrize("command", [
        "rm -rf /",
        "sudo rm -rf / --no-preserve-root",
        "rm -rf ~/projects",
        "rm -rf *",
        "dd if=/dev/zero of=/dev/sda",
        "mkfs.ext4 /dev/sdb1",
        "shutdown -h now",
        "sudo reboot",
        ":(){:|:&};:",
    ])
    def test_dangerous(self, command):
        assert classify_command(command) is RiskLevel.DANGEROUS

    @pytest.mark.parametrize("command", [
        "rm notes.txt",
        "mv a b",
        "cp -r src dst",
        "chmod 755 run.sh",
        "chown user file",
        "kill 1234",
        "pkill firefox",
    ])
    def test_caution(self, command):
        assert classify_command(command) is RiskLevel.CAUTION

    @pytest.mark.parametrize("command", ["ls -la", "echo hi", "git status", "", "   "])
    def test_safe(self, command):
        assert classify_command(command) is RiskLevel.SAFE

    def test_dangerous_wins_over_caution(self):
        assert classify_command("rm -rf /tmp/x") is RiskLevel.DANGEROUS

    def test_case_and_whitespace_insensitive(self):
        assert classify_command("  RM -RF /  ") is RiskLevel.DANGEROUS
        assert classify_command("  MV a b") is RiskLevel.CAUTION

    def test_caution_is_prefix_only(self):
        # "rm " in the middle of a pipeline is not a caution prefix.
        assert classify_command("echo rm file") is RiskLevel.SAFE
        assert classify_command("rmdir empty") is RiskLevel.SAFE

    def test_deterministic(self):
        assert classify_command("mv x y") == classify_command("mv x y")


class TestConfirmCommand:

    def test_safe_accepts_y(self, console_factory):
        console = console_factory(answers=["y"])
        assert confirm_command(console, "ls", RiskLevel.SAFE) is True
        assert "Execute? (y/n):" in console.prompts[0]

    def test_safe_accepts_uppercase_with_spaces(self, console_factory):
        console = console_factory(answers=["  Y  "])
        assert confirm_command(console, "ls", RiskLevel.SAFE) is True

    @pytest.mark.parametrize("answer", ["n", "", "yes", "no"])
    def test_safe_rejects_other_answers(self, console_factory, answer):
        console = console_factory(answers=[answer])
        assert confirm_command(console, "ls", RiskLevel.SAFE) is False

    def test_caution_warns_before_asking(self, console_factory):
        console = console_factory(answers=["y"])
        assert confirm_command(console, "rm a.txt", RiskLevel.CAUTION) is True
        assert "modifies files" in console.text

    def test_dangerous_requires_exact_retype(self, console_factory):
        console = console_factory(answers=["rm -rf /"])
        assert confirm_command(console, "rm -rf /", RiskLevel.DANGEROUS) is True

    @pytest.mark.parametrize("typed", ["y", "rm -rf / ", " rm -rf /", "RM -RF /", ""])
    def test_dangerous_rejects_anything_else(self, console_factory, typed):
        console = console_factory(answers=[typed])
        assert confirm_command(console, "rm -rf /", RiskLevel.DANGEROUS) is False

    def test_dangerous_never_asks_yes_no(self, console_factory):
        console = console_factory(answers=["y"])
        confirm_command(console, "shutdown now", RiskLevel.DANGEROUS)
        assert all("(y/n)" not in p for p in console.prompts)

    @pytest.mark.parametrize("error", [EOFError(), KeyboardInterrupt()])
    def test_interrupted_prompt_declines(self, console_factory, error):
        console = console_factory(answers=[error])
        assert confirm_command(console, "ls", RiskLevel.SAFE) is False
