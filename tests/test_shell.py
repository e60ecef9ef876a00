"""Tests for the capture executor."""

import shlex
import subprocess
import sys
from unittest.mock import patch

from aiterm.tools.shell import (
    LAUNCH_FAILURE_EXIT_CODE,
    MAX_CAPTURE_LEN,
    TRUNCATION_MARKER,
    CaptureExecutor,
    ExecutionResult,
    signal_name,
    truncate,
)


class TestTruncate:

    def test_short_text_untouched(self):
        assert truncate("hello") == "hello"

    def test_exact_limit_untouched(self):
        text = "a" * MAX_CAPTURE_LEN
        assert truncate(text) == text

    def test_long_text_keeps_prefix_and_marker(self):
        text = "".join(chr(ord("a") + i % 26) for i in range(2000))
        view = truncate(text)
        assert view.startswith(text[:MAX_CAPTURE_LEN])
        assert view.endswith(TRUNCATION_MARKER)
        assert len(view) == MAX_CAPTURE_LEN + len(TRUNCATION_MARKER)

    def test_counts_characters_not_bytes(self):
        text = "é" * (MAX_CAPTURE_LEN + 1)
        assert truncate(text) == "é" * MAX_CAPTURE_LEN + TRUNCATION_MARKER


class TestCaptureExecutor:

    def test_echo(self, tmp_path):
        result = CaptureExecutor().execute("echo hello", tmp_path)
        assert result.exit_code == 0
        assert result.succeeded
        assert result.stdout_view == "hello\n"
        assert result.stderr_view == ""

    def test_nonzero_exit_and_stderr(self, tmp_path):
        result = CaptureExecutor().execute("echo oops >&2; exit 3", tmp_path)
        assert result.exit_code == 3
        assert not result.succeeded
        assert not result.launch_failed
        assert "oops" in result.stderr_view

    def test_runs_in_given_directory(self, tmp_path):
        (tmp_path / "marker.txt").write_text("x", encoding="utf-8")
        result = CaptureExecutor().execute("ls", tmp_path)
        assert "marker.txt" in result.stdout_view

    def test_shell_features_pass_through(self, tmp_path):
        result = CaptureExecutor().execute("echo a | tr a b && echo c", tmp_path)
        assert result.stdout_view == "b\nc\n"

    def test_output_truncation(self, tmp_path):
        py = shlex.quote(sys.executable)
        result = CaptureExecutor().execute(f"{py} -c \"print('a' * 5000)\"", tmp_path)
        assert result.stdout_view == "a" * MAX_CAPTURE_LEN + TRUNCATION_MARKER

    def test_custom_capture_limit(self, tmp_path):
        result = CaptureExecutor(capture_limit=3).execute("echo abcdef", tmp_path)
        assert result.stdout_view == "abc" + TRUNCATION_MARKER

    def test_launch_failure_is_a_result(self, tmp_path):
        executor = CaptureExecutor(shell="/nonexistent/shell-binary")
        result = executor.execute("echo hi", tmp_path)
        assert result.exit_code == LAUNCH_FAILURE_EXIT_CODE
        assert result.launch_failed
        assert "FileNotFoundError" in result.stderr_view

    def test_missing_cwd_is_launch_failure(self, tmp_path):
        result = CaptureExecutor().execute("echo hi", tmp_path / "gone")
        assert result.exit_code == -1

    def test_subprocess_error_is_launch_failure(self, tmp_path):
        with patch(
            "aiterm.tools.shell.subprocess.run",
            side_effect=subprocess.SubprocessError("boom"),
        ):
            result = CaptureExecutor().execute("echo hi", tmp_path)
        assert result.exit_code == -1
        assert "boom" in result.stderr_view

    def test_signal_death_maps_to_128_plus_n(self, tmp_path):
        result = CaptureExecutor().execute("kill -9 $$", tmp_path)
        assert result.exit_code == 137
        assert signal_name(result.exit_code) == "SIGKILL"

    def test_invalid_utf8_is_replaced(self, tmp_path):
        result = CaptureExecutor().execute("printf '\\377ok'", tmp_path)
        assert result.stdout_view == "�ok"

    def test_screenshot_file_detected(self, tmp_path):
        (tmp_path / "screenshot.png").write_bytes(b"png")
        with patch("aiterm.tools.shell.subprocess.run") as run:
            run.return_value = subprocess.CompletedProcess(
                args=[], returncode=0, stdout=b"", stderr=b"",
            )
            result = CaptureExecutor().execute("scrot screenshot.png", tmp_path)
        assert result.created_file == tmp_path / "screenshot.png"

    def test_no_screenshot_for_regular_commands(self, tmp_path):
        (tmp_path / "screenshot.png").write_bytes(b"png")
        result = CaptureExecutor().execute("true", tmp_path)
        assert result.created_file is None


class TestExecutionResult:

    def test_model_view(self):
        result = ExecutionResult("ls x", 2, "", "ls: x: missing\n")
        assert result.model_view() == (
            "command: ls x\nexit_code: 2\nstdout:\n\nstderr:\nls: x: missing\n"
        )

    def test_model_view_with_suggestion(self):
        result = ExecutionResult("cat a.tx", 1, "", "err", suggestion="cat a.txt")
        assert result.model_view().endswith("\nsuggestion: cat a.txt")

    def test_signal_name(self):
        assert signal_name(0) is None
        assert signal_name(1) is None
        assert signal_name(130) == "SIGINT"
