"""
Tests for ChildProcess using real child interpreters.
"""

import os
import signal
import sys
import threading

import pytest

from respawn.process import ChildProcess, spawn

posix_only = pytest.mark.skipif(
    sys.platform == "win32", reason="POSIX signals and sessions required"
)


def _py(code: str) -> list[str]:
    return ["-c", code]


class ExitRecorder:
    """Collects on_exit callbacks."""

    def __init__(self):
        self.calls: list[ChildProcess] = []
        self.event = threading.Event()

    def __call__(self, child):
        self.calls.append(child)
        self.event.set()


@pytest.mark.integration
class TestChildProcessExit:
    """Test exit observation."""

    def test_clean_exit(self, lg, log_stream, python):
        """Test a zero exit is recorded and logged at info level."""
        child = spawn(python, _py("pass"), lg=lg)

        assert child.wait(timeout=10)
        assert child.exited
        assert child.returncode == 0
        assert child.exit_signal is None
        assert "[I] process -c exited with code 0" in log_stream.getvalue()

    def test_failing_exit_logged_as_warning(self, lg, log_stream, python):
        """Test a non-zero unsolicited exit is a warning with the code."""
        child = spawn(python, _py("import sys; sys.exit(1)"), lg=lg)

        assert child.wait(timeout=10)
        assert child.returncode == 1
        assert "[W] process -c exited with code 1" in log_stream.getvalue()

    def test_on_exit_called_once(self, python):
        """Test the exit callback fires exactly once with the handle."""
        recorder = ExitRecorder()
        child = spawn(python, _py("pass"), on_exit=recorder)

        assert recorder.event.wait(timeout=10)
        child._mark_exited(99)

        assert recorder.calls == [child]
        assert child.returncode == 0

    def test_display_name_is_script(self, python, tmp_path):
        """Test diagnostics name the script, not the interpreter."""
        child = ChildProcess(python, [str(tmp_path / "app.py")])
        assert child.display_name == str(tmp_path / "app.py")
        assert ChildProcess("node", []).display_name == "node"

    def test_repr(self, python):
        """Test repr shows pid and state."""
        child = ChildProcess(python, ["app.py"])
        assert repr(child) == "<ChildProcess pid=None running>"

    @posix_only
    def test_killed_by_signal(self, lg, log_stream, python):
        """Test an exit by signal reports the signal name."""
        child = spawn(python, _py("import time; time.sleep(30)"), lg=lg)
        os.kill(child.pid, signal.SIGKILL)

        assert child.wait(timeout=10)
        assert child.returncode == -signal.SIGKILL
        assert child.exit_signal == "SIGKILL"
        assert "exited with signal SIGKILL" in log_stream.getvalue()

    @posix_only
    def test_stop_requested_exit_is_info(self, lg, log_stream, python):
        """Test a requested stop is not reported as a failure."""
        child = spawn(python, _py("import time; time.sleep(30)"), lg=lg)
        child.stop_requested = True
        os.kill(child.pid, signal.SIGTERM)

        assert child.wait(timeout=10)
        assert "[I] process -c exited with signal SIGTERM" in log_stream.getvalue()

    @posix_only
    def test_own_session(self, python):
        """Test the child leads its own process group."""
        child = spawn(python, _py("import time; time.sleep(30)"))
        try:
            assert os.getpgid(child.pid) == child.pid
        finally:
            os.kill(child.pid, signal.SIGKILL)
            child.wait(timeout=10)


@pytest.mark.unit
class TestSpawnFailure:
    """Test launch failures are absorbed into the handle."""

    def test_missing_program(self, lg, log_stream, tmp_path):
        """Test a missing program marks the handle exited without raising."""
        recorder = ExitRecorder()
        child = spawn(str(tmp_path / "no-such-program"), ["app.py"], recorder, lg)

        assert child.exited
        assert child.pid is None
        assert child.returncode is None
        assert child.wait(timeout=0)
        assert recorder.calls == [child]
        assert "[E] failed to start process app.py" in log_stream.getvalue()

    def test_missing_program_without_logger(self, tmp_path):
        """Test spawn failure without a logger is silent."""
        child = spawn(str(tmp_path / "no-such-program"), [])
        assert child.exited

    def test_write_after_failure(self, tmp_path):
        """Test writing to a never-started child raises BrokenPipeError."""
        child = spawn(str(tmp_path / "no-such-program"), [])
        with pytest.raises(BrokenPipeError):
            child.write(b"x\n")
        child.close_stdin()


@pytest.mark.integration
class TestChildStdin:
    """Test the stdin pipe."""

    def test_write_forwards_bytes(self, python):
        """Test written bytes reach the child verbatim."""
        code = (
            "import sys; line = sys.stdin.buffer.readline(); "
            "sys.exit(0 if line == b'hello\\n' else 3)"
        )
        child = spawn(python, _py(code))
        child.write(b"hello\n")

        assert child.wait(timeout=10)
        assert child.returncode == 0

    def test_close_stdin_sends_eof(self, python):
        """Test closing stdin lets a reader finish; closing twice is harmless."""
        child = spawn(python, _py("import sys; sys.stdin.read()"))
        child.close_stdin()
        child.close_stdin()

        assert child.wait(timeout=10)
        assert child.returncode == 0

    def test_write_after_exit(self, python):
        """Test writing after exit raises BrokenPipeError."""
        child = spawn(python, _py("pass"))
        assert child.wait(timeout=10)

        with pytest.raises(BrokenPipeError):
            child.write(b"late\n")
