"""
Tests for advinstkit.tool.license module.

Tests license registration including:
- Fixed license registration
- Floating license retry loop (fake clock, fake runner)
- Deadline handling and unexpected exit codes
- Disabled floating license no-op
"""

from __future__ import annotations

from pathlib import Path
import sys

import pytest

from advinstkit.exceptions import LicenseTimeoutError, RegistrationError
from advinstkit.logging import get_logger, set_global_logger
from advinstkit.process import CommandResult, ProcessRunner
from advinstkit.tool.license import (
    NO_SEAT_AVAILABLE,
    Acquired,
    LicenseAcquirer,
    TimedOut,
    UnexpectedExitCode,
    is_no_seat_available,
)
from advinstkit.tool.spec import ToolSpec

from .conftest import NO_SEAT, FakeRunner

pytestmark = pytest.mark.unit

TOOL = Path("C:/tools/advinst/bin/x86/advancedinstaller.com")


def _floating_spec(timeout: int = 180) -> ToolSpec:
    return ToolSpec(
        version="22.0",
        floating_license=True,
        license_host="licenses.example.com",
        license_port=1024,
        acquisition_timeout=timeout,
    )


def _acquirer(runner, clock) -> LicenseAcquirer:
    return LicenseAcquirer(runner, clock=clock.monotonic, sleep=clock.sleep)


class TestFixedRegistration:
    """Tests for one-shot license key registration."""

    def test_register_success(self, fake_clock):
        """Test that a zero exit code registers without retry."""
        runner = FakeRunner([0])

        _acquirer(runner, fake_clock).register(TOOL, "ABCD-1234")

        assert len(runner.commands) == 1
        assert "/RegisterCI ABCD-1234" in runner.commands[0]
        assert fake_clock.sleeps == []

    def test_register_failure_raises_with_output(self, fake_clock):
        """Test that a rejected key is fatal and carries stdout."""
        runner = FakeRunner([CommandResult(1, "Invalid license key", "")])

        with pytest.raises(RegistrationError, match="Invalid license key") as exc_info:
            _acquirer(runner, fake_clock).register(TOOL, "BAD")

        assert exc_info.value.output == "Invalid license key"
        assert len(runner.commands) == 1

    def test_register_quotes_tool_path(self, fake_clock):
        """Test that the binary path is quoted in the command line."""
        runner = FakeRunner([0])

        _acquirer(runner, fake_clock).register(TOOL, "KEY")

        assert runner.commands[0].startswith(f'"{TOOL}"')

    def test_register_passes_key_as_secret(self, fake_clock):
        runner = FakeRunner([0])

        _acquirer(runner, fake_clock).register(TOOL, "ABCD-1234")

        assert runner.secrets == ["ABCD-1234"]

    def test_key_not_in_debug_output(self, monkeypatch, capsys):
        """Test that the license key never reaches the debug log."""
        monkeypatch.delenv("GITHUB_ACTIONS", raising=False)
        set_global_logger(get_logger(debug=True))
        acquirer = LicenseAcquirer(ProcessRunner())

        with pytest.raises(RegistrationError):
            acquirer.register(Path(sys.executable), "SECRET-KEY-1234")

        out = capsys.readouterr().out
        assert "/RegisterCI" in out
        assert "SECRET-KEY-1234" not in out


class TestFloatingRetryLoop:
    """Tests for floating seat acquisition."""

    def test_acquired_immediately(self, fake_clock):
        """Test that exit code 0 on the first attempt needs no sleep."""
        runner = FakeRunner([0])

        outcome = _acquirer(runner, fake_clock).acquire_floating(TOOL, _floating_spec())

        assert outcome == Acquired(attempts=1)
        assert fake_clock.sleeps == []

    def test_command_targets_license_server(self, fake_clock):
        """Test the floating check command line."""
        runner = FakeRunner([0])

        _acquirer(runner, fake_clock).acquire_floating(TOOL, _floating_spec())

        assert runner.commands[0] == (
            f'"{TOOL}" /registerfloating licenses.example.com:1024 -testconnection'
        )

    @pytest.mark.parametrize("busy_attempts", [1, 3, 5])
    def test_sentinel_then_success(self, fake_clock, busy_attempts):
        """Test N busy answers then success -> N+1 attempts, N sleeps of 15s."""
        runner = FakeRunner([NO_SEAT] * busy_attempts + [0])

        outcome = _acquirer(runner, fake_clock).acquire_floating(TOOL, _floating_spec())

        assert isinstance(outcome, Acquired)
        assert outcome.attempts == busy_attempts + 1
        assert len(runner.commands) == busy_attempts + 1
        assert fake_clock.sleeps == [15] * busy_attempts
        assert fake_clock.elapsed == busy_attempts * 15

    def test_always_busy_times_out(self, fake_clock):
        """Test timeout=30s with a 15s interval: at most 3 attempts, 30 <= elapsed < 45."""
        runner = FakeRunner([NO_SEAT])

        outcome = _acquirer(runner, fake_clock).acquire_floating(TOOL, _floating_spec(30))

        assert isinstance(outcome, TimedOut)
        assert outcome.last_exit_code == NO_SEAT
        assert len(runner.commands) <= 3
        assert 30 <= fake_clock.elapsed < 45

    def test_timed_out_lists_unexpected_codes(self, fake_clock):
        runner = FakeRunner([7, NO_SEAT])

        outcome = _acquirer(runner, fake_clock).acquire_floating(TOOL, _floating_spec(30))

        assert isinstance(outcome, TimedOut)
        assert outcome.unexpected == (UnexpectedExitCode(7),)

    def test_attempt_in_flight_is_allowed_to_finish(self, fake_clock):
        """Test that the deadline is only checked before a retry."""
        runner = FakeRunner([NO_SEAT])
        # Every check takes 10 seconds of wall time.
        runner.on_run = lambda _cmd: fake_clock.advance(10)

        outcome = _acquirer(runner, fake_clock).acquire_floating(TOOL, _floating_spec(30))

        # t=10 first check done, sleep to 25, second check ends at 35 > deadline
        assert isinstance(outcome, TimedOut)
        assert outcome.attempts == 2
        assert fake_clock.elapsed == 35

    def test_zero_timeout_makes_single_attempt(self, fake_clock):
        """Test that a zero timeout still runs the first check once."""
        runner = FakeRunner([NO_SEAT])

        outcome = _acquirer(runner, fake_clock).acquire_floating(TOOL, _floating_spec(0))

        assert isinstance(outcome, TimedOut)
        assert len(runner.commands) == 1
        assert fake_clock.sleeps == []

    def test_unexpected_exit_code_warns_and_keeps_retrying(
        self, fake_clock, recording_logger
    ):
        """Test that non-sentinel failures are warnings, not fatal."""
        runner = FakeRunner([5, NO_SEAT, 0])

        outcome = _acquirer(runner, fake_clock).acquire_floating(TOOL, _floating_spec())

        assert outcome == Acquired(attempts=3, unexpected=(UnexpectedExitCode(5),))
        warnings = recording_logger.messages("warning")
        assert len(warnings) == 1
        assert "Unexpected exit code 5" in warnings[0]

    def test_sentinel_is_not_a_warning(self, fake_clock, recording_logger):
        """Test that 'no seat available' is logged at verbose level only."""
        runner = FakeRunner([NO_SEAT, 0])

        _acquirer(runner, fake_clock).acquire_floating(TOOL, _floating_spec())

        assert recording_logger.messages("warning") == []
        assert any("No license seat available" in m for m in recording_logger.messages("verbose"))

    def test_custom_retry_interval(self, fake_clock):
        """Test that the retry interval is configurable."""
        runner = FakeRunner([NO_SEAT, NO_SEAT, 0])
        acquirer = LicenseAcquirer(
            runner, retry_interval=5, clock=fake_clock.monotonic, sleep=fake_clock.sleep
        )

        acquirer.acquire_floating(TOOL, _floating_spec())

        assert fake_clock.sleeps == [5, 5]


class TestRegisterFloating:
    """Tests for the raising wrapper around the retry loop."""

    def test_timeout_raises(self, fake_clock):
        """Test that running out of time is fatal for the caller."""
        runner = FakeRunner([NO_SEAT])

        with pytest.raises(LicenseTimeoutError) as exc_info:
            _acquirer(runner, fake_clock).register_floating(TOOL, _floating_spec(30))

        assert exc_info.value.last_exit_code == NO_SEAT
        assert exc_info.value.timeout == 30
        assert "0xE001006D" in str(exc_info.value)

    def test_success_returns_acquired(self, fake_clock):
        runner = FakeRunner([NO_SEAT, 0])

        outcome = _acquirer(runner, fake_clock).register_floating(TOOL, _floating_spec())

        assert outcome == Acquired(attempts=2)

    def test_disabled_is_noop(self, fake_clock, recording_logger):
        """Test floating_license=False: no process runs, no error, a warning."""
        runner = FakeRunner([0])
        spec = ToolSpec(version="22.0", floating_license=False)

        outcome = _acquirer(runner, fake_clock).register_floating(TOOL, spec)

        assert outcome is None
        assert runner.commands == []
        assert len(recording_logger.messages("warning")) == 1


class TestSentinel:
    """Tests for exit code classification."""

    def test_unsigned_value(self):
        assert is_no_seat_available(3_758_162_029)

    def test_signed_value(self):
        """Test that a sign-extended DWORD still matches."""
        assert is_no_seat_available(NO_SEAT_AVAILABLE - 2**32)

    @pytest.mark.parametrize("code", [0, 1, -1, 0xE001006E])
    def test_other_values(self, code):
        assert not is_no_seat_available(code)
