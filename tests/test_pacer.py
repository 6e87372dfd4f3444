"""
Tests for the Pacer rate limiter and retry primitive.
"""
import pytest
from unittest.mock import Mock, patch

from drive_fs.clients.drive_api import DriveAPIError
from drive_fs.clients.pacer import Pacer, is_transient


class TestPacer:
    """Test cases for Pacer."""

    def test_call_success(self, fast_pacer):
        """Test a successful operation runs once."""
        operation = Mock(return_value="ok")

        assert fast_pacer.call(operation) == "ok"
        assert operation.call_count == 1

    def test_transient_failure_retried_once(self, fast_pacer):
        """Test one transient failure is followed by exactly one retry."""
        operation = Mock(side_effect=[DriveAPIError("busy", status_code=503), "ok"])

        assert fast_pacer.call(operation) == "ok"
        assert operation.call_count == 2

    def test_attempts_exhausted(self, fast_pacer):
        """Test the last failure propagates once attempts run out."""
        operation = Mock(side_effect=DriveAPIError("busy", status_code=503))

        with pytest.raises(DriveAPIError):
            fast_pacer.call(operation, attempts=2)

        assert operation.call_count == 2

    def test_permanent_failure_not_retried(self, fast_pacer):
        """Test non-transient failures propagate immediately."""
        operation = Mock(side_effect=DriveAPIError("bad request", status_code=400))

        with pytest.raises(DriveAPIError):
            fast_pacer.call(operation, attempts=5)

        assert operation.call_count == 1

    def test_custom_retry_predicate(self, fast_pacer):
        """Test a caller supplied predicate decides what is retried."""
        operation = Mock(side_effect=[KeyError("x"), "ok"])

        assert fast_pacer.call(operation, should_retry=lambda e: isinstance(e, KeyError)) == "ok"

    def test_is_transient(self):
        """Test the default retry predicate."""
        assert is_transient(DriveAPIError("x", status_code=500))
        assert is_transient(DriveAPIError("x"))
        assert not is_transient(DriveAPIError("x", status_code=404))
        assert not is_transient(ValueError("x"))

    def test_backoff_and_reset(self):
        """Test backoff grows the spacing up to max and reset decays it."""
        pacer = Pacer(min_sleep=0.1, max_sleep=0.3)

        assert pacer.backoff() == pytest.approx(0.2)
        assert pacer.backoff() == pytest.approx(0.3)
        assert pacer.backoff() == pytest.approx(0.3)

        pacer.reset()
        assert pacer.sleep == pytest.approx(0.15)
        pacer.reset()
        pacer.reset()
        assert pacer.sleep == pytest.approx(0.1)

    @patch('drive_fs.clients.pacer.time.sleep')
    def test_wait_spaces_calls(self, mock_sleep):
        """Test consecutive calls are spaced by the current interval."""
        pacer = Pacer(min_sleep=0.5, max_sleep=1.0)

        pacer.wait()
        mock_sleep.assert_not_called()

        pacer.wait()
        mock_sleep.assert_called_once()
        delay = mock_sleep.call_args[0][0]
        assert 0.4 < delay <= 0.5

    def test_invalid_attempts(self):
        """Test at least one attempt is required."""
        with pytest.raises(ValueError):
            Pacer(attempts=0)
