"""
Tests for bounded polling.
"""
import pytest

from inkwell.utility.retry import PollTimeout, poll_until


class Probe:
    """Async probe returning a scripted sequence of results."""

    def __init__(self, results):
        self.results = list(results)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        result = self.results.pop(0) if self.results else self.last
        self.last = result
        if isinstance(result, Exception):
            raise result
        return result


class TestPollUntil:
    """Test poll_until retries until the result is accepted."""

    @pytest.mark.asyncio
    @pytest.mark.timeout(5)
    async def test_returns_first_accepted_result(self):
        """Test polling stops at the first truthy result."""
        probe = Probe([False, False, True])
        assert await poll_until(probe, timeout=1.0, interval=0.01) is True
        assert probe.calls == 3

    @pytest.mark.asyncio
    @pytest.mark.timeout(5)
    async def test_custom_accept(self):
        """Test a custom predicate decides acceptance."""
        probe = Probe([0, 1, 3])
        assert await poll_until(probe, accept=lambda n: n > 2, interval=0.01) == 3

    @pytest.mark.asyncio
    @pytest.mark.timeout(5)
    async def test_raises_poll_timeout(self):
        """Test a probe that never succeeds ends in PollTimeout."""
        probe = Probe([False])
        with pytest.raises(PollTimeout) as exc_info:
            await poll_until(probe, timeout=0.05, interval=0.01)
        assert exc_info.value.timeout == 0.05
        assert probe.calls >= 2

    @pytest.mark.asyncio
    @pytest.mark.timeout(5)
    async def test_listed_exceptions_mean_not_yet(self):
        """Test listed exception types are retried like a rejected result."""
        probe = Probe([ValueError("not painted"), True])
        assert (
            await poll_until(probe, timeout=1.0, interval=0.01, exceptions=ValueError)
            is True
        )

    @pytest.mark.asyncio
    @pytest.mark.timeout(5)
    async def test_other_exceptions_propagate(self):
        """Test unlisted exceptions are raised immediately."""
        probe = Probe([KeyError("broken"), True])
        with pytest.raises(KeyError):
            await poll_until(probe, timeout=1.0, interval=0.01, exceptions=ValueError)
        assert probe.calls == 1
