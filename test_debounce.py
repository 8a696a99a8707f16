"""
Unit tests for the debounce timer.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from logistics_forms.debounce import DebounceTimer


class TestDebounceTimer:
    """Test cases for DebounceTimer."""

    @pytest.mark.asyncio
    async def test_fires_once_after_quiet_period(self):
        callback = MagicMock()
        timer = DebounceTimer(0.05, callback)

        timer.arm()
        assert timer.pending
        await asyncio.sleep(0.1)

        callback.assert_called_once()
        assert not timer.pending

    @pytest.mark.asyncio
    async def test_rearming_restarts_the_window(self):
        callback = MagicMock()
        timer = DebounceTimer(0.08, callback)

        for _ in range(4):
            timer.arm()
            await asyncio.sleep(0.02)
        callback.assert_not_called()

        await asyncio.sleep(0.12)
        callback.assert_called_once()

    @pytest.mark.asyncio
    async def test_cancel_prevents_firing(self):
        callback = MagicMock()
        timer = DebounceTimer(0.03, callback)

        timer.arm()
        timer.cancel()
        await asyncio.sleep(0.06)

        callback.assert_not_called()
        assert not timer.pending

    @pytest.mark.asyncio
    async def test_callback_errors_are_logged_not_raised(self, caplog):
        timer = DebounceTimer(0.01, MagicMock(side_effect=RuntimeError("consumer broke")))

        timer.arm()
        await asyncio.sleep(0.05)

        assert "consumer broke" in caplog.text

    def test_arm_requires_a_running_loop(self):
        with pytest.raises(RuntimeError):
            DebounceTimer(0.01, MagicMock()).arm()
