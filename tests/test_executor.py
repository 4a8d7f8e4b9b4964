"""
Tests for booking attempts (vaxslot/booking/executor.py)
"""
import pytest
import time
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from vaxslot.booking.executor import BookingExecutor
from vaxslot.common.models import BookingRequest, BookingStatus, Credential, SelectedSlot
from vaxslot.common.scheduler import JitteredDelay


REQUEST = BookingRequest(
    slot=SelectedSlot(center_id=1234, session_id="s1", slot="09:00AM-11:00AM"),
    beneficiary_ids=["111", "222"],
    dose=1,
    captcha="aBc9",
)


def _executor(responses, window_seconds=180, delay=None):
    client = MagicMock()
    client.schedule = AsyncMock(side_effect=responses)
    return BookingExecutor(client, window_seconds=window_seconds, delay=delay or JitteredDelay(1, 2))


class TestBookingExecutor:
    @pytest.mark.asyncio
    async def test_confirmed(self, credential):
        executor = _executor([httpx.Response(200, json={"appointment_confirmation_no": "1234567890"})])

        outcome = await executor.attempt(REQUEST, credential)

        assert outcome.status == BookingStatus.CONFIRMED
        assert outcome.confirmation_number == "1234567890"
        executor.client.schedule.assert_awaited_once_with(REQUEST, credential)

    @pytest.mark.asyncio
    async def test_conflict_rejects_without_retrying(self, credential):
        executor = _executor([
            httpx.Response(409, json={"errorCode": "APPOIN0040"}),
            httpx.Response(200, json={"appointment_confirmation_no": "never"}),
        ])

        outcome = await executor.attempt(REQUEST, credential)

        assert outcome.status == BookingStatus.REJECTED
        executor.client.schedule.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_other_statuses_are_retried(self, credential):
        executor = _executor([
            httpx.Response(500),
            httpx.Response(400, json={"error": "Invalid captcha"}),
            httpx.Response(429),
            httpx.Response(200, json={"appointment_confirmation_no": "42"}),
        ])

        outcome = await executor.attempt(REQUEST, credential)

        assert outcome.confirmation_number == "42"
        assert executor.client.schedule.await_count == 4

    @pytest.mark.asyncio
    async def test_ok_without_confirmation_is_retried(self, credential):
        executor = _executor([
            httpx.Response(200, json={"message": "queued"}),
            httpx.Response(200, json={"appointment_confirmation_no": "77"}),
        ])

        outcome = await executor.attempt(REQUEST, credential)

        assert outcome.status == BookingStatus.CONFIRMED
        assert executor.client.schedule.await_count == 2

    @pytest.mark.asyncio
    async def test_expired_credential_is_inconclusive(self, expired_credential):
        executor = _executor([httpx.Response(200, json={"appointment_confirmation_no": "1"})])

        outcome = await executor.attempt(REQUEST, expired_credential)

        assert outcome.status == BookingStatus.INCONCLUSIVE
        executor.client.schedule.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_credential_expiring_mid_loop(self):
        credential = Credential(
            token="t",
            expires_at=datetime.now(timezone.utc) + timedelta(milliseconds=30),
        )
        client = MagicMock()
        client.schedule = AsyncMock(return_value=httpx.Response(500))
        executor = BookingExecutor(client, window_seconds=60, delay=JitteredDelay(50, 60))

        outcome = await executor.attempt(REQUEST, credential)

        assert outcome.status == BookingStatus.INCONCLUSIVE
        client.schedule.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_window_elapsed_is_inconclusive(self, credential):
        client = MagicMock()
        client.schedule = AsyncMock(return_value=httpx.Response(503))
        executor = BookingExecutor(client, window_seconds=0.05, delay=JitteredDelay(5, 10))

        start = time.monotonic()
        outcome = await executor.attempt(REQUEST, credential)

        assert outcome.status == BookingStatus.INCONCLUSIVE
        assert time.monotonic() - start >= 0.05
        assert client.schedule.await_count >= 2

    @pytest.mark.asyncio
    async def test_delays_within_jitter_bounds(self, credential):
        executor = _executor(
            [httpx.Response(500)] * 4 + [httpx.Response(200, json={"appointment_confirmation_no": "1"})],
            delay=JitteredDelay(50, 100),
        )

        sleep = AsyncMock()
        with patch("vaxslot.common.scheduler.asyncio.sleep", sleep):
            await executor.attempt(REQUEST, credential)

        assert sleep.await_count == 4
        for call in sleep.call_args_list:
            assert 0.05 <= call.args[0] <= 0.1

    @pytest.mark.asyncio
    async def test_network_errors_propagate(self, credential):
        executor = _executor([httpx.ConnectError("down")])

        with pytest.raises(httpx.ConnectError):
            await executor.attempt(REQUEST, credential)
