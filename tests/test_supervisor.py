"""
Tests for the retry controller (vaxslot/booking/supervisor.py)
"""
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

from vaxslot.api.auth import AuthenticationError
from vaxslot.booking.supervisor import RetryController, RetryDeclined
from vaxslot.common.models import BookingOutcome, BookingStatus, Credential, SelectedSlot


SLOT = SelectedSlot(center_id=1, session_id="s1", slot="FORENOON")


def _controller(answers=(), new_credential=None):
    prompt = MagicMock()
    prompt.confirm = AsyncMock(side_effect=list(answers))
    authenticate = AsyncMock(return_value=new_credential)
    return RetryController(authenticate, "9876543210", prompt)


class TestRetryController:
    @pytest.mark.asyncio
    async def test_resolved_on_first_run(self, credential):
        controller = _controller()
        stage = AsyncMock(return_value=SLOT)

        result, cred = await controller.supervise(stage, "args", credential, "Search again?")

        assert result == SLOT
        assert cred is credential
        stage.assert_awaited_once_with("args", credential)
        controller.prompt.confirm.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_after_confirmation(self, credential):
        controller = _controller(answers=[True, True])
        stage = AsyncMock(side_effect=[None, None, SLOT])

        result, _ = await controller.supervise(stage, "args", credential, "Search again?")

        assert result == SLOT
        assert stage.await_count == 3
        controller.prompt.confirm.assert_awaited_with("Search again?")

    @pytest.mark.asyncio
    async def test_retries_inconclusive_booking(self, credential):
        controller = _controller(answers=[True])
        stage = AsyncMock(side_effect=[
            BookingOutcome.inconclusive(),
            BookingOutcome.confirmed("99"),
        ])

        result, _ = await controller.supervise(stage, "req", credential, "Try to schedule again?")

        assert result.confirmation_number == "99"
        controller.prompt.confirm.assert_awaited_once_with("Try to schedule again?")

    @pytest.mark.asyncio
    async def test_rejection_is_returned_without_prompt(self, credential):
        controller = _controller()
        stage = AsyncMock(return_value=BookingOutcome.rejected())

        result, _ = await controller.supervise(stage, "req", credential, "Try to schedule again?")

        assert result.status == BookingStatus.REJECTED
        controller.prompt.confirm.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_decline_raises(self, credential):
        controller = _controller(answers=[False])
        stage = AsyncMock(return_value=None)

        with pytest.raises(RetryDeclined):
            await controller.supervise(stage, "args", credential, "Search again?")
        stage.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_valid_credential_not_replaced(self, credential):
        controller = _controller(answers=[True])
        stage = AsyncMock(side_effect=[None, SLOT])

        _, cred = await controller.supervise(stage, "args", credential, "Search again?")

        assert cred is credential
        controller.authenticate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_expired_credential_reauthenticates(self, expired_credential):
        fresh = Credential(token="token-2", expires_at=datetime.now(timezone.utc) + timedelta(minutes=15))
        controller = _controller(answers=[True], new_credential=fresh)
        stage = AsyncMock(side_effect=[None, SLOT])

        result, cred = await controller.supervise(stage, "args", expired_credential, "Search again?")

        assert result == SLOT
        assert cred is fresh
        controller.authenticate.assert_awaited_once_with("9876543210")
        assert stage.call_args_list[1].args == ("args", fresh)

    @pytest.mark.asyncio
    async def test_reauthentication_refreshes_args(self, expired_credential):
        fresh = Credential(token="token-2", expires_at=datetime.now(timezone.utc) + timedelta(minutes=15))
        controller = _controller(answers=[True], new_credential=fresh)
        stage = AsyncMock(side_effect=[BookingOutcome.inconclusive(), BookingOutcome.confirmed("1")])
        refresh = AsyncMock(return_value="args-with-new-captcha")

        await controller.supervise(stage, "args", expired_credential, "Try to schedule again?", refresh_args=refresh)

        refresh.assert_awaited_once_with("args", fresh)
        assert stage.call_args_list[1].args == ("args-with-new-captcha", fresh)

    @pytest.mark.asyncio
    async def test_reauthentication_happens_before_prompt(self, expired_credential):
        order = []
        fresh = Credential(token="token-2", expires_at=datetime.now(timezone.utc) + timedelta(minutes=15))

        async def authenticate(mobile):
            order.append("auth")
            return fresh

        async def confirm(question):
            order.append("prompt")
            return True

        prompt = MagicMock()
        prompt.confirm = confirm
        controller = RetryController(authenticate, "9876543210", prompt)
        stage = AsyncMock(side_effect=[None, SLOT])

        await controller.supervise(stage, "args", expired_credential, "Search again?")

        assert order == ["auth", "prompt"]

    @pytest.mark.asyncio
    async def test_authentication_error_propagates(self, expired_credential):
        controller = _controller(answers=[True])
        controller.authenticate = AsyncMock(side_effect=AuthenticationError("Invalid OTP"))
        stage = AsyncMock(return_value=None)

        with pytest.raises(AuthenticationError):
            await controller.supervise(stage, "args", expired_credential, "Search again?")
        stage.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_ask_to_continue(self):
        controller = _controller(answers=[True, False])

        await controller.ask_to_continue("Search again?")
        with pytest.raises(RetryDeclined):
            await controller.ask_to_continue("Search again?")
