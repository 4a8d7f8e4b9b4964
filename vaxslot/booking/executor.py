"""
Booking attempts

Hammers the schedule endpoint for a selected slot until it is confirmed,
taken by someone else, or the attempt window closes.
"""
import logging
import time
from typing import Optional

from ..api.client import CoWinAPIClient
from ..common.models import BookingOutcome, BookingRequest, Credential
from ..common.scheduler import JitteredDelay

logger = logging.getLogger(__name__)


class BookingExecutor:
    """
    Bounded commit loop.

    The pause between attempts is much shorter than the poller's; the schedule
    endpoint has a narrow contention window.
    """

    def __init__(
        self,
        client: CoWinAPIClient,
        window_seconds: float = 180,
        delay: Optional[JitteredDelay] = None
    ):
        self.client = client
        self.window_seconds = window_seconds
        self.delay = delay or JitteredDelay(50, 100)

    async def attempt(self, request: BookingRequest, credential: Credential) -> BookingOutcome:
        logger.info("Scheduling...")
        deadline = time.monotonic() + self.window_seconds

        while time.monotonic() < deadline:
            if credential.is_expired():
                logger.warning("Token expired, cannot schedule")
                return BookingOutcome.inconclusive()

            response = await self.client.schedule(request, credential)

            if response.status_code == 409:
                logger.warning("Slots booked!")
                return BookingOutcome.rejected()

            if not response.is_success:
                logger.warning(f"Something wrong, received http status code: {response.status_code}")
            else:
                data = response.json()
                confirmation = data.get("appointment_confirmation_no")
                if confirmation:
                    return BookingOutcome.confirmed(str(confirmation))
                logger.warning(f"No confirmation number in response: {data}")

            await self.delay.wait()

        logger.info("Booking window elapsed")
        return BookingOutcome.inconclusive()
