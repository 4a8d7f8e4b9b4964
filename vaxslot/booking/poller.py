"""
Availability polling

Queries the calendar endpoint until a session matching the search criteria
shows up, the search window closes, or the token runs out.
"""
import logging
import time
from datetime import date, datetime
from typing import Iterable, Iterator, List, Optional, Tuple

import httpx
import pytz

from ..api.client import APIError, CoWinAPIClient
from ..common.models import Center, Credential, SearchCriteria, SelectedSlot, Session
from ..common.scheduler import JitteredDelay

logger = logging.getLogger(__name__)


def eligible_sessions(
    centers: Iterable[Center],
    criteria: SearchCriteria
) -> Iterator[Tuple[Center, Session]]:
    """Yield matching center/session pairs in server response order"""
    for center in centers:
        if not criteria.matches_pincode(center.pincode):
            continue
        if not criteria.fee.matches(center.fee_type):
            continue
        for session in center.sessions:
            if (
                session.capacity_for(criteria.dose) > 0
                and criteria.matches_vaccine(session.vaccine)
                and criteria.age_tier.matches(session.min_age_limit)
                and session.slots
            ):
                yield center, session


def filter_eligible_session(
    centers: Iterable[Center],
    criteria: SearchCriteria
) -> Optional[SelectedSlot]:
    """
    Pick the first eligible session.

    No ranking: the first pair in response order wins.
    """
    for center, session in eligible_sessions(centers, criteria):
        return SelectedSlot(
            center_id=center.id,
            session_id=session.id,
            slot=session.slots[0],
            center_name=center.name,
            capacity=session.capacity_for(criteria.dose),
        )
    return None


class AvailabilityPoller:
    """Bounded search loop over the calendar endpoint"""

    def __init__(
        self,
        client: CoWinAPIClient,
        window_seconds: float = 420,
        delay: Optional[JitteredDelay] = None,
        timezone: str = "Asia/Kolkata"
    ):
        self.client = client
        self.window_seconds = window_seconds
        self.delay = delay or JitteredDelay(1500, 2500)
        self.tz = pytz.timezone(timezone)

    def _today(self) -> date:
        return datetime.now(self.tz).date()

    async def search(
        self,
        criteria: SearchCriteria,
        credential: Credential
    ) -> Optional[SelectedSlot]:
        """
        Poll until a slot is found.

        Returns:
            The selected slot, or None when the window elapses or the token
            expires first
        """
        logger.info("Searching...")
        deadline = time.monotonic() + self.window_seconds

        while time.monotonic() < deadline:
            if credential.is_expired():
                logger.warning("Token expired, stopping search")
                return None

            try:
                centers = await self.client.get_calendar(criteria, credential, self._today())
            except (APIError, httpx.TransportError) as e:
                logger.warning(f"Calendar query failed: {e}")
                centers = []

            if centers:
                selected = filter_eligible_session(centers, criteria)
                if selected:
                    logger.info(
                        f"Found availability at {selected.center_name or selected.center_id}. "
                        f"Availability: {selected.capacity}"
                    )
                    return selected

            await self.delay.wait()

        logger.info("Could not find any slots to book!")
        return None

    async def check_once(
        self,
        criteria: SearchCriteria,
        credential: Credential
    ) -> List[Tuple[Center, Session]]:
        """Single query, every eligible pair"""
        centers = await self.client.get_calendar(criteria, credential, self._today())
        return list(eligible_sessions(centers, criteria))
