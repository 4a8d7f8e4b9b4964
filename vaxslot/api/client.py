"""
CoWIN appointment API client

Thin async wrapper over the bearer-authenticated appointment endpoints.
"""
import logging
from datetime import date
from typing import Optional, List, Dict, Any
import httpx

from .endpoints import Endpoints, DEFAULT_HEADERS
from ..common.config import APIConfig
from ..common.models import (
    Beneficiary,
    BookingRequest,
    Center,
    Credential,
    SearchCriteria,
    Session,
)

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Raised when API request fails"""
    def __init__(self, message: str, status_code: Optional[int] = None, response_body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


def _auth_headers(credential: Credential) -> dict:
    return {"Authorization": f"Bearer {credential.token}"}


def parse_session(data: Dict[str, Any]) -> Session:
    capacity = {}
    for dose in (1, 2):
        value = data.get(f"available_capacity_dose{dose}")
        if value is not None:
            capacity[dose] = int(value)
    # Older responses only carry the combined figure
    if not capacity and data.get("available_capacity") is not None:
        capacity = {1: int(data["available_capacity"]), 2: int(data["available_capacity"])}

    return Session(
        id=str(data["session_id"]),
        date=data.get("date"),
        vaccine=data.get("vaccine"),
        min_age_limit=int(data.get("min_age_limit", 0)),
        available_capacity_by_dose=capacity,
        slots=list(data.get("slots") or []),
    )


def parse_center(data: Dict[str, Any]) -> Center:
    return Center(
        id=int(data["center_id"]),
        name=data.get("name", ""),
        pincode=int(data["pincode"]),
        fee_type=data.get("fee_type"),
        sessions=[parse_session(s) for s in data.get("sessions", [])],
    )


class CoWinAPIClient:
    """
    Direct API client for the CoWIN appointment endpoints.

    Every call takes the credential explicitly; the caller decides when a token
    is too old to use.
    """

    def __init__(self, api: APIConfig):
        self.api = api
        self.client = httpx.AsyncClient(
            headers={**DEFAULT_HEADERS, **api.headers},
            timeout=api.timeout,
            follow_redirects=True
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.client.aclose()

    # ========================================
    # Beneficiaries
    # ========================================

    async def get_beneficiaries(self, credential: Credential) -> List[Beneficiary]:
        """List beneficiaries registered on the account"""
        response = await self.client.get(
            Endpoints.beneficiaries(self.api.base_url),
            headers=_auth_headers(credential)
        )

        if response.status_code != 200:
            raise APIError(
                f"Failed to get beneficiaries: {response.status_code}",
                response.status_code,
                response.text
            )

        return [
            Beneficiary(
                reference_id=str(b["beneficiary_reference_id"]),
                name=b.get("name", ""),
                birth_year=int(b["birth_year"]),
                vaccination_status=b.get("vaccination_status", ""),
            )
            for b in response.json().get("beneficiaries", [])
        ]

    async def find_eligible_beneficiaries(
        self,
        criteria: SearchCriteria,
        credential: Credential,
        today: Optional[date] = None
    ) -> List[Beneficiary]:
        """Beneficiaries that can be booked for the configured dose and age tier"""
        beneficiaries = await self.get_beneficiaries(credential)
        eligible = [
            b for b in beneficiaries
            if b.is_eligible(criteria.age_tier, criteria.dose, today)
        ]
        logger.info(f"{len(eligible)} of {len(beneficiaries)} beneficiaries eligible")
        return eligible

    # ========================================
    # Availability
    # ========================================

    def calendar_url(self, criteria: SearchCriteria, on_date: date) -> str:
        """By pincode when exactly one is configured, otherwise by district"""
        if len(criteria.pincodes) == 1:
            (pincode,) = criteria.pincodes
            return Endpoints.calendar_by_pin(pincode, on_date, self.api.base_url)
        return Endpoints.calendar_by_district(
            criteria.effective_district_id, on_date, self.api.base_url
        )

    async def get_calendar(
        self,
        criteria: SearchCriteria,
        credential: Credential,
        on_date: date
    ) -> List[Center]:
        """
        Get centers and sessions for the week starting at ``on_date``.

        Raises:
            APIError: on a non-success status, which this endpoint returns during
                ordinary rate limiting
        """
        response = await self.client.get(
            self.calendar_url(criteria, on_date),
            headers=_auth_headers(credential)
        )

        if response.status_code != 200:
            raise APIError(
                f"Failed to get calendar: {response.status_code}",
                response.status_code,
                response.text
            )

        return [parse_center(c) for c in response.json().get("centers") or []]

    # ========================================
    # Booking
    # ========================================

    async def schedule(self, request: BookingRequest, credential: Credential) -> httpx.Response:
        """
        Post a schedule request.

        The raw response is returned so the caller can tell a 409 apart from
        other failures.
        """
        logger.debug(f"Scheduling session {request.slot.session_id} at {request.slot.slot}")
        return await self.client.post(
            Endpoints.schedule(self.api.base_url),
            json=request.to_payload(),
            headers=_auth_headers(credential)
        )

    async def get_captcha(self, credential: Credential) -> str:
        """Get captcha SVG markup for the next schedule request"""
        response = await self.client.post(
            Endpoints.captcha(self.api.base_url),
            json={},
            headers=_auth_headers(credential)
        )

        if response.status_code != 200:
            raise APIError(
                f"Failed to get captcha: {response.status_code}",
                response.status_code,
                response.text
            )

        return response.json()["captcha"].replace("\\/", "/")
