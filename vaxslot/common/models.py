"""
Data models for the vaccination slot bot
"""
from datetime import datetime, date, timedelta, timezone
from typing import Optional, List, Dict, FrozenSet
from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum


class FeeFilter(str, Enum):
    FREE = "free"
    PAID = "paid"
    ANY = "any"

    def matches(self, fee_type: Optional[str]) -> bool:
        if self is FeeFilter.ANY:
            return True
        return (fee_type or "").lower() == self.value


class AgeTier(str, Enum):
    UNDER_45 = "under_45"
    FORTY_FIVE_PLUS = "45_plus"
    ANY = "any"

    @property
    def min_age_limit(self) -> Optional[int]:
        """The session age limit this tier books against"""
        return {
            AgeTier.UNDER_45: 18,
            AgeTier.FORTY_FIVE_PLUS: 45,
        }.get(self)

    def matches(self, min_age_limit: int) -> bool:
        if self is AgeTier.ANY:
            return True
        return min_age_limit == self.min_age_limit

    def includes_age(self, age: int) -> bool:
        if self is AgeTier.FORTY_FIVE_PLUS:
            return age >= 45
        if self is AgeTier.UNDER_45:
            return age < 45
        return True


class Credential(BaseModel):
    """Bearer token and the instant it stops being accepted"""
    model_config = ConfigDict(frozen=True)

    token: str
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at

    def remaining(self, now: Optional[datetime] = None) -> timedelta:
        now = now or datetime.now(timezone.utc)
        return max(self.expires_at - now, timedelta(0))


class SearchCriteria(BaseModel):
    """Immutable search preferences for a run"""
    model_config = ConfigDict(frozen=True)

    pincodes: FrozenSet[int] = frozenset()
    district_id: Optional[int] = None
    fee: FeeFilter = FeeFilter.ANY
    vaccine: Optional[str] = None  # None means any vaccine
    age_tier: AgeTier = AgeTier.ANY
    dose: int = 1

    @field_validator("vaccine")
    @classmethod
    def normalize_vaccine(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip().upper()
        if not value or value == "ANY":
            return None
        return value

    @property
    def effective_district_id(self) -> int:
        return self.district_id or 395

    def matches_pincode(self, pincode: int) -> bool:
        return not self.pincodes or pincode in self.pincodes

    def matches_vaccine(self, vaccine: Optional[str]) -> bool:
        if self.vaccine is None:
            return True
        return (vaccine or "").upper() == self.vaccine


class Session(BaseModel):
    """A vaccination session at a center on one date"""
    id: str
    date: Optional[str] = None  # DD-MM-YYYY as sent by the server
    vaccine: Optional[str] = None
    min_age_limit: int
    available_capacity_by_dose: Dict[int, int] = Field(default_factory=dict)
    slots: List[str] = Field(default_factory=list)

    def capacity_for(self, dose: int) -> int:
        return self.available_capacity_by_dose.get(dose, 0)


class Center(BaseModel):
    """Vaccination center from a calendar response"""
    id: int
    name: str = ""
    pincode: int
    fee_type: Optional[str] = None  # "Free" or "Paid"
    sessions: List[Session] = Field(default_factory=list)


class SelectedSlot(BaseModel):
    """Session picked by the poller"""
    model_config = ConfigDict(frozen=True)

    center_id: int
    session_id: str
    slot: str
    center_name: str = ""
    capacity: int = 0


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    INCONCLUSIVE = "inconclusive"


class BookingOutcome(BaseModel):
    """Result of one executor run"""
    model_config = ConfigDict(frozen=True)

    status: BookingStatus
    confirmation_number: Optional[str] = None

    @classmethod
    def confirmed(cls, confirmation_number: str) -> "BookingOutcome":
        return cls(status=BookingStatus.CONFIRMED, confirmation_number=confirmation_number)

    @classmethod
    def rejected(cls) -> "BookingOutcome":
        return cls(status=BookingStatus.REJECTED)

    @classmethod
    def inconclusive(cls) -> "BookingOutcome":
        return cls(status=BookingStatus.INCONCLUSIVE)


class BookingRequest(BaseModel):
    """Arguments of the booking stage"""
    model_config = ConfigDict(frozen=True)

    slot: SelectedSlot
    beneficiary_ids: List[str]
    dose: int
    captcha: str

    def to_payload(self) -> dict:
        """Convert to schedule request body"""
        return {
            "dose": self.dose,
            "captcha": self.captcha,
            "center_id": self.slot.center_id,
            "session_id": self.slot.session_id,
            "beneficiaries": list(self.beneficiary_ids),
            "slot": self.slot.slot,
        }


class Beneficiary(BaseModel):
    """Person registered on the account"""
    reference_id: str
    name: str
    birth_year: int
    vaccination_status: str

    def age(self, today: Optional[date] = None) -> int:
        today = today or date.today()
        return today.year - self.birth_year

    def is_eligible(self, age_tier: AgeTier, dose: int, today: Optional[date] = None) -> bool:
        """Check whether this person can be booked for the dose and tier"""
        required_status = "Not Vaccinated" if dose == 1 else "Partially Vaccinated"
        if self.vaccination_status != required_status:
            return False
        return age_tier.includes_age(self.age(today))


def is_unresolved(result) -> bool:
    """True for an empty search or an inconclusive booking"""
    if result is None:
        return True
    if isinstance(result, BookingOutcome):
        return result.status == BookingStatus.INCONCLUSIVE
    return False
