"""
Common utilities for the vaccination slot bot
"""
from .config import Config, ConfigError, load_config
from .models import (
    AgeTier,
    Beneficiary,
    BookingOutcome,
    BookingRequest,
    BookingStatus,
    Center,
    Credential,
    FeeFilter,
    SearchCriteria,
    SelectedSlot,
    Session,
    is_unresolved,
)
from .prompts import HumanPrompt
from .captcha import CaptchaPresenter, CaptchaSolver
from .scheduler import LaunchGate, JitteredDelay, format_duration

__all__ = [
    "Config",
    "ConfigError",
    "load_config",
    "AgeTier",
    "Beneficiary",
    "BookingOutcome",
    "BookingRequest",
    "BookingStatus",
    "Center",
    "Credential",
    "FeeFilter",
    "SearchCriteria",
    "SelectedSlot",
    "Session",
    "is_unresolved",
    "HumanPrompt",
    "CaptchaPresenter",
    "CaptchaSolver",
    "LaunchGate",
    "JitteredDelay",
    "format_duration",
]
