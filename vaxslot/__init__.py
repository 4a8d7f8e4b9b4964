"""
CoWIN Vaccination Slot Bot

Books a vaccination appointment the moment new slots are released:

1. Launch gate (vaxslot.common.scheduler)
   - Sleeps until shortly before the release instant
   - Leaves time for the OTP and captcha, then waits out the last seconds precisely

2. Search and booking (vaxslot.booking)
   - Polls the calendar endpoint for a matching session
   - Hammers the schedule endpoint until confirmed or rejected
   - A human confirms every retry and re-enters the OTP when the token expires
"""
from .common.config import Config, ConfigError, load_config

__version__ = "1.0.0"

__all__ = [
    "Config",
    "ConfigError",
    "load_config",
]
