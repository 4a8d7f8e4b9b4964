"""
Search, booking and the retry layer around them
"""
from .poller import AvailabilityPoller, filter_eligible_session, eligible_sessions
from .executor import BookingExecutor
from .supervisor import RetryController, RetryDeclined
from .flow import BookingFlow

__all__ = [
    "AvailabilityPoller",
    "filter_eligible_session",
    "eligible_sessions",
    "BookingExecutor",
    "RetryController",
    "RetryDeclined",
    "BookingFlow",
]
