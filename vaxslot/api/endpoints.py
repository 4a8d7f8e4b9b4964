"""
CoWIN public API endpoints

⚠️ WARNING: The booking flow relies on the same endpoints as the CoWIN web
client. They may change without notice.
"""
from datetime import date
from urllib.parse import urlencode


BASE_URL = "https://cdn-api.co-vin.in/api"


def format_query_date(day: date) -> str:
    """Calendar endpoints expect DD-MM-YYYY"""
    return day.strftime("%d-%m-%Y")


class Endpoints:
    """
    Collection of CoWIN API endpoints.

    All builders take an optional ``base_url`` so a configured mirror can be used.
    """

    # ============================================================
    # AUTHENTICATION ENDPOINTS
    # ============================================================

    @staticmethod
    def generate_otp(base_url: str = BASE_URL) -> str:
        """
        Request an OTP for a mobile number.

        POST /v2/auth/generateMobileOTP
        Body: {"mobile": "...", "secret": "..."}

        Returns {"txnId": "..."}
        """
        return f"{base_url}/v2/auth/generateMobileOTP"

    @staticmethod
    def validate_otp(base_url: str = BASE_URL) -> str:
        """
        Exchange a hashed OTP for a bearer token.

        POST /v2/auth/validateMobileOtp
        Body: {"txnId": "...", "otp": "<sha256 hex>"}

        Returns {"token": "<jwt>"}
        """
        return f"{base_url}/v2/auth/validateMobileOtp"

    @staticmethod
    def captcha(base_url: str = BASE_URL) -> str:
        """
        Get a captcha for the schedule request (bearer).

        POST /v2/auth/getRecaptcha
        Returns {"captcha": "<svg markup>"}
        """
        return f"{base_url}/v2/auth/getRecaptcha"

    # ============================================================
    # APPOINTMENT ENDPOINTS (bearer required)
    # ============================================================

    @staticmethod
    def beneficiaries(base_url: str = BASE_URL) -> str:
        """
        List beneficiaries registered on the account.

        GET /v2/appointment/beneficiaries
        """
        return f"{base_url}/v2/appointment/beneficiaries"

    @staticmethod
    def calendar_by_pin(pincode: int, day: date, base_url: str = BASE_URL) -> str:
        """
        Sessions for seven days starting at ``day`` for one pincode.

        GET /v2/appointment/sessions/calendarByPin?pincode={pin}&date={DD-MM-YYYY}
        """
        params = {"pincode": pincode, "date": format_query_date(day)}
        return f"{base_url}/v2/appointment/sessions/calendarByPin?{urlencode(params)}"

    @staticmethod
    def calendar_by_district(district_id: int, day: date, base_url: str = BASE_URL) -> str:
        """
        Sessions for seven days starting at ``day`` for a district.

        GET /v2/appointment/sessions/calendarByDistrict?district_id={id}&date={DD-MM-YYYY}
        """
        params = {"district_id": district_id, "date": format_query_date(day)}
        return f"{base_url}/v2/appointment/sessions/calendarByDistrict?{urlencode(params)}"

    @staticmethod
    def schedule(base_url: str = BASE_URL) -> str:
        """
        Book a slot.

        POST /v2/appointment/schedule
        Body: {"dose", "captcha", "center_id", "session_id", "beneficiaries", "slot"}

        Returns {"appointment_confirmation_no": "..."} or a 409 when the slot is gone.
        """
        return f"{base_url}/v2/appointment/schedule"


# The CDN rejects requests carrying library user agents
DEFAULT_HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "en-US,en;q=0.9",
    "Content-Type": "application/json",
    "Origin": "https://selfregistration.cowin.gov.in",
    "Referer": "https://selfregistration.cowin.gov.in/",
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/90.0.4430.93 Safari/537.36"
}
