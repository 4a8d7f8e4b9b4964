"""
Tests for API endpoints (vaxslot/api/endpoints.py)
"""
from datetime import date

from vaxslot.api.endpoints import (
    Endpoints,
    DEFAULT_HEADERS,
    BASE_URL,
    format_query_date,
)


class TestFormatQueryDate:
    def test_day_month_year(self):
        assert format_query_date(date(2021, 5, 3)) == "03-05-2021"


class TestEndpointsAuth:
    def test_generate_otp(self):
        assert Endpoints.generate_otp() == f"{BASE_URL}/v2/auth/generateMobileOTP"

    def test_validate_otp(self):
        assert Endpoints.validate_otp() == f"{BASE_URL}/v2/auth/validateMobileOtp"

    def test_captcha(self):
        assert Endpoints.captcha() == f"{BASE_URL}/v2/auth/getRecaptcha"

    def test_custom_base_url(self):
        assert Endpoints.generate_otp("http://localhost:8000") == "http://localhost:8000/v2/auth/generateMobileOTP"


class TestEndpointsAppointment:
    def test_beneficiaries(self):
        assert Endpoints.beneficiaries() == f"{BASE_URL}/v2/appointment/beneficiaries"

    def test_calendar_by_pin(self):
        url = Endpoints.calendar_by_pin(400001, date(2021, 5, 3))
        assert "v2/appointment/sessions/calendarByPin" in url
        assert "pincode=400001" in url
        assert "date=03-05-2021" in url

    def test_calendar_by_district(self):
        url = Endpoints.calendar_by_district(395, date(2021, 5, 3))
        assert "v2/appointment/sessions/calendarByDistrict" in url
        assert "district_id=395" in url
        assert "date=03-05-2021" in url

    def test_schedule(self):
        assert Endpoints.schedule() == f"{BASE_URL}/v2/appointment/schedule"


class TestDefaultHeaders:
    def test_browser_user_agent(self):
        assert "Mozilla" in DEFAULT_HEADERS["User-Agent"]

    def test_json_content_type(self):
        assert DEFAULT_HEADERS["Content-Type"] == "application/json"
