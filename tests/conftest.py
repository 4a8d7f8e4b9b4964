from datetime import datetime, timedelta, timezone

import pytest

from vaxslot.common.config import Config, CredentialsConfig, SearchConfig, ScheduleConfig
from vaxslot.common.models import Center, Credential, Session


@pytest.fixture()
def config():
    return Config(
        credentials=CredentialsConfig(mobile="9876543210"),
        search=SearchConfig(
            pincodes=[400001, 400002],
            district_id=395,
            fee="free",
            vaccine="COVISHIELD",
            age_tier="45_plus",
            dose=1,
        ),
        schedule=ScheduleConfig(start_time="20:00:00"),
    )


@pytest.fixture()
def criteria(config):
    return config.search.to_criteria()


@pytest.fixture()
def credential():
    return Credential(
        token="token-1",
        expires_at=datetime.now(timezone.utc) + timedelta(minutes=15),
    )


@pytest.fixture()
def expired_credential():
    return Credential(
        token="token-old",
        expires_at=datetime.now(timezone.utc) - timedelta(seconds=1),
    )


def make_session(
    session_id="s1",
    capacity=None,
    vaccine="COVISHIELD",
    min_age_limit=45,
    slots=("09:00AM-11:00AM", "11:00AM-01:00PM"),
):
    return Session(
        id=session_id,
        date="01-06-2021",
        vaccine=vaccine,
        min_age_limit=min_age_limit,
        available_capacity_by_dose={1: 5} if capacity is None else capacity,
        slots=list(slots),
    )


def make_center(center_id=1, pincode=400001, fee_type="Free", sessions=None, name=None):
    return Center(
        id=center_id,
        name=name or f"Center {center_id}",
        pincode=pincode,
        fee_type=fee_type,
        sessions=sessions if sessions is not None else [make_session()],
    )
