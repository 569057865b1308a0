import datetime

import pytest
from rest_framework.test import APIClient

from api import db as api_db

HOSPITAL = {
    "name": "City Hospital",
    "email": "city@hospital.com",
    "password": "secret123",
    "role": "hospital",
    "phone": "9876543210",
    "address": "12 Main Road, Pune",
    "hospitalInfo": {"licenseNumber": "lic-001", "emergencyContact": "9876500000"},
}

OTHER_HOSPITAL = dict(
    HOSPITAL, name="County Hospital", email="county@hospital.com",
    hospitalInfo={"licenseNumber": "LIC-002"},
)

LAB = {
    "name": "Central Blood Lab",
    "email": "central@lab.com",
    "password": "secret123",
    "role": "lab",
    "phone": "9123456780",
    "address": "4 Lab Street, Pune",
    "hospitalInfo": {"licenseNumber": "LAB-001"},
}

DONOR = {
    "name": "Asha Donor",
    "email": "asha@donor.com",
    "password": "secret123",
    "role": "donor",
    "phone": "9000000001",
    "bloodType": "O+",
}


@pytest.fixture(autouse=True)
def mongo():
    api_db.reset_db()
    database = api_db.get_db()
    yield database
    database.client.drop_database(database.name)
    api_db.reset_db()


@pytest.fixture
def api_client():
    return APIClient()


def register(payload):
    client = APIClient()
    response = client.post('/api/auth/register', payload)
    assert response.status_code == 201, response.json()
    body = response.json()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {body['token']}")
    client.account = body['user']
    return client


@pytest.fixture
def hospital():
    return register(HOSPITAL)


@pytest.fixture
def other_hospital():
    return register(OTHER_HOSPITAL)


@pytest.fixture
def lab():
    return register(LAB)


@pytest.fixture
def donor():
    return register(DONOR)


def parse_ts(value):
    return datetime.datetime.fromisoformat(value).replace(tzinfo=None)


def days_ago(days):
    moment = datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(days=days)
    return moment.replace(microsecond=0, tzinfo=None)
