import pytest
from bson import ObjectId
from rest_framework.test import APIClient

import seed_admin

from .conftest import HOSPITAL, LAB, register

PENDING_MESSAGE = "Your account is awaiting admin approval. Please wait before logging in."
REJECTED_MESSAGE = "Your registration has been rejected by admin. Contact support for details."


@pytest.fixture
def admin():
    seed_admin.seed_admin("root@bank.com", "admin-pass")
    client = APIClient()
    login = client.post('/api/auth/login', {"email": "root@bank.com", "password": "admin-pass"})
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.json()['token']}")
    client.account = login.json()['user']
    return client


@pytest.fixture
def approval_required(settings):
    settings.REQUIRE_FACILITY_APPROVAL = True


def login(client, payload):
    return client.post('/api/auth/login', {"email": payload['email'], "password": payload['password']})


def test_pending_facility_is_locked_out(approval_required, api_client, mongo):
    pending = register(HOSPITAL)

    assert pending.account['status'] == 'pending'
    assert mongo.users.find_one({"email": HOSPITAL['email']})['status'] == 'pending'

    refused = login(api_client, HOSPITAL)
    assert refused.status_code == 403
    assert refused.json()['message'] == PENDING_MESSAGE

    with_token = pending.get('/api/hospital/blood')
    assert with_token.status_code == 403
    assert with_token.json()['message'] == PENDING_MESSAGE


def test_donors_skip_approval(approval_required, donor, api_client):
    assert donor.account.get('status') is None
    assert donor.get('/api/donor/stats').status_code == 200


def test_approve_facility(approval_required, admin, api_client, mongo):
    pending = register(HOSPITAL)

    response = admin.put(f"/api/admin/facility/approve/{pending.account['id']}")

    assert response.status_code == 200
    assert response.json()['message'] == "Facility approved"
    facility = response.json()['facility']
    assert facility['status'] == 'approved'
    assert facility['approvedBy'] == admin.account['id']
    assert 'password' not in facility
    assert login(api_client, HOSPITAL).status_code == 200
    assert pending.get('/api/hospital/blood').status_code == 200

    event = mongo.users.find_one({"email": HOSPITAL['email']})['history'][0]
    assert (event['eventType'], event['description']) == ('Verification', "Registration approved by admin")


def test_reject_requires_reason(admin, hospital):
    url = f"/api/admin/facility/reject/{hospital.account['id']}"

    for payload in ({}, {"rejectionReason": ""}):
        response = admin.put(url, payload)
        assert response.status_code == 400
        assert response.json()['message'] == "rejectionReason: Rejection reason is required."


def test_rejected_facility_is_locked_out(admin, hospital, api_client, mongo):
    response = admin.put(
        f"/api/admin/facility/reject/{hospital.account['id']}", {"rejectionReason": "License expired"},
    )

    assert response.json()['message'] == "Facility rejected and status updated"
    assert response.json()['facility']['rejectionReason'] == "License expired"

    refused = login(api_client, HOSPITAL)
    assert refused.status_code == 403
    assert refused.json()['message'] == REJECTED_MESSAGE
    assert hospital.get('/api/hospital/blood').json()['message'] == REJECTED_MESSAGE

    event = mongo.users.find_one({"email": HOSPITAL['email']})['history'][-1]
    assert event['description'] == "Registration rejected: License expired"


def test_approval_after_rejection_clears_reason(admin, hospital, mongo):
    admin.put(f"/api/admin/facility/reject/{hospital.account['id']}", {"rejectionReason": "Blurry scan"})

    admin.put(f"/api/admin/facility/approve/{hospital.account['id']}")

    stored = mongo.users.find_one({"email": HOSPITAL['email']})
    assert stored['status'] == 'approved'
    assert 'rejectionReason' not in stored
    assert hospital.get('/api/hospital/blood').status_code == 200


def test_approval_targets_facilities_only(admin, donor):
    assert admin.put(f"/api/admin/facility/approve/{ObjectId()}").status_code == 404
    assert admin.put(f"/api/admin/facility/approve/{donor.account['id']}").status_code == 404
    assert admin.put(f"/api/admin/facility/approve/{admin.account['id']}").status_code == 404


def test_admin_dashboard(admin, hospital, lab, donor, mongo):
    admin.put(f"/api/admin/facility/reject/{lab.account['id']}", {"rejectionReason": "Unverified"})
    hospital.post('/api/camps', {
        "title": "Drive", "address": {"street": "1 Park Lane", "city": "Pune", "state": "Maharashtra"},
        "date": "2026-11-01", "endDate": "2026-11-01", "capacity": 5,
    })

    stats = admin.get('/api/admin/dashboard').json()['stats']

    assert stats == {
        "totalDonors": 1,
        "eligibleDonors": 1,
        "totalFacilities": 2,
        "approvedFacilities": 1,
        "pendingFacilities": 0,
        "rejectedFacilities": 1,
        "totalDonations": 0,
        "upcomingCamps": 1,
    }


def test_facility_list_filters(admin, hospital, lab):
    admin.put(f"/api/admin/facility/reject/{lab.account['id']}", {"rejectionReason": "Unverified"})

    def emails(**params):
        found = admin.get('/api/admin/facilities', params).json()['facilities']
        return sorted(f['email'] for f in found)

    assert emails() == [LAB['email'], HOSPITAL['email']]
    assert emails(status='rejected') == [LAB['email']]
    assert emails(role='hospital') == [HOSPITAL['email']]
    assert admin.get('/api/admin/facilities', {"status": "archived"}).status_code == 400
    assert admin.get('/api/admin/facilities', {"role": "donor"}).status_code == 400


def test_donor_list(admin, donor, hospital):
    donors = admin.get('/api/admin/donors').json()['donors']

    assert [d['email'] for d in donors] == [donor.account['email']]
    assert 'password' not in donors[0]
    assert 'history' not in donors[0]


def test_admin_routes_need_admin(hospital, donor):
    for client in (hospital, donor):
        assert client.get('/api/admin/dashboard').status_code == 403
        assert client.get('/api/admin/facilities').status_code == 403
        assert client.put(f"/api/admin/facility/approve/{hospital.account['id']}").status_code == 403
