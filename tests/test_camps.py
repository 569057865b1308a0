import datetime

from .conftest import DONOR, parse_ts, register

CAMP = {
    "title": "Community Blood Drive",
    "description": "Annual drive at the civic centre",
    "address": {"street": "1 Park Lane", "city": "Pune", "state": "Maharashtra", "pincode": "411001"},
    "date": "2026-11-01",
    "endDate": "2026-11-02",
    "capacity": 2,
}


def create(client, **changes):
    response = client.post('/api/camps', dict(CAMP, **changes))
    assert response.status_code == 201, response.json()
    return response.json()['camp']


def test_create_camp(hospital, mongo):
    response = hospital.post('/api/camps', CAMP)

    assert response.status_code == 201
    camp = response.json()['camp']
    assert camp['status'] == 'Upcoming'
    assert camp['hospital'] == hospital.account['id']
    assert camp['registeredDonors'] == []
    assert parse_ts(camp['date']) == datetime.datetime(2026, 11, 1)
    history = mongo.users.find_one({"email": "city@hospital.com"})['history']
    assert history[-1]['eventType'] == 'Blood Camp'


def test_create_camp_accepts_alternative_field_names(hospital):
    response = hospital.post('/api/camps', {
        "name": "Alias Camp",
        "expectedDonors": 40,
        "location": {"venue": "Town Hall", "city": "Nashik", "state": "Maharashtra"},
        "date": "2026-12-01",
        "endDate": "2026-12-01",
    })

    assert response.status_code == 201
    camp = response.json()['camp']
    assert camp['title'] == "Alias Camp"
    assert camp['capacity'] == 40
    assert camp['address']['street'] == "Town Hall"


def test_create_camp_reports_every_missing_field(hospital, mongo):
    response = hospital.post('/api/camps', {"description": "no details"})

    assert response.status_code == 400
    message = response.json()['message']
    for field in ('title', 'address', 'date', 'capacity'):
        assert f"{field}: This field is required." in message
    assert mongo.camps.count_documents({}) == 0


def test_create_camp_requires_end_date(hospital):
    payload = {k: v for k, v in CAMP.items() if k != 'endDate'}

    response = hospital.post('/api/camps', payload)

    assert response.status_code == 400
    assert response.json()['message'] == "endDate: This field is required."


def test_create_camp_with_default_duration(hospital, settings):
    settings.CAMP_DEFAULT_DURATION_DAYS = 3
    payload = {k: v for k, v in CAMP.items() if k != 'endDate'}

    response = hospital.post('/api/camps', payload)

    assert response.status_code == 201
    assert parse_ts(response.json()['camp']['endDate']) == datetime.datetime(2026, 11, 4)


def test_create_camp_rejects_end_before_start(hospital):
    response = hospital.post('/api/camps', dict(CAMP, endDate="2026-10-30"))

    assert response.status_code == 400
    assert response.json()['message'] == "endDate: End date must not be before the start date"


def test_create_camp_rejects_bad_pincode_and_capacity(hospital):
    address = dict(CAMP['address'], pincode="0123")

    response = hospital.post('/api/camps', dict(CAMP, address=address, capacity=0))

    message = response.json()['message']
    assert response.status_code == 400
    assert "address.pincode: Please enter a valid 6-digit pincode" in message
    assert "capacity: Capacity must be at least 1" in message


def test_donors_cannot_create_camps(donor):
    assert donor.post('/api/camps', CAMP).status_code == 403


def test_list_defaults_to_upcoming_camps(hospital, donor):
    create(hospital, title="Open Camp")
    cancelled = create(hospital, title="Closed Camp")
    hospital.patch(f"/api/camps/{cancelled['id']}/status", {"status": "Cancelled"})

    default = donor.get('/api/camps').json()
    everything = donor.get('/api/camps', {"status": "all"}).json()

    assert [c['title'] for c in default['camps']] == ["Open Camp"]
    assert everything['pagination']['total'] == 2


def test_list_search_and_sort(hospital, donor):
    create(hospital, title="Blood Drive Beta", date="2026-11-05", endDate="2026-11-05")
    create(hospital, title="Alpha Donation Day", date="2026-11-10", endDate="2026-11-10")
    create(
        hospital, title="Gamma Camp", date="2026-11-01", endDate="2026-11-01",
        address=dict(CAMP['address'], city="Mumbai"),
    )

    by_date = donor.get('/api/camps').json()['camps']
    by_title_desc = donor.get('/api/camps', {"sortBy": "title", "sortOrder": "desc"}).json()['camps']
    found = donor.get('/api/camps', {"search": "mumbai"}).json()['camps']

    assert [c['title'] for c in by_date] == ["Gamma Camp", "Blood Drive Beta", "Alpha Donation Day"]
    assert [c['title'] for c in by_title_desc] == ["Gamma Camp", "Blood Drive Beta", "Alpha Donation Day"]
    assert [c['title'] for c in found] == ["Gamma Camp"]


def test_list_rejects_unknown_sort_field(donor):
    response = donor.get('/api/camps', {"sortBy": "popularity"})

    assert response.status_code == 400
    assert response.json()['message'].startswith("sortBy must be one of")


def test_list_pagination(hospital, donor):
    for day in range(1, 6):
        create(hospital, title=f"Camp {day}", date=f"2026-11-0{day}", endDate=f"2026-11-0{day}")

    first = donor.get('/api/camps', {"limit": 2}).json()
    last = donor.get('/api/camps', {"limit": 2, "page": 3}).json()

    assert first['pagination'] == {
        "total": 5, "currentPage": 1, "totalPages": 3, "hasNext": True, "hasPrev": False,
    }
    assert [c['title'] for c in first['camps']] == ["Camp 1", "Camp 2"]
    assert last['pagination']['hasNext'] is False
    assert last['pagination']['hasPrev'] is True
    assert [c['title'] for c in last['camps']] == ["Camp 5"]


def test_my_camps_lists_only_own_camps(hospital, other_hospital):
    create(hospital, title="Mine")
    create(other_hospital, title="Theirs")

    mine = hospital.get('/api/camps/my-camps').json()['camps']

    assert [c['title'] for c in mine] == ["Mine"]


def test_list_filters_by_hospital(hospital, other_hospital, donor):
    create(hospital, title="Mine")
    create(other_hospital, title="Theirs")

    response = donor.get('/api/camps', {"hospital": other_hospital.account['id']})

    assert [c['title'] for c in response.json()['camps']] == ["Theirs"]


def test_get_camp(hospital, donor):
    camp = create(hospital)

    assert donor.get(f"/api/camps/{camp['id']}").json()['camp']['title'] == CAMP['title']
    assert donor.get("/api/camps/64b7f0c2a1b2c3d4e5f60718").status_code == 404


def test_update_camp(hospital):
    camp = create(hospital)

    response = hospital.put(f"/api/camps/{camp['id']}", {"capacity": 50, "address": {"city": "Satara"}})

    assert response.status_code == 200
    updated = response.json()['camp']
    assert updated['capacity'] == 50
    assert updated['address']['city'] == "Satara"
    assert updated['address']['street'] == CAMP['address']['street']


def test_update_rejects_end_before_existing_start(hospital):
    camp = create(hospital)

    response = hospital.put(f"/api/camps/{camp['id']}", {"endDate": "2026-10-01"})

    assert response.status_code == 400


def test_other_facility_cannot_change_camp(hospital, other_hospital, mongo):
    camp = create(hospital)
    url = f"/api/camps/{camp['id']}"

    assert other_hospital.put(url, {"title": "Hijacked"}).status_code == 404
    assert other_hospital.patch(f"{url}/status", {"status": "Cancelled"}).status_code == 404
    assert other_hospital.delete(url).status_code == 404

    stored = mongo.camps.find_one({})
    assert stored['title'] == CAMP['title']
    assert stored['status'] == 'Upcoming'


def test_status_change_is_case_insensitive_and_unrestricted(hospital):
    camp = create(hospital)
    url = f"/api/camps/{camp['id']}/status"

    completed = hospital.patch(url, {"status": "completed"})
    reopened = hospital.patch(url, {"status": "Upcoming"})
    invalid = hospital.patch(url, {"status": "Paused"})

    assert completed.json()['camp']['status'] == 'Completed'
    assert completed.json()['message'] == "Camp status updated to Completed"
    assert reopened.json()['camp']['status'] == 'Upcoming'
    assert invalid.status_code == 400
    assert invalid.json()['message'] == (
        "status: Invalid status. Must be: Upcoming, Ongoing, Completed, or Cancelled"
    )


def test_delete_camp(hospital, mongo):
    camp = create(hospital)

    response = hospital.delete(f"/api/camps/{camp['id']}")

    assert response.json()['message'] == "Camp deleted successfully"
    assert mongo.camps.count_documents({}) == 0


def test_donor_registration(hospital, donor):
    camp = create(hospital, capacity=1)
    url = f"/api/camps/{camp['id']}/register"

    first = donor.post(url)
    again = donor.post(url)
    late = register(dict(DONOR, email="ravi@donor.com", name="Ravi")).post(url)

    assert first.status_code == 200
    registered = first.json()['camp']['registeredDonors']
    assert [entry['donor'] for entry in registered] == [donor.account['id']]
    assert again.status_code == 409
    assert again.json()['message'] == "Donor already registered for this camp"
    assert late.status_code == 400
    assert late.json()['message'] == "Camp is full"


def test_registration_closed_for_cancelled_camp(hospital, donor):
    camp = create(hospital)
    hospital.patch(f"/api/camps/{camp['id']}/status", {"status": "Cancelled"})

    response = donor.post(f"/api/camps/{camp['id']}/register")

    assert response.status_code == 400
    assert response.json()['message'] == "Registration is closed for this camp"


def test_only_donors_register(hospital):
    camp = create(hospital)

    assert hospital.post(f"/api/camps/{camp['id']}/register").status_code == 403


def test_capacity_cannot_drop_below_registrations(hospital, donor):
    camp = create(hospital, capacity=2)
    donor.post(f"/api/camps/{camp['id']}/register")
    register(dict(DONOR, email="ravi@donor.com")).post(f"/api/camps/{camp['id']}/register")

    response = hospital.put(f"/api/camps/{camp['id']}", {"capacity": 1})

    assert response.status_code == 400
    assert "2 donors already registered" in response.json()['message']


def after_read(monkeypatch, name, write):
    """Apply a competing ``write`` right after ``camps.<name>`` loads the camp."""
    from api import camps

    real = getattr(camps, name)

    def read_then_write(db, *args):
        camp = real(db, *args)
        write(db, camp)
        return camp

    monkeypatch.setattr(camps, name, read_then_write)


def push_donor(donor_id):
    def write(db, camp):
        db.camps.update_one(
            {"_id": camp['_id']},
            {"$push": {"registeredDonors": {"donor": donor_id, "registeredAt": datetime.datetime(2026, 10, 1)}}},
        )
    return write


def test_registration_losing_the_last_seat(hospital, donor, mongo, monkeypatch):
    camp = create(hospital, capacity=1)
    rival = register(dict(DONOR, email="ravi@donor.com", name="Ravi"))
    after_read(monkeypatch, 'get_camp', push_donor(rival.account['id']))

    response = donor.post(f"/api/camps/{camp['id']}/register")

    assert response.status_code == 409
    assert response.json()['message'] == "Camp changed while registering, please retry"
    registered = mongo.camps.find_one({})['registeredDonors']
    assert [entry['donor'] for entry in registered] == [rival.account['id']]


def test_capacity_cut_losing_to_a_registration(hospital, donor, mongo, monkeypatch):
    camp = create(hospital, capacity=2)
    donor.post(f"/api/camps/{camp['id']}/register")
    rival = register(dict(DONOR, email="ravi@donor.com", name="Ravi"))
    after_read(monkeypatch, 'get_owned_camp', push_donor(rival.account['id']))

    response = hospital.put(f"/api/camps/{camp['id']}", {"capacity": 1})

    assert response.status_code == 409
    assert response.json()['message'] == "Camp changed while updating, please retry"
    stored = mongo.camps.find_one({})
    assert stored['capacity'] == 2
    assert len(stored['registeredDonors']) == 2


def test_update_of_camp_deleted_meanwhile(hospital, mongo, monkeypatch):
    camp = create(hospital)
    after_read(monkeypatch, 'get_owned_camp', lambda db, found: db.camps.delete_one({"_id": found['_id']}))

    response = hospital.put(f"/api/camps/{camp['id']}", {"title": "Renamed"})

    assert response.status_code == 404
    assert mongo.camps.count_documents({}) == 0


def test_status_change_of_camp_deleted_meanwhile(hospital, mongo, monkeypatch):
    camp = create(hospital)
    after_read(monkeypatch, 'get_owned_camp', lambda db, found: db.camps.delete_one({"_id": found['_id']}))

    response = hospital.patch(f"/api/camps/{camp['id']}/status", {"status": "Cancelled"})

    assert response.status_code == 404
    assert response.json()['message'] == "Camp not found"
    assert mongo.camps.count_documents({}) == 0
