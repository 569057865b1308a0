"""
Donation records and the donor directory.

A facility records a donation against a donor account. Donors must wait
DONATION_INTERVAL_DAYS between donations. Every recorded donation is kept
in the donor's ``donationHistory`` and lands as a fresh blood unit in the
recording facility's stock.
"""
import datetime
import logging
import math
import re

from bson import ObjectId
from django.conf import settings
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from . import inventory
from .constants import RARE_BLOOD_TYPES, ROLE_DONOR
from .exceptions import Conflict, InvalidState, NotFound
from .utils import to_object_id, utcnow

logger = logging.getLogger(__name__)

DONOR_FIELDS = {
    "name": 1, "email": 1, "phone": 1, "bloodType": 1, "address": 1,
    "lastDonationDate": 1, "donationHistory": 1,
}

DIRECTORY_SORTS = {
    'lastDonation': ("lastDonationDate", DESCENDING),
    'name': ("name", ASCENDING),
    'bloodType': ("bloodType", ASCENDING),
    'city': ("address", ASCENDING),
}

AVAILABILITY = ('all', 'available', 'soon')

# donors who become eligible within this window count as "soon"
SOON_WINDOW = datetime.timedelta(days=7)


def donation_interval():
    return datetime.timedelta(days=settings.DONATION_INTERVAL_DAYS)


def next_eligible_date(donor):
    last = donor.get('lastDonationDate')
    return last + donation_interval() if last else None


def is_eligible(donor, now=None):
    next_date = next_eligible_date(donor)
    return next_date is None or next_date <= (now or utcnow())


def eligible_query(now=None):
    cutoff = (now or utcnow()) - donation_interval()
    return {"$or": [{"lastDonationDate": None}, {"lastDonationDate": {"$lte": cutoff}}]}


def get_donor(db, donor_id):
    donor = db.users.find_one(
        {"_id": to_object_id(donor_id, "Donor"), "role": ROLE_DONOR},
        {"password": 0, "history": 0},
    )
    if not donor:
        raise NotFound("Donor not found")
    return donor


def record_donation(db, facility_id, donor_id, quantity=1, blood_type=None, remarks=''):
    """Record a donation taken by a facility and stock the collected blood.

    Returns the updated donor, the donation entry and the new blood unit.
    """
    donor = get_donor(db, donor_id)
    now = utcnow()
    if not is_eligible(donor, now):
        raise InvalidState(
            f"Donor cannot donate yet. Minimum {settings.DONATION_INTERVAL_DAYS} days "
            "required between donations."
        )

    blood_type = blood_type or donor['bloodType']
    unit = inventory.add_unit(db, facility_id, blood_type, quantity, now)

    entry = {
        "_id": ObjectId(),
        "donationDate": now,
        "facility": facility_id,
        "bloodType": blood_type,
        "quantity": quantity,
        "remarks": remarks,
        "verified": True,
        "bloodUnit": unit['_id'],
    }
    fields = {"lastDonationDate": now, "updatedAt": now, "bloodType": blood_type}
    updated = db.users.find_one_and_update(
        {"_id": donor['_id'], "role": ROLE_DONOR, **eligible_query(now)},
        {"$set": fields, "$push": {"donationHistory": entry}},
        projection={"password": 0, "history": 0},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        # another facility recorded a donation first
        db.blood_units.delete_one({"_id": unit['_id']})
        raise Conflict("Donor changed while recording the donation, please retry")

    logger.info(
        "Facility %s recorded %d units of %s from donor %s",
        facility_id, quantity, blood_type, donor['_id'],
    )
    return updated, entry, unit


def recent_donations(db, facility_id, limit=10, now=None):
    """Counts for today, this week (from Monday) and overall, plus the latest donations."""
    now = now or utcnow()
    day_start = datetime.datetime.combine(now.date(), datetime.time.min)
    week_start = day_start - datetime.timedelta(days=day_start.weekday())

    donations = []
    cursor = db.users.find(
        {"role": ROLE_DONOR, "donationHistory.facility": facility_id},
        {"name": 1, "donationHistory": 1},
    )
    for donor in cursor:
        for entry in donor.get('donationHistory', []):
            if entry.get('facility') != facility_id:
                continue
            donations.append({
                "donorId": donor['_id'],
                "donorName": donor.get('name'),
                "bloodType": entry['bloodType'],
                "quantity": entry['quantity'],
                "date": entry['donationDate'],
                "remarks": entry.get('remarks', ''),
            })
    donations.sort(key=lambda d: d['date'], reverse=True)

    stats = {
        "today": sum(1 for d in donations if d['date'] >= day_start),
        "thisWeek": sum(1 for d in donations if d['date'] >= week_start),
        "total": len(donations),
    }
    return stats, donations[:limit]


def search_donors(db, term, limit=20):
    pattern = {"$regex": re.escape(term.strip()), "$options": "i"}
    cursor = db.users.find(
        {
            "role": ROLE_DONOR,
            "$or": [{"name": pattern}, {"email": pattern}, {"phone": pattern}],
        },
        DONOR_FIELDS,
    ).sort([("lastDonationDate", DESCENDING), ("_id", ASCENDING)]).limit(limit)
    return list(cursor)


def donor_directory(db, search=None, blood_type=None, city=None, availability='all',
                    sort_by='lastDonation', page=1, limit=20, now=None):
    now = now or utcnow()
    clauses = [{"role": ROLE_DONOR, "isActive": True}]
    if search:
        pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
        clauses.append({"$or": [
            {"name": pattern}, {"email": pattern}, {"phone": pattern}, {"address": pattern},
        ]})
    if blood_type:
        clauses.append({"bloodType": blood_type})
    if city:
        clauses.append({"address": {"$regex": re.escape(city.strip()), "$options": "i"}})
    if availability == 'available':
        clauses.append(eligible_query(now))
    elif availability == 'soon':
        cutoff = now - donation_interval()
        clauses.append({"lastDonationDate": {"$gt": cutoff, "$lte": cutoff + SOON_WINDOW}})

    query = {"$and": clauses}
    field, direction = DIRECTORY_SORTS[sort_by]
    cursor = (
        db.users.find(query, DONOR_FIELDS)
        .sort([(field, direction), ("_id", ASCENDING)])
        .skip((page - 1) * limit)
        .limit(limit)
    )
    donors = list(cursor)
    total = db.users.count_documents(query)

    active = {"role": ROLE_DONOR, "isActive": True}
    stats = {
        "total": total,
        "available": db.users.count_documents({**active, **eligible_query(now)}),
        "rareBlood": db.users.count_documents({**active, "bloodType": {"$in": list(RARE_BLOOD_TYPES)}}),
    }
    return donors, total, stats


def log_contact(db, facility, donor_id):
    donor = get_donor(db, donor_id)
    db.users.update_one(
        {"_id": donor['_id']},
        {"$push": {"contactHistory": {
            "contactedBy": facility['_id'],
            "contactDate": utcnow(),
            "contactType": facility['role'],
        }}},
    )
    return donor


def donation_history(db, donor, page=1, limit=10):
    """A donor's donations, newest first, with the recording facility's name."""
    entries = sorted(donor.get('donationHistory') or [], key=lambda e: e['donationDate'], reverse=True)
    window = entries[(page - 1) * limit:page * limit]

    facility_ids = list({entry['facility'] for entry in window})
    names = {
        f['_id']: f.get('name')
        for f in db.users.find({"_id": {"$in": facility_ids}}, {"name": 1})
    }
    history = [dict(entry, facilityName=names.get(entry['facility'], "N/A")) for entry in window]
    return history, len(entries)


def donor_stats(donor, now=None):
    now = now or utcnow()
    entries = donor.get('donationHistory') or []
    next_date = next_eligible_date(donor)

    status = 'Eligible'
    if next_date and next_date > now:
        remaining = math.ceil((next_date - now).total_seconds() / 86400)
        status = f"Ineligible (Cooldown: {remaining} days remaining)"
    weight = (donor.get('healthInfo') or {}).get('weight')
    if weight is not None and weight < 45:
        status = 'Ineligible (Weight constraint)'

    return {
        "totalDonations": len(entries),
        "totalUnits": sum(entry.get('quantity', 0) for entry in entries),
        "lastDonationDate": donor.get('lastDonationDate'),
        "nextEligibleDate": next_date,
        "eligibilityStatus": status,
    }
