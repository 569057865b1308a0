"""
Blood donation camps.

A camp belongs to the facility that created it. Its status may be moved
between any of Upcoming, Ongoing, Completed and Cancelled by the owner;
donors can only register while it is Upcoming or Ongoing and while the
registrations stay within capacity.
"""
import logging
import re

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from rest_framework.exceptions import ValidationError

from .constants import CAMP_ONGOING, CAMP_UPCOMING
from .exceptions import Conflict, InvalidState, NotFound
from .utils import to_object_id, utcnow

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    'date': 'date',
    'title': 'title',
    'expectedDonors': 'capacity',
    'capacity': 'capacity',
}

OPEN_STATUSES = (CAMP_UPCOMING, CAMP_ONGOING)


def create_camp(db, owner_id, data):
    now = utcnow()
    camp = {
        "hospital": owner_id,
        "title": data['title'],
        "description": data.get('description', ''),
        "address": dict(data['address']),
        "date": data['date'],
        "endDate": data['endDate'],
        "capacity": data['capacity'],
        "registeredDonors": [],
        "actualDonors": 0,
        "status": data.get('status', CAMP_UPCOMING),
        "createdAt": now,
        "updatedAt": now,
    }
    result = db.camps.insert_one(camp)
    camp['_id'] = result.inserted_id
    logger.info("Camp %s created by %s", camp['_id'], owner_id)
    return camp


def get_camp(db, camp_id):
    camp = db.camps.find_one({"_id": to_object_id(camp_id, "Camp")})
    if not camp:
        raise NotFound("Camp not found")
    return camp


def get_owned_camp(db, owner_id, camp_id):
    camp = db.camps.find_one({"_id": to_object_id(camp_id, "Camp"), "hospital": owner_id})
    if not camp:
        raise NotFound("Camp not found")
    return camp


def list_camps(db, status=None, hospital=None, search=None,
               sort_by='date', sort_order='asc', page=1, limit=10):
    query = {}
    if status:
        query["status"] = status
    if hospital is not None:
        query["hospital"] = hospital
    if search:
        pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
        query["$or"] = [
            {"title": pattern},
            {"description": pattern},
            {"address.city": pattern},
        ]

    if sort_by not in SORT_FIELDS:
        raise ValidationError(f"sortBy must be one of: {', '.join(SORT_FIELDS)}")
    direction = DESCENDING if sort_order == 'desc' else ASCENDING

    cursor = (
        db.camps.find(query)
        .sort([(SORT_FIELDS[sort_by], direction), ("_id", direction)])
        .skip((page - 1) * limit)
        .limit(limit)
    )
    return list(cursor), db.camps.count_documents(query)


def update_camp(db, owner_id, camp_id, changes):
    camp = get_owned_camp(db, owner_id, camp_id)

    start = changes.get('date', camp['date'])
    end = changes.get('endDate', camp.get('endDate'))
    if end is not None and end < start:
        raise ValidationError({'endDate': "End date must not be before the start date"})

    guard = {"_id": camp['_id'], "hospital": owner_id}
    if 'capacity' in changes:
        registered = len(camp.get('registeredDonors', []))
        if changes['capacity'] < registered:
            raise ValidationError(
                f"Capacity cannot be lower than the {registered} donors already registered"
            )
        # no registration may slip in above the new capacity
        guard[f"registeredDonors.{changes['capacity']}"] = {"$exists": False}

    fields = dict(changes)
    if 'address' in fields:
        fields['address'] = {**camp.get('address', {}), **fields['address']}
    fields['updatedAt'] = utcnow()
    updated = db.camps.find_one_and_update(guard, {"$set": fields}, return_document=ReturnDocument.AFTER)
    if updated is None:
        if not db.camps.find_one({"_id": camp['_id'], "hospital": owner_id}, {"_id": 1}):
            raise NotFound("Camp not found")
        raise Conflict("Camp changed while updating, please retry")
    return updated


def change_status(db, owner_id, camp_id, status):
    camp = get_owned_camp(db, owner_id, camp_id)
    updated = db.camps.find_one_and_update(
        {"_id": camp['_id'], "hospital": owner_id},
        {"$set": {"status": status, "updatedAt": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise NotFound("Camp not found")
    logger.info("Camp %s status %s -> %s", camp['_id'], camp['status'], status)
    return updated


def register_donor(db, camp_id, donor_id):
    camp = get_camp(db, camp_id)
    registered = camp.get('registeredDonors', [])

    if camp['status'] not in OPEN_STATUSES:
        raise InvalidState("Registration is closed for this camp")
    if any(entry['donor'] == donor_id for entry in registered):
        raise Conflict("Donor already registered for this camp")
    capacity = camp['capacity']
    if len(registered) >= capacity:
        raise InvalidState("Camp is full")

    now = utcnow()
    updated = db.camps.find_one_and_update(
        {
            "_id": camp['_id'],
            "capacity": capacity,
            "status": {"$in": list(OPEN_STATUSES)},
            "registeredDonors.donor": {"$ne": donor_id},
            f"registeredDonors.{capacity - 1}": {"$exists": False},
        },
        {
            "$push": {"registeredDonors": {"donor": donor_id, "registeredAt": now}},
            "$set": {"updatedAt": now},
        },
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise Conflict("Camp changed while registering, please retry")
    return updated


def delete_camp(db, owner_id, camp_id):
    camp = db.camps.find_one_and_delete({"_id": to_object_id(camp_id, "Camp"), "hospital": owner_id})
    if not camp:
        raise NotFound("Camp not found")
    return camp
