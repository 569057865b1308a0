"""
Facility approval and the admin overview.

Hospitals and labs register as ``pending`` when REQUIRE_FACILITY_APPROVAL
is on and as ``approved`` otherwise. An admin may approve or reject a
facility at any time; a rejected facility is locked out until approved.
"""
import logging

from pymongo import DESCENDING, ReturnDocument

from . import donations
from .constants import (
    CAMP_UPCOMING, EVENT_VERIFICATION, FACILITY_APPROVED, FACILITY_PENDING, FACILITY_REJECTED,
    FACILITY_ROLES, ROLE_DONOR,
)
from .exceptions import NotFound
from .history import record_event
from .utils import to_object_id, utcnow

logger = logging.getLogger(__name__)

HIDDEN_FIELDS = {"password": 0, "history": 0}


def get_facility(db, facility_id):
    facility = db.users.find_one(
        {"_id": to_object_id(facility_id, "Facility"), "role": {"$in": list(FACILITY_ROLES)}},
        HIDDEN_FIELDS,
    )
    if not facility:
        raise NotFound("Facility not found")
    return facility


def _set_status(db, facility_id, changes, unset=None):
    facility = get_facility(db, facility_id)
    update = {"$set": dict(changes, updatedAt=utcnow())}
    if unset:
        update["$unset"] = {field: "" for field in unset}
    updated = db.users.find_one_and_update(
        {"_id": facility['_id'], "role": {"$in": list(FACILITY_ROLES)}},
        update,
        projection=HIDDEN_FIELDS,
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise NotFound("Facility not found")
    return updated


def approve_facility(db, admin_id, facility_id):
    updated = _set_status(
        db, facility_id,
        {"status": FACILITY_APPROVED, "approvedBy": admin_id, "approvedAt": utcnow()},
        unset=("rejectionReason",),
    )
    record_event(db, updated['_id'], EVENT_VERIFICATION, "Registration approved by admin")
    logger.info("Facility %s approved by %s", updated['_id'], admin_id)
    return updated


def reject_facility(db, admin_id, facility_id, reason):
    updated = _set_status(
        db, facility_id,
        {"status": FACILITY_REJECTED, "rejectionReason": reason, "rejectedBy": admin_id},
        unset=("approvedBy", "approvedAt"),
    )
    record_event(db, updated['_id'], EVENT_VERIFICATION, f"Registration rejected: {reason}")
    logger.info("Facility %s rejected by %s", updated['_id'], admin_id)
    return updated


def list_facilities(db, status=None, role=None):
    query = {"role": role if role else {"$in": list(FACILITY_ROLES)}}
    if status:
        query["status"] = status
    return list(db.users.find(query, HIDDEN_FIELDS).sort("createdAt", DESCENDING))


def list_donors(db):
    return list(db.users.find({"role": ROLE_DONOR}, HIDDEN_FIELDS).sort("name", 1))


def admin_overview(db):
    facilities = {"role": {"$in": list(FACILITY_ROLES)}}
    donors = {"role": ROLE_DONOR}
    total_donations = sum(
        len(donor.get('donationHistory') or [])
        for donor in db.users.find(donors, {"donationHistory": 1})
    )
    return {
        "totalDonors": db.users.count_documents(donors),
        "eligibleDonors": db.users.count_documents({**donors, **donations.eligible_query()}),
        "totalFacilities": db.users.count_documents(facilities),
        "approvedFacilities": db.users.count_documents({**facilities, "status": FACILITY_APPROVED}),
        "pendingFacilities": db.users.count_documents({**facilities, "status": FACILITY_PENDING}),
        "rejectedFacilities": db.users.count_documents({**facilities, "status": FACILITY_REJECTED}),
        "totalDonations": total_donations,
        "upcomingCamps": db.camps.count_documents({"status": CAMP_UPCOMING}),
    }
