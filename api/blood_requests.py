"""
Hospital-to-lab blood requests.

pending --accept--> accepted
pending --reject--> rejected

Both outcomes are final. Processing a request only records the decision;
stock is not moved between the lab and the hospital.
"""
import logging

from pymongo import DESCENDING, ReturnDocument

from .constants import REQUEST_ACCEPTED, REQUEST_PENDING, REQUEST_REJECTED, ROLE_LAB
from .exceptions import InvalidState, NotFound
from .utils import to_object_id, utcnow

logger = logging.getLogger(__name__)

ACTION_STATUS = {
    'accept': REQUEST_ACCEPTED,
    'reject': REQUEST_REJECTED,
}


def create_request(db, hospital_id, lab_id, blood_type, units, notes=None):
    lab = db.users.find_one({"_id": to_object_id(lab_id, "Blood lab"), "role": ROLE_LAB, "isActive": True})
    if not lab:
        raise NotFound("Blood lab not found")

    request = {
        "hospitalId": hospital_id,
        "labId": lab['_id'],
        "bloodType": blood_type,
        "units": units,
        "status": REQUEST_PENDING,
        "createdAt": utcnow(),
        "processedAt": None,
    }
    if notes:
        request["notes"] = notes
    result = db.blood_requests.insert_one(request)
    request['_id'] = result.inserted_id
    logger.info("Hospital %s requested %d units of %s from lab %s", hospital_id, units, blood_type, lab['_id'])
    return request, lab


def list_requests(db, hospital_id=None, lab_id=None, status=None):
    query = {}
    if hospital_id is not None:
        query["hospitalId"] = hospital_id
    if lab_id is not None:
        query["labId"] = lab_id
    if status:
        query["status"] = status
    return list(db.blood_requests.find(query).sort("createdAt", DESCENDING))


def process_request(db, lab_id, request_id, action):
    """Accept or reject a pending request addressed to this lab."""
    new_status = ACTION_STATUS[action]
    oid = to_object_id(request_id, "Request")

    updated = db.blood_requests.find_one_and_update(
        {"_id": oid, "labId": lab_id, "status": REQUEST_PENDING},
        {"$set": {"status": new_status, "processedAt": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        existing = db.blood_requests.find_one({"_id": oid, "labId": lab_id})
        if not existing:
            raise NotFound("Request not found")
        raise InvalidState("Request already processed")

    logger.info("Lab %s %s request %s", lab_id, new_status, oid)
    return updated
