"""
Blood unit lifecycle.

A unit is one inventory row of a single blood type held by one facility
(the ``hospital`` field, which may also be a lab). Its expiration date is
always derived from the collection date plus the configured shelf life.
"""
import datetime
import logging

from django.conf import settings
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from rest_framework.exceptions import ValidationError

from .constants import UNIT_AVAILABLE, UNIT_EXPIRED, UNIT_USED
from .exceptions import Conflict, InvalidState, NotFound
from .utils import to_object_id, utcnow

logger = logging.getLogger(__name__)


def shelf_life():
    return datetime.timedelta(days=settings.BLOOD_SHELF_LIFE_DAYS)


def compute_expiration(collection_date):
    return collection_date + shelf_life()


def is_expired(unit, now=None):
    return unit['expirationDate'] < (now or utcnow())


def remaining_after_use(quantity, used_quantity=None):
    """Quantity and status a unit ends up with after (partial) use.

    Without ``used_quantity`` the whole unit is consumed and its quantity is
    left as recorded.
    """
    if used_quantity is None:
        return quantity, UNIT_USED
    if used_quantity > quantity:
        raise ValidationError("Used quantity cannot exceed available quantity")
    remaining = quantity - used_quantity
    return remaining, UNIT_USED if remaining == 0 else UNIT_AVAILABLE


def add_unit(db, owner_id, blood_type, quantity, collection_date=None):
    now = utcnow()
    collection_date = collection_date or now
    unit = {
        "hospital": owner_id,
        "bloodType": blood_type,
        "quantity": quantity,
        "collectionDate": collection_date,
        "expirationDate": compute_expiration(collection_date),
        "status": UNIT_AVAILABLE,
        "createdAt": now,
        "updatedAt": now,
    }
    result = db.blood_units.insert_one(unit)
    unit['_id'] = result.inserted_id
    logger.info("Added %d units of %s for %s", quantity, blood_type, owner_id)
    return unit


def get_unit(db, owner_id, unit_id):
    unit = db.blood_units.find_one({"_id": to_object_id(unit_id, "Blood unit"), "hospital": owner_id})
    if not unit:
        raise NotFound("Blood unit not found")
    return unit


def update_unit(db, owner_id, unit_id, changes):
    """Apply only the given fields; a new collection date moves the expiration with it.

    Emptying a unit without naming a status marks it used.
    """
    unit = get_unit(db, owner_id, unit_id)

    fields = {k: v for k, v in changes.items() if k in ('bloodType', 'quantity', 'status', 'collectionDate')}
    if 'collectionDate' in fields:
        fields['expirationDate'] = compute_expiration(fields['collectionDate'])
    if fields.get('quantity') == 0 and 'status' not in fields:
        fields['status'] = UNIT_USED
    fields['updatedAt'] = utcnow()

    updated = db.blood_units.find_one_and_update(
        {"_id": unit['_id'], "hospital": owner_id},
        {"$set": fields},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise NotFound("Blood unit not found")
    return updated


def delete_unit(db, owner_id, unit_id):
    unit = db.blood_units.find_one_and_delete(
        {"_id": to_object_id(unit_id, "Blood unit"), "hospital": owner_id}
    )
    if not unit:
        raise NotFound("Blood unit not found")
    return unit


def use_unit(db, owner_id, unit_id, used_quantity=None):
    """Mark a unit fully or partially used.

    Only available, unexpired units can be used. The write is a single
    compare-and-set on the status and quantity that were read, so two
    concurrent calls can not both consume the same stock.
    """
    unit = get_unit(db, owner_id, unit_id)

    if unit['status'] != UNIT_AVAILABLE:
        raise InvalidState("Only available blood can be used")
    if is_expired(unit):
        raise InvalidState("Expired blood cannot be used")

    remaining, new_status = remaining_after_use(unit['quantity'], used_quantity)
    updated = db.blood_units.find_one_and_update(
        {
            "_id": unit['_id'],
            "hospital": owner_id,
            "status": UNIT_AVAILABLE,
            "quantity": unit['quantity'],
        },
        {"$set": {"quantity": remaining, "status": new_status, "updatedAt": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise Conflict("Blood unit was modified by another request, please retry")

    logger.info(
        "Blood unit %s used (%s), remaining %d, status %s",
        unit['_id'], used_quantity if used_quantity is not None else 'all',
        remaining, new_status,
    )
    return updated


def list_units(db, owner_id, status=None, blood_type=None, page=1, limit=10):
    query = {"hospital": owner_id}
    if status:
        query["status"] = status
    if blood_type:
        query["bloodType"] = blood_type

    cursor = (
        db.blood_units.find(query)
        .sort("collectionDate", DESCENDING)
        .skip((page - 1) * limit)
        .limit(limit)
    )
    return list(cursor), db.blood_units.count_documents(query)


def inventory_summary(db, owner_id, now=None):
    """Available, unexpired stock per blood type."""
    pipeline = [
        {"$match": {
            "hospital": owner_id,
            "status": UNIT_AVAILABLE,
            "expirationDate": {"$gt": now or utcnow()},
            "quantity": {"$gt": 0},
        }},
        {"$group": {
            "_id": "$bloodType",
            "totalQuantity": {"$sum": "$quantity"},
            "units": {"$sum": 1},
        }},
        {"$sort": {"_id": ASCENDING}},
    ]
    return [
        {"bloodType": row['_id'], "totalQuantity": row['totalQuantity'], "units": row['units']}
        for row in db.blood_units.aggregate(pipeline)
    ]


def total_available(db, owner_id, now=None):
    return sum(row['totalQuantity'] for row in inventory_summary(db, owner_id, now))


def list_expired(db, owner_id, now=None):
    cursor = db.blood_units.find({
        "hospital": owner_id,
        "expirationDate": {"$lt": now or utcnow()},
    }).sort("expirationDate", ASCENDING)
    return list(cursor)


def expire_units(db, owner_id=None, now=None):
    """Flag available units past their expiration date as expired."""
    now = now or utcnow()
    query = {"status": UNIT_AVAILABLE, "expirationDate": {"$lt": now}}
    if owner_id is not None:
        query["hospital"] = owner_id
    result = db.blood_units.update_many(query, {"$set": {"status": UNIT_EXPIRED, "updatedAt": now}})
    if result.modified_count:
        logger.info("Marked %d blood units as expired", result.modified_count)
    return result.modified_count
