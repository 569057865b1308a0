import logging

from django.conf import settings
from django.utils.module_loading import import_string
from pymongo import ASCENDING, DESCENDING

logger = logging.getLogger(__name__)

_client = None
_db = None


def _ensure_indexes(db):
    db.users.create_index([("email", ASCENDING)], unique=True)
    db.users.create_index([("hospitalInfo.licenseNumber", ASCENDING)], unique=True, sparse=True)
    db.users.create_index([("donationHistory.facility", ASCENDING)])
    db.blood_units.create_index([("hospital", ASCENDING), ("bloodType", ASCENDING)])
    db.blood_units.create_index([("expirationDate", ASCENDING)])
    db.camps.create_index([("hospital", ASCENDING), ("date", DESCENDING)])
    db.blood_requests.create_index([("labId", ASCENDING), ("status", ASCENDING)])
    db.blood_requests.create_index([("hospitalId", ASCENDING), ("status", ASCENDING)])


def get_db():
    """Return the configured Mongo database, connecting on first use."""
    global _client, _db
    if _db is None:
        client_class = import_string(settings.MONGO_CLIENT_CLASS)
        _client = client_class(settings.MONGO_URI)
        _db = _client[settings.MONGO_DB_NAME]
        _ensure_indexes(_db)
        logger.info("Connected to MongoDB at %s, DB: %s", settings.MONGO_URI, settings.MONGO_DB_NAME)
    return _db


def reset_db():
    """Drop the cached connection so the next get_db() reconnects."""
    global _client, _db
    if _client is not None:
        _client.close()
    _client = None
    _db = None
