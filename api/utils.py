import datetime
import math

from bson import ObjectId
from bson.errors import InvalidId
from rest_framework.exceptions import ValidationError

from .exceptions import NotFound

MAX_PAGE_SIZE = 100


def utcnow():
    """Current time as naive UTC, the form pymongo hands back."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def naive_utc(value):
    if value.tzinfo is not None:
        value = value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return value


def to_object_id(value, label="Document"):
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise NotFound(f"{label} not found")


def jsonable(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime.datetime):
        return value.replace(tzinfo=datetime.timezone.utc).isoformat()
    if isinstance(value, dict):
        return {k: jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [jsonable(v) for v in value]
    return value


def serialize_doc(doc):
    if not doc:
        return None
    doc = dict(doc)
    doc['id'] = str(doc['_id'])
    del doc['_id']
    if 'password' in doc:
        del doc['password']
    return jsonable(doc)


def page_params(query_params, default_limit=10):
    try:
        page = int(query_params.get('page', 1))
        limit = int(query_params.get('limit', default_limit))
    except (TypeError, ValueError):
        raise ValidationError("page and limit must be integers")
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive")
    return page, min(limit, MAX_PAGE_SIZE)


def page_info(total, page, limit):
    total_pages = math.ceil(total / limit) if total else 0
    return {
        "total": total,
        "currentPage": page,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrev": page > 1,
    }
