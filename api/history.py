import logging

from django.conf import settings

from .utils import utcnow

logger = logging.getLogger(__name__)


def record_event(db, account_id, event_type, description, reference_id=None):
    """Append an entry to an account's activity log, keeping the newest HISTORY_LIMIT."""
    event = {
        "eventType": event_type,
        "description": description,
        "date": utcnow(),
    }
    if reference_id is not None:
        event["referenceId"] = reference_id
    db.users.update_one(
        {"_id": account_id},
        {"$push": {"history": {"$each": [event], "$slice": -settings.HISTORY_LIMIT}}},
    )
    logger.debug("History %s for %s: %s", event_type, account_id, description)


def recent_events(account, limit=None):
    """Newest first; entries logged in the same instant keep their append order reversed."""
    history = account.get('history') or []
    ordered = sorted(enumerate(history), key=lambda pair: (pair[1]['date'], pair[0]), reverse=True)
    events = [event for _, event in ordered]
    return events[:limit] if limit else events
