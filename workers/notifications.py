from pushrelay.models.models import COLLECTIONS
from workers.tasks import TRIGGERS


def enqueue_record(collection: str, record_id: str) -> None:
    """Re-fire the creation trigger for a record, e.g. after a broker outage."""
    if collection not in COLLECTIONS:
        raise ValueError(f"Unknown collection: {collection}")
    TRIGGERS[collection].apply_async(args=[record_id], queue="notifications")
