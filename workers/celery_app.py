import os
from celery import Celery
from celery.schedules import crontab
from dotenv import load_dotenv

load_dotenv()

broker = os.getenv("REDIS_URL", "redis://localhost:6379/0")
backend = broker

celery = Celery("pushrelay_workers", broker=broker, backend=backend, include=["workers.tasks"])
celery.conf.task_routes = {
    "tasks.process_notification_request": {"queue": "notifications"},
    "tasks.process_fcm_request": {"queue": "notifications"},
    "tasks.cleanup_notification_requests": {"queue": "maintenance"},
}
# at-least-once: a task lost with its worker is redelivered, the record guard absorbs repeats
celery.conf.task_acks_late = True
celery.conf.task_reject_on_worker_lost = True

# Beat schedule for periodic tasks
celery.conf.beat_schedule = {
    "cleanup-notification-requests-daily": {
        "task": "tasks.cleanup_notification_requests",
        "schedule": crontab(hour=3, minute=0),  # Daily 3 AM
    },
}
