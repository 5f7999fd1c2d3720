# =============================================================================
# workers/config.py - Celery Worker Configuration
# =============================================================================
# Settings specific to Celery workers.
# =============================================================================

from app.config import settings


class CeleryConfig:
    """
    Celery configuration settings.

    These are applied to the Celery app via app.config_from_object().
    """

    # -------------------------------------------------------------------------
    # Broker Settings (Redis)
    # -------------------------------------------------------------------------

    broker_url = settings.REDIS_URL
    result_backend = settings.REDIS_URL

    # -------------------------------------------------------------------------
    # Task Settings
    # -------------------------------------------------------------------------

    # Acknowledge tasks after they complete (not before)
    task_acks_late = True

    worker_prefetch_multiplier = 1

    # Task results expire after 24 hours; admins check bulk sends later
    result_expires = 86400

    # Bulk sends walk the whole member list
    task_time_limit = 1800
    task_soft_time_limit = 1700

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    task_serializer = "json"
    result_serializer = "json"
    accept_content = ["json"]

    # -------------------------------------------------------------------------
    # Task Routing
    # -------------------------------------------------------------------------

    task_queues = {
        "default": {
            "exchange": "default",
            "routing_key": "default",
        },
        "email": {
            "exchange": "email",
            "routing_key": "email",
        },
    }

    # Everything that talks to Gmail or Brevo goes to the email queue
    task_routes = {
        "workers.tasks.send_bulk_email": {"queue": "email"},
        "workers.tasks.notify_new_content": {"queue": "email"},
        "workers.tasks.sync_brevo_contacts": {"queue": "email"},
    }

    task_default_queue = "default"

    # Stay under Gmail's per-user send rate
    task_annotations = {
        "workers.tasks.send_bulk_email": {"rate_limit": "6/m"},
    }
