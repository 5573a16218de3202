"""
Celery configuration for the restaurant POS platform.
"""

import os

from celery import Celery
from celery.schedules import crontab

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.development")

app = Celery("restaurant_pos")

# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

# Celery Beat Schedule for periodic tasks
app.conf.beat_schedule = {
    # Return carts stuck in settlement to the cashier every minute
    "recover-stale-settlements": {
        "task": "apps.sales.tasks.recover_stale_settlements",
        "schedule": 60.0,
        "options": {"queue": "pos", "priority": 8},
    },
    # Purge old read notifications daily at 3:30 AM
    "cleanup-old-notifications": {
        "task": "apps.notifications.tasks.cleanup_old_notifications",
        "schedule": crontab(hour=3, minute=30),
        "options": {"queue": "notifications", "priority": 2},
    },
}

# Task routing configuration
app.conf.task_routes = {
    "apps.notifications.tasks.*": {"queue": "notifications", "priority": 5},
    "apps.sales.tasks.*": {"queue": "pos", "priority": 8},
}
