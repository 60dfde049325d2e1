import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("bayledger")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

# No beat schedule: source polling belongs to the external orchestrator,
# which enqueues ``ingest.*`` tasks with already-extracted requests.
app.conf.timezone = os.environ.get("VENUE_TIME_ZONE", "Asia/Bangkok")
