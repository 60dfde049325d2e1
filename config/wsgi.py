"""WSGI config for BayLedger project.

Serves the operator API and the Django admin. Ledger writes normally come
from Celery workers (``ingest.*`` tasks) rather than HTTP requests.
"""

import os
from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_wsgi_application()
