"""Test settings for BayLedger project.

In-memory SQLite, eager Celery and no retry backoff so the collision
paths run instantly.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

RETRY_BACKOFF_MAX_SECONDS = 0.0
FUZZY_NAME_THRESHOLD = 0.9

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
