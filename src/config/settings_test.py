"""Settings used by the pytest run.

Provides the mandatory secrets and swaps Redis-backed services for
in-process ones so the suite runs without external infrastructure.
"""

import os
import tempfile
from pathlib import Path

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from config.settings import *  # noqa: E402,F401,F403
from config.log import configure_structlog  # noqa: E402

# Uncached loggers so structlog.testing.capture_logs sees every call.
configure_structlog(cache=False)

if DATABASES["default"]["ENGINE"] == "django.db.backends.sqlite3":  # noqa: F405
    # A file rather than shared memory: worker threads in the concurrency
    # tests open their own connections and queue on the write lock.
    DATABASES["default"]["TEST"] = {  # noqa: F405
        "NAME": str(Path(tempfile.gettempdir()) / "storefront-orders-test.sqlite3"),
    }
    DATABASES["default"].setdefault("OPTIONS", {}).update(  # noqa: F405
        {"transaction_mode": "IMMEDIATE", "timeout": 30}
    )

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

PAYMENT_GATEWAY_URL = "https://payments.test/confirm"
PAYMENT_GATEWAY_API_KEY = "test-gateway-key"
