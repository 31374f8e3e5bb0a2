# config/settings_test.py
import os
import tempfile

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DB_ENGINE", "django.db.backends.sqlite3")
os.environ.setdefault("DB_NAME", ":memory:")
os.environ.setdefault("CLOUDINARY_CLOUD_NAME", "test-cloud")
os.environ.setdefault("CLOUDINARY_API_KEY", "test-key")
os.environ.setdefault("CLOUDINARY_API_SECRET", "test-secret")

from .settings import *  # noqa: E402,F401,F403

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

MESSAGING["LIVE_REDIS_URL"] = ""  # noqa: F405

LOGGING["loggers"]["apps.messaging"]["propagate"] = True  # noqa: F405

# file-backed so threads in transactional tests share one database
DATABASES["default"]["TEST"] = {"NAME": os.path.join(tempfile.gettempdir(), "handyhub_test.sqlite3")}  # noqa: F405
DATABASES["default"]["OPTIONS"] = {"transaction_mode": "IMMEDIATE", "timeout": 20}  # noqa: F405
