"""Test settings for Reserva.

Used by pytest (see `[tool.pytest.ini_options]` in pyproject.toml). The
SQLite test database lives in a file rather than in memory so that
threads in the concurrency tests share one database. Set DB_ENGINE to run
the suite against PostgreSQL instead.
"""

from .base import *  # noqa: F401,F403
from .base import BASE_DIR, DATABASES, get_env

DEBUG = False

SECRET_KEY = 'test-secret-key'

ALLOWED_HOSTS = ['testserver', 'localhost']

if DATABASES['default']['ENGINE'] == 'django.db.backends.sqlite3':
    DATABASES['default']['TEST'] = {
        'NAME': get_env('DB_TEST_NAME', str(BASE_DIR / 'test_db.sqlite3')),
    }

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}
