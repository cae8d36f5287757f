"""Production settings for Reserva.

This module extends the base settings with production specific
configuration. Sensitive values must be provided via environment
variables; a missing secret key or host list stops the process at start.
"""

from .base import *  # noqa: F401,F403
from .base import get_env

# Never run with debug enabled in production
DEBUG = False

SECRET_KEY = get_env('DJANGO_SECRET_KEY', required=True)

# Allowed hosts should be defined explicitly via environment variable
ALLOWED_HOSTS = [
    host.strip() for host in get_env('DJANGO_ALLOWED_HOSTS', required=True).split(',') if host.strip()
]

# Configure secure proxies and cookies
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
CSRF_COOKIE_SECURE = True
SESSION_COOKIE_SECURE = True
SECURE_SSL_REDIRECT = get_env('SECURE_SSL_REDIRECT', 'True').lower() == 'true'

REST_FRAMEWORK = {  # noqa: F405
    **REST_FRAMEWORK,  # noqa: F405
    'DEFAULT_RENDERER_CLASSES': ['rest_framework.renderers.JSONRenderer'],
}
