"""WSGI config for Reserva.

Exposes the WSGI application for Django's runserver and production WSGI
servers. Production deployments set DJANGO_SETTINGS_MODULE explicitly.
"""

import os
from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_wsgi_application()
