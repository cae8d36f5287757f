"""Top-level package for Django configuration.

Holds the settings modules for each environment, the root URL
configuration and the WSGI/ASGI entry points of the Reserva backend.
"""
