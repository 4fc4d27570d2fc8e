"""ASGI config for TravelHub.

This module exposes the ASGI application for ASGI servers such as uvicorn
or daphne. Production servers should set DJANGO_SETTINGS_MODULE
explicitly.
"""

import os
from django.core.asgi import get_asgi_application  # type: ignore

# Use the development settings by default.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_asgi_application()
