"""
ASGI config for the HomeFinder project.

The notifications stream endpoint holds a long-lived response open, so ASGI
servers are the preferred way to serve it in production.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'homefinder.settings')

application = get_asgi_application()
