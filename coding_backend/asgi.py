"""
ASGI config for the coding_backend project.

Request handling is synchronous; this entry point exists so the API can
be served by an ASGI server such as uvicorn as well as by WSGI servers.
"""
import os

from django.core.asgi import get_asgi_application  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "coding_backend.settings")

application = get_asgi_application()
