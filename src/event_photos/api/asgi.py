"""ASGI entrypoint for the event photos API."""

from event_photos.api.app import create_app
from event_photos.containers import build_container

app = create_app(build_container())
