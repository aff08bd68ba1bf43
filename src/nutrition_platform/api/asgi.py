"""ASGI entrypoint for the diet sheet API."""

from nutrition_platform.api.app import create_app
from nutrition_platform.containers import build_container

app = create_app(build_container())
