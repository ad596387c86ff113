"""ASGI entrypoint for the Ordo API."""

from ordo.api.app import create_app
from ordo.containers import build_container

app = create_app(build_container())
