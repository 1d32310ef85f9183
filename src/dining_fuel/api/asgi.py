"""ASGI entrypoint for the dining fuel API."""

from dining_fuel.api.app import create_app
from dining_fuel.containers import build_container

app = create_app(build_container())
