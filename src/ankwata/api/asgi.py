"""ASGI entrypoint for the lottery API."""

from ankwata.api.app import create_app
from ankwata.containers import build_container

app = create_app(build_container())
