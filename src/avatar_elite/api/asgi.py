"""ASGI entrypoint for the avatar bot API."""

from avatar_elite.api.app import create_app
from avatar_elite.containers import build_container

app = create_app(build_container())
