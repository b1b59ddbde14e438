"""ASGI entrypoint for the gym membership API."""

from gym_membership.api.app import create_app
from gym_membership.containers import build_container

app = create_app(build_container())
