"""Wires every event listener module into the in-process registry.

Importing this module registers the listeners; ``main`` imports it once at
app level so the emitting services stay unaware of their consumers.
"""
from services import events
from services import gamification_service, notification_service  # noqa: F401


def describe_listeners(event_name: str) -> list[str]:
    return [f"{listener.__module__}.{listener.__qualname__}" for listener in events.listeners_for(event_name)]
