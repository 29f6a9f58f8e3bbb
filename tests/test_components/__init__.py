"""Fixture components exercised by the host and scheduler tests.

Each component appends ``(event, name)`` tuples to a shared event log so
tests can assert on hook ordering.
"""

_events = []


def record_event(event: str, name: str) -> None:
    _events.append((event, name))


def get_events():
    """Get a copy of the recorded lifecycle events."""
    return list(_events)


def reset_events():
    _events.clear()
