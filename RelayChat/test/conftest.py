"""
Test configuration and fixtures for RelayChat tests.

Provides:
- A relay core with a deterministic clock
- An in-memory delivery harness resolving addressing modes
- Frame builders for the wire protocol
"""

import json
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Tuple

import pytest

from RelayChat.core.logging import configure_logging, create_testing_config
from RelayChat.core.message.protocol import parse_frame
from RelayChat.core.server.interfaces import Delivery
from RelayChat.core.server.relay import EventRelay


class StepClock:
    """Clock advancing one second per call, starting at a fixed instant."""

    def __init__(self, start: datetime = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)):
        self._now = start

    def __call__(self) -> datetime:
        current = self._now
        self._now += timedelta(seconds=1)
        return current


class Inboxes:
    """
    Collects the events each connection would receive.

    Deliveries are resolved against the relay's open connections at the
    moment they are applied, like the router does with the transport.
    """

    def __init__(self, relay: EventRelay):
        self._relay = relay
        self.received: Dict[str, List[Tuple[str, Any]]] = defaultdict(list)

    def apply(self, deliveries: Iterable[Delivery]) -> List[Delivery]:
        deliveries = list(deliveries)
        for delivery in deliveries:
            frame = delivery.event.to_dict()
            for conn_id in delivery.targets(self._relay.sessions.connections()):
                self.received[conn_id].append((frame["event"], frame["data"]))
        return deliveries

    def events(self, conn_id: str, name: str = None) -> List[Tuple[str, Any]]:
        return [e for e in self.received[conn_id] if name is None or e[0] == name]

    def payloads(self, conn_id: str, name: str) -> List[Any]:
        return [data for event, data in self.received[conn_id] if event == name]

    def clear(self) -> None:
        self.received.clear()


def frame(event: str, data: Any) -> str:
    """Build a client frame."""
    return json.dumps({"event": event, "data": data})


class RelayHarness:
    """Drives a relay through raw frames, as the server would."""

    def __init__(self, relay: EventRelay):
        self.relay = relay
        self.inboxes = Inboxes(relay)

    def connect(self, conn_id: str) -> List[Delivery]:
        return self.inboxes.apply(self.relay.connect(conn_id))

    def disconnect(self, conn_id: str) -> List[Delivery]:
        return self.inboxes.apply(self.relay.disconnect(conn_id))

    def send(self, conn_id: str, event: str, data: Any) -> List[Delivery]:
        return self.inboxes.apply(self.relay.dispatch(parse_frame(frame(event, data), conn_id)))

    def login(self, conn_id: str, name: str) -> List[Delivery]:
        return self.send(conn_id, "user login", name)

    def chat(self, conn_id: str, text: str, name: str) -> List[Delivery]:
        return self.send(conn_id, "chat message", {"text": text, "username": name})

    def logout(self, conn_id: str, name: str) -> List[Delivery]:
        return self.send(conn_id, "user logout", {"username": name, "socketId": conn_id})


@pytest.fixture(scope="session", autouse=True)
def testing_logging():
    """Route logs to the console with the testing profile."""
    configure_logging(create_testing_config())


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def relay(clock) -> EventRelay:
    return EventRelay(max_history=100, clock=clock)


@pytest.fixture
def harness(relay) -> RelayHarness:
    return RelayHarness(relay)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "scenario: end-to-end walkthrough of the relay core"
    )
    config.addinivalue_line(
        "markers", "integration: runs a real WebSocket server on a local port"
    )
