"""
Unit tests for the broadcast engine.
"""

from datetime import datetime, timezone

from RelayChat.core.message.protocol import EventName, MessageKind
from RelayChat.core.server.broadcast import BroadcastEngine
from RelayChat.core.server.history import HistoryBuffer
from RelayChat.core.server.interfaces import Addressing


def _fixed_clock():
    return datetime(2024, 5, 1, 12, 30, 15, 250000, tzinfo=timezone.utc)


class TestBroadcastEngine:
    """Tests for chat and file fan-out."""

    def setup_method(self):
        self.history = HistoryBuffer(3)
        self.engine = BroadcastEngine(self.history, clock=_fixed_clock)

    def test_chat_message_goes_to_everyone(self):
        deliveries = self.engine.on_chat_message("a", "hi", "alice")

        assert len(deliveries) == 1
        delivery = deliveries[0]
        assert delivery.addressing is Addressing.ALL
        assert delivery.event.name is EventName.CHAT_MESSAGE

        message = delivery.event.payload
        assert message.kind is MessageKind.CHAT
        assert message.text == "hi"
        assert message.author_name == "alice"
        assert message.origin_connection == "a"
        assert message.timestamp == "2024-05-01T12:30:15.250Z"

    def test_chat_message_is_recorded(self):
        self.engine.on_chat_message("a", "hi", "alice")
        assert [m.text for m in self.history.snapshot()] == ["hi"]

    def test_file_reference_passes_through_untouched(self):
        file_ref = {"storedName": "1-2-a.png", "whatever": [1, 2, 3]}

        deliveries = self.engine.on_file_message("b", file_ref, "bob")

        message = deliveries[0].event.payload
        assert deliveries[0].event.name is EventName.FILE_MESSAGE
        assert message.kind is MessageKind.FILE
        assert message.file_ref == file_ref
        assert message.text is None
        assert self.history.snapshot() == [message]

    def test_history_bound_applies_to_both_kinds(self):
        self.engine.on_chat_message("a", "1", "alice")
        self.engine.on_file_message("a", {"storedName": "2"}, "alice")
        self.engine.on_chat_message("a", "3", "alice")
        self.engine.on_chat_message("a", "4", "alice")

        kinds = [m.kind for m in self.history.snapshot()]
        assert len(self.history) == 3
        assert kinds == [MessageKind.FILE, MessageKind.CHAT, MessageKind.CHAT]

    def test_inactive_connection_is_dropped(self):
        engine = BroadcastEngine(self.history, is_active=lambda c: c == "a", clock=_fixed_clock)

        assert engine.on_chat_message("b", "hi", "bob") == []
        assert engine.on_file_message("b", {}, "bob") == []
        assert len(self.history) == 0

    def test_default_clock_is_utc(self):
        engine = BroadcastEngine(HistoryBuffer(1))
        message = engine.on_chat_message("a", "now", "alice")[0].event.payload

        assert message.timestamp.endswith("Z")
        parsed = datetime.fromisoformat(message.timestamp.replace("Z", "+00:00"))
        assert parsed.tzinfo is not None
