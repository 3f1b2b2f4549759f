"""
Tests for the Event System (Observer Pattern)
"""

import pytest
from datetime import datetime
from unittest.mock import Mock

from gesture_transfer.events import VerificationEvent, EventPayload, EventDispatcher


class TestEventPayload:
    """Test EventPayload creation and serialization"""

    def test_event_payload_creation(self):
        """Test creating event payloads"""
        event = EventPayload(
            event_type=VerificationEvent.FACE_DETECTED,
            session_id="session-123",
            data={"count": 1}
        )

        assert event.event_type == VerificationEvent.FACE_DETECTED
        assert event.session_id == "session-123"
        assert isinstance(event.timestamp, datetime)
        assert len(event.event_id) > 0

    def test_event_payload_serialization(self):
        """Test event payload to_dict"""
        event = EventPayload(
            event_type=VerificationEvent.VERIFIED,
            session_id="session-123",
            data={"confidence": 0.93}
        )
        data = event.to_dict()

        assert data["event_type"] == "verification.verified"
        assert data["session_id"] == "session-123"
        assert data["data"] == {"confidence": 0.93}
        assert data["timestamp"] == event.timestamp.isoformat()


class TestEventDispatcher:
    """Test publish/subscribe behaviour"""

    def setup_method(self):
        """Set up test fixtures"""
        self.dispatcher = EventDispatcher()

    def _event(self, event_type=VerificationEvent.HAND_DETECTED):
        return EventPayload(event_type=event_type, session_id="s", data={})

    def test_subscribe_and_publish(self):
        """Test handlers receive only their event type"""
        handler = Mock()
        self.dispatcher.subscribe(VerificationEvent.HAND_DETECTED, handler)

        event = self._event()
        self.dispatcher.publish(event)
        self.dispatcher.publish(self._event(VerificationEvent.FACE_DETECTED))

        handler.assert_called_once_with(event)

    def test_subscribe_all(self):
        """Test global handlers receive every event"""
        handler = Mock()
        self.dispatcher.subscribe_all(handler)

        self.dispatcher.publish(self._event(VerificationEvent.STATE_CHANGED))
        self.dispatcher.publish(self._event(VerificationEvent.ERROR))

        assert handler.call_count == 2

    def test_unsubscribe(self):
        """Test removed handlers are not called"""
        handler = Mock()
        self.dispatcher.subscribe(VerificationEvent.VERIFIED, handler)
        self.dispatcher.unsubscribe(VerificationEvent.VERIFIED, handler)
        self.dispatcher.publish(self._event(VerificationEvent.VERIFIED))

        handler.assert_not_called()
        # Unsubscribing twice is harmless
        self.dispatcher.unsubscribe(VerificationEvent.VERIFIED, handler)

    def test_failing_handler_does_not_stop_others(self):
        """Test handler exceptions are isolated"""
        failing = Mock(side_effect=RuntimeError("boom"))
        healthy = Mock()
        self.dispatcher.subscribe(VerificationEvent.ERROR, failing)
        self.dispatcher.subscribe(VerificationEvent.ERROR, healthy)

        self.dispatcher.publish(self._event(VerificationEvent.ERROR))

        failing.assert_called_once()
        healthy.assert_called_once()

    def test_handler_count_and_clear(self):
        """Test counting and clearing handlers"""
        self.dispatcher.subscribe(VerificationEvent.VERIFIED, Mock())
        self.dispatcher.subscribe(VerificationEvent.ERROR, Mock())
        self.dispatcher.subscribe_all(Mock())

        assert self.dispatcher.get_handler_count(VerificationEvent.VERIFIED) == 1
        assert self.dispatcher.get_handler_count() == 3

        self.dispatcher.clear()
        assert self.dispatcher.get_handler_count() == 0
