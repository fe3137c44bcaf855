import pytest
from schemas.events import (
    ChatAppend,
    ContentUpdate,
    Delivery,
    Join,
    Leave,
    TypingStart,
    TypingStop,
    event_from_frame,
)


class TestEventFromFrame:
    def test_join_and_leave_take_a_bare_room_id(self):
        assert event_from_frame("A", {"event": "join_room", "data": "r1"}) == Join(connection_id="A", room_id="r1")
        assert event_from_frame("A", {"event": "leave_room", "data": "r1"}) == Leave(connection_id="A", room_id="r1")

    def test_empty_room_id_is_accepted(self):
        assert event_from_frame("A", {"event": "join_room", "data": ""}).room_id == ""

    def test_note_change(self):
        event = event_from_frame("A", {"event": "note_change", "data": {"roomId": "r1", "content": "x=1"}})
        assert event == ContentUpdate(connection_id="A", room_id="r1", content="x=1")

    def test_chat_message_keeps_any_payload(self):
        message = {"user": "ann", "text": "hi", "meta": [1, 2]}
        event = event_from_frame("A", {"event": "chat_message", "data": {"roomId": "r1", "message": message}})
        assert isinstance(event, ChatAppend)
        assert event.message == message

    def test_typing(self):
        assert isinstance(event_from_frame("A", {"event": "typing_start", "data": {"roomId": "r1"}}), TypingStart)
        assert isinstance(event_from_frame("A", {"event": "typing_stop", "data": {"roomId": "r1"}}), TypingStop)

    @pytest.mark.parametrize("frame", [
        "join_room",
        ["join_room", "r1"],
        {"event": "join_room", "data": 42},
        {"event": "join_room"},
        {"event": "note_change", "data": {"roomId": "r1"}},
        {"event": "note_change", "data": "r1"},
        {"event": "typing_start", "data": {}},
        {"event": "self_destruct", "data": "r1"},
    ])
    def test_malformed_frames_raise_value_error(self, frame):
        with pytest.raises(ValueError):
            event_from_frame("A", frame)


class TestDelivery:
    def test_envelope(self):
        delivery = Delivery(recipients=["A"], event="note_update", data={"content": "c", "sender": "B"})
        assert delivery.envelope() == {"event": "note_update", "data": {"content": "c", "sender": "B"}}
