# Inbound (client -> broker)
JOIN_ROOM = "join_room"
NOTE_CHANGE = "note_change"
CHAT_MESSAGE = "chat_message"  # also outbound, same name both ways
LEAVE_ROOM = "leave_room"
TYPING_START = "typing_start"
TYPING_STOP = "typing_stop"

# Outbound (broker -> clients)
CONNECTED = "connected"  # new connection only, carries its socket id
ROOM_JOINED = "room_joined"  # joiner only
USER_JOINED = "user_joined"  # room minus joiner
NOTE_UPDATE = "note_update"  # room minus sender
USER_LEFT = "user_left"  # remaining members
USER_TYPING = "user_typing"  # room minus typer

# Wire envelope: {"event": <name>, "data": <payload>}
ENVELOPE_EVENT = "event"
ENVELOPE_DATA = "data"
