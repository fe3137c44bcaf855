import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 5000))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

CHAT_HISTORY_LIMIT = int(os.getenv("CHAT_HISTORY_LIMIT", 100))
DEFAULT_ROOM_CONTENT = os.getenv(
    "DEFAULT_ROOM_CONTENT",
    "Welcome to your shared note! Start typing to collaborate.",
)

# Emptied rooms are either deleted on the spot or left for the janitor, never both
EAGER_ROOM_DELETION = os.getenv("EAGER_ROOM_DELETION", "true").lower() in ("1", "true", "yes")
ROOM_RETENTION_SECONDS = int(os.getenv("ROOM_RETENTION_SECONDS", 3600))
JANITOR_INTERVAL_SECONDS = int(os.getenv("JANITOR_INTERVAL_SECONDS", 300))

# Per-connection outbound queue bound; a client this far behind starts losing messages
OUTBOUND_QUEUE_SIZE = int(os.getenv("OUTBOUND_QUEUE_SIZE", 1000))
