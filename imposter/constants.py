MIN_PLAYERS = 3

# Seconds announced for the voting phase once discussion ends.
VOTING_WINDOW_SEC = 60
TICK_INTERVAL_SEC = 1

MAX_MESSAGE_LENGTH = 500
MAX_ROOM_NAME_LENGTH = 50

ROOM_ID_LENGTH = 6
ROOM_ID_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"

DEFAULT_MAX_PLAYERS = 10
DEFAULT_ROUND_TIME_SEC = 300
DEFAULT_THEME = "animals"
DEFAULT_DIFFICULTY = "medium"

MAX_PLAYERS_LIMIT = 20
MIN_ROUND_TIME_SEC = 30
MAX_ROUND_TIME_SEC = 1800

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6

__all__ = [
    "MIN_PLAYERS",
    "VOTING_WINDOW_SEC",
    "TICK_INTERVAL_SEC",
    "MAX_MESSAGE_LENGTH",
    "MAX_ROOM_NAME_LENGTH",
    "ROOM_ID_LENGTH",
    "ROOM_ID_ALPHABET",
    "DEFAULT_MAX_PLAYERS",
    "DEFAULT_ROUND_TIME_SEC",
    "DEFAULT_THEME",
    "DEFAULT_DIFFICULTY",
    "MAX_PLAYERS_LIMIT",
    "MIN_ROUND_TIME_SEC",
    "MAX_ROUND_TIME_SEC",
    "MIN_USERNAME_LENGTH",
    "MIN_PASSWORD_LENGTH",
]
