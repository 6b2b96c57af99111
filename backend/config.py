import os


def _origins():
    raw = os.environ.get('CORS_ORIGINS') or 'http://localhost:5173,http://127.0.0.1:5173'
    return [o.strip() for o in raw.split(',') if o.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    CORS_ORIGINS = _origins()
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Lobby limits
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '8'))
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '1'))
    LOBBY_CODE_LENGTH = int(os.environ.get('LOBBY_CODE_LENGTH', '6'))
    # Number of 52-card sets shuffled into each round's deck
    DECK_COUNT = int(os.environ.get('DECK_COUNT', '1'))
    # Optional: auto-stand an idle acting player after this many seconds. 0 disables.
    TURN_TIMEOUT_SEC = float(os.environ.get('TURN_TIMEOUT_SEC', '0'))
    # Optional: heartbeat interval for turn timer logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = float(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
