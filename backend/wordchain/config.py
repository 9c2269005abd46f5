import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    # Socket.IO ("" picks eventlet, or threading on Windows / Python >= 3.13)
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Game
    MAX_PLAYERS = int(os.environ.get("MAX_PLAYERS", "10"))
    TURN_DURATION_SEC = int(os.environ.get("TURN_DURATION_SEC", "10"))
    MIN_WORD_LENGTH = int(os.environ.get("MIN_WORD_LENGTH", "2"))
    ROUND_HISTORY_LIMIT = int(os.environ.get("ROUND_HISTORY_LIMIT", "20"))
