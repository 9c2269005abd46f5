from __future__ import annotations

import sys
from pathlib import Path

from flask import Flask, send_from_directory
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .game.service import EXTENSION_KEY, GameService
from .realtime.broadcast import SocketIOBroadcaster
from .realtime.handlers import SESSIONS_KEY, register_socketio_handlers
from .routes.games import bp as games_bp
from .routes.health import bp as health_bp


def _pick_async_mode(configured: str) -> str:
    if configured:
        return configured
    # Windows and Python >= 3.13: threading (eventlet has known compatibility issues there)
    if sys.platform.startswith("win") or sys.version_info >= (3, 13):
        return "threading"
    return "eventlet"


def create_app(config_class=Config) -> tuple[Flask, SocketIO]:
    dist_dir = Path(__file__).resolve().parents[2] / "frontend" / "dist"

    static_folder = str(dist_dir) if dist_dir.exists() else None
    static_url_path = "/" if dist_dir.exists() else None

    app = Flask(
        __name__,
        static_folder=static_folder,
        static_url_path=static_url_path,
    )
    app.config.from_object(config_class)

    if app.config.get("TRUST_PROXY_HEADERS", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    socketio = SocketIO(
        app,
        cors_allowed_origins=cors_origins,
        async_mode=_pick_async_mode(app.config.get("SOCKETIO_ASYNC_MODE", "")),
    )

    service = GameService.from_config(app.config, broadcaster=SocketIOBroadcaster(socketio))
    app.extensions[EXTENSION_KEY] = service

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(games_bp, url_prefix="/api")

    app.extensions[SESSIONS_KEY] = register_socketio_handlers(socketio, service)

    if dist_dir.exists():
        @app.get("/")
        def index():
            return send_from_directory(dist_dir, "index.html")

        @app.get("/<path:path>")
        def static_proxy(path: str):
            file_path = dist_dir / path
            if file_path.exists() and file_path.is_file():
                return send_from_directory(dist_dir, path)
            return send_from_directory(dist_dir, "index.html")

    return app, socketio


def shutdown_app(app: Flask) -> None:
    app.extensions.pop(SESSIONS_KEY, None)
    service = app.extensions.pop(EXTENSION_KEY, None)
    if service is not None:
        service.close()
