import atexit

try:
    from backend.wordchain.server import create_app, shutdown_app
except ImportError:  # pragma: no cover
    from wordchain.server import create_app, shutdown_app

app, socketio = create_app()
atexit.register(shutdown_app, app)
