from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def _allowed_origins(raw):
    origins = [o.strip() for o in (raw or '*').split(',') if o.strip()]
    if not origins or '*' in origins:
        return '*'
    return origins


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = _allowed_origins(flask_app.config.get('CORS_ORIGINS'))
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Room state lives for the lifetime of this app instance only
    from courtside.store import SessionStore
    from courtside.channel import RoomChannel
    from courtside.services.courts.reaper import SessionReaper

    sessions = SessionStore()
    channel = RoomChannel(socketio, sessions, logger=flask_app.logger)
    reaper = SessionReaper(
        sessions,
        channel,
        interval=flask_app.config.get('REAPER_INTERVAL_SEC', 30 * 60),
        idle_timeout=flask_app.config.get('ROOM_IDLE_TIMEOUT_SEC', 2 * 60 * 60),
        logger=flask_app.logger,
    )
    flask_app.extensions['session_store'] = sessions
    flask_app.extensions['room_channel'] = channel
    flask_app.extensions['session_reaper'] = reaper

    # Import and register blueprints here
    from courtside.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api')

    from courtside.main import main
    flask_app.register_blueprint(main)

    # Register Socket.IO event handlers
    from courtside.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    reaper.start(flask_app, socketio)

    return flask_app


def server_options(flask_app):
    """Keyword arguments for ``socketio.run`` taken from the app config."""
    return {
        'debug': bool(flask_app.config.get('DEBUG')),
        'allow_unsafe_werkzeug': bool(flask_app.config.get('ALLOW_UNSAFE_WERKZEUG')),
    }
