import os


def _flag(name, default='0'):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma-separated list, '*' allows any origin
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Idle room reclamation (seconds)
    ROOM_IDLE_TIMEOUT_SEC = int(os.environ.get('ROOM_IDLE_TIMEOUT_SEC', str(2 * 60 * 60)))
    REAPER_INTERVAL_SEC = int(os.environ.get('REAPER_INTERVAL_SEC', str(30 * 60)))
    ENABLE_REAPER_IN_TESTS = _flag('ENABLE_REAPER_IN_TESTS')
    # Report mutations against unknown courts back to the sender instead of dropping them
    SURFACE_COURT_ERRORS = _flag('SURFACE_COURT_ERRORS')
    # Optional: directory holding a prebuilt client bundle to serve from '/'
    CLIENT_BUILD_DIR = os.environ.get('CLIENT_BUILD_DIR') or None
    # Dev server only: let socketio.run use Werkzeug outside debug mode
    ALLOW_UNSAFE_WERKZEUG = _flag('ALLOW_UNSAFE_WERKZEUG')
    DEBUG = _flag('FLASK_DEBUG')
