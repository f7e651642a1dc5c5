import os


def _env_bool(name, default='false'):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    IS_PRODUCTION = _env_bool('IS_PRODUCTION')
    # Where the rendered page points its websocket client. A full URL is used
    # as-is; a bare host gets PORT appended. Empty means the page's own origin.
    PUBLIC_HOST = os.environ.get('PUBLIC_HOST', '' if IS_PRODUCTION else 'localhost')
    PORT = int(os.environ.get('PORT', '3000'))
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Session identifiers
    SESSION_ID_LENGTH = int(os.environ.get('SESSION_ID_LENGTH', '4'))
    SESSION_ID_FALLBACK_LENGTH = int(os.environ.get('SESSION_ID_FALLBACK_LENGTH', '5'))
    SESSION_ID_MAX_ATTEMPTS = int(os.environ.get('SESSION_ID_MAX_ATTEMPTS', '100'))
    DEFAULT_GOAL = int(os.environ.get('DEFAULT_GOAL', '10'))
    # Grace period before an abandoned session is reclaimed (seconds)
    RECLAIM_GRACE_SEC = float(os.environ.get('RECLAIM_GRACE_SEC', '30'))
    # Clamp policy. 0 disables the cap.
    MOMENTUM_DELTA_CAP = int(os.environ.get('MOMENTUM_DELTA_CAP', '100'))
    GOAL_MAX = int(os.environ.get('GOAL_MAX', '1000'))
