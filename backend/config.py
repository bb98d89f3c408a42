import os

from dotenv import load_dotenv

load_dotenv()


def _origins(raw):
    return [o.strip() for o in raw.split(',') if o.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Shared secret for admin_action events (ADMIN_PASSWORD kept for older .env files)
    ADMIN_SECRET = os.environ.get('ADMIN_SECRET') or os.environ.get('ADMIN_PASSWORD') or 'changeme'
    TOTAL_ROUNDS = int(os.environ.get('TOTAL_ROUNDS', '3'))
    # Offline players are kept this long before the reaper drops them (seconds)
    RECONNECT_GRACE_SEC = float(os.environ.get('RECONNECT_GRACE_SEC', '600'))
    REAPER_INTERVAL_SEC = float(os.environ.get('REAPER_INTERVAL_SEC', '60'))
    # Submission broadcasts are coalesced into one per window (ms)
    BROADCAST_WINDOW_MS = int(os.environ.get('BROADCAST_WINDOW_MS', '500'))
    ALLOWED_ORIGINS = _origins(os.environ.get(
        'ALLOWED_ORIGINS',
        'http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000',
    ))
    # Socket.IO transport tuning for 100+ clients
    PING_TIMEOUT_SEC = int(os.environ.get('PING_TIMEOUT_SEC', '30'))
    PING_INTERVAL_SEC = int(os.environ.get('PING_INTERVAL_SEC', '10'))
    MAX_HTTP_BUFFER_SIZE = int(os.environ.get('MAX_HTTP_BUFFER_SIZE', '1000000'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '10000'))
