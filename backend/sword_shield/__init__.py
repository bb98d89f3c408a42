from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('ALLOWED_ORIGINS', [])
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(
        flask_app,
        cors_allowed_origins=allowed_origins,
        ping_timeout=flask_app.config.get('PING_TIMEOUT_SEC', 30),
        ping_interval=flask_app.config.get('PING_INTERVAL_SEC', 10),
        max_http_buffer_size=flask_app.config.get('MAX_HTTP_BUFFER_SIZE', 1000000),
    )

    from sword_shield.context import GameContext
    from sword_shield.socketio_events import broadcast_state, register_socketio_handlers

    game = GameContext.from_config(
        flask_app.config,
        emit=broadcast_state,
        start_task=socketio.start_background_task,
        sleep=socketio.sleep,
        logger=flask_app.logger,
    )
    flask_app.extensions['sword_shield'] = game

    from sword_shield.api.status import status
    flask_app.register_blueprint(status)

    register_socketio_handlers()

    # Reaper is a runtime background loop; tests drive sweeps directly
    if not flask_app.config.get('TESTING') or flask_app.config.get('ENABLE_REAPER_IN_TESTS'):
        from sword_shield.services.games.reaper import start_reaper
        start_reaper(
            game,
            start_task=socketio.start_background_task,
            sleep=socketio.sleep,
            interval_sec=float(flask_app.config.get('REAPER_INTERVAL_SEC', 60)),
        )

    return flask_app
