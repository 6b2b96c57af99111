from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import logging
import click
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config, repository=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(getattr(logging, str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Wire the session engine to the Socket.IO transport
    from cardroom.models import LobbyRepository
    from cardroom.broadcast import SocketIOBroadcaster
    from cardroom.services.games.engine import SessionEngine
    from cardroom.services.games.scheduler import TurnTimer

    cfg = flask_app.config
    turn_timer = TurnTimer(
        flask_app,
        socketio,
        timeout_sec=float(cfg.get('TURN_TIMEOUT_SEC', 0)),
        heartbeat_sec=float(cfg.get('TIMER_HEARTBEAT_SEC', 0)),
    )
    engine = SessionEngine(
        repository if repository is not None else LobbyRepository(code_length=int(cfg.get('LOBBY_CODE_LENGTH', 6))),
        SocketIOBroadcaster(socketio, namespace='/ws'),
        max_players=int(cfg.get('MAX_PLAYERS', 8)),
        min_players=int(cfg.get('MIN_PLAYERS', 1)),
        deck_count=int(cfg.get('DECK_COUNT', 1)),
        turn_timer=turn_timer,
        logger=flask_app.logger,
    )
    turn_timer.engine = engine
    flask_app.extensions['cardroom'] = engine

    # Import and register blueprints here
    from cardroom.main import main
    flask_app.register_blueprint(main)

    from cardroom.api.lobbies import lobbies
    flask_app.register_blueprint(lobbies, url_prefix='/api/lobbies')

    # Register Socket.IO event handlers
    from cardroom.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('lobbies')
    def list_lobbies_command():
        """Lists live lobbies with their phase and member count."""
        repo = engine.repository
        if not len(repo):
            click.echo('No live lobbies.')
            return
        for code in repo.codes():
            lobby = repo.get(code)
            click.echo(f"{code}  {lobby.phase:<12} members={len(lobby.members)} host={lobby.host_id}")

    flask_app.cli.add_command(list_lobbies_command)

    return flask_app
