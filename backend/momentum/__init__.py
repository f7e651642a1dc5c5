import logging

import click
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def _allowed_origins(config):
    origins = [o.strip() for o in str(config.get('CORS_ORIGINS', '*')).split(',') if o.strip()]
    if not origins or '*' in origins:
        return '*'
    return origins


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(getattr(logging, str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    allowed_origins = _allowed_origins(flask_app.config)
    CORS(flask_app, origins=allowed_origins)

    testing = flask_app.config.get('TESTING', False)
    namespaces = ('/ws', '/') if testing else ('/ws',)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from momentum.channels import Broadcaster
    from momentum.core import MomentumCore
    from momentum.services.lifecycle import LifecycleController
    from momentum.services.mutations import ClampPolicy
    from momentum.store import SessionStore

    store = SessionStore(
        default_goal=flask_app.config.get('DEFAULT_GOAL', 10),
        id_length=flask_app.config.get('SESSION_ID_LENGTH', 4),
        id_max_attempts=flask_app.config.get('SESSION_ID_MAX_ATTEMPTS', 100),
        id_fallback_length=flask_app.config.get('SESSION_ID_FALLBACK_LENGTH', 5),
        logger=flask_app.logger,
    )
    lifecycle = LifecycleController(
        store,
        grace_sec=float(flask_app.config.get('RECLAIM_GRACE_SEC', 30)),
        start_task=socketio.start_background_task,
        sleep=socketio.sleep,
        logger=flask_app.logger,
    )
    core = MomentumCore(
        store,
        Broadcaster(socketio, namespaces=namespaces),
        lifecycle,
        ClampPolicy.from_config(flask_app.config),
        logger=flask_app.logger,
    )
    flask_app.extensions['momentum'] = core

    from momentum.main import main
    flask_app.register_blueprint(main)

    from momentum.api.sessions import sessions
    flask_app.register_blueprint(sessions)

    # Handlers get the core passed in rather than reaching for a global
    from momentum.socketio_events import register_socketio_handlers
    register_socketio_handlers(core, namespaces=namespaces)

    @click.command('serve')
    @click.option('--host', default='0.0.0.0', show_default=True)
    @click.option('--port', default=None, type=int, help='Defaults to the PORT setting.')
    def serve_command(host, port):
        """Run the HTTP + websocket server."""
        socketio.run(flask_app, host=host, port=port or flask_app.config['PORT'])

    @click.command('sessions-config')
    def sessions_config_command():
        """Print the effective session policy."""
        policy = core.policy
        click.echo(f"session id length: {store.id_length} (fallback {store.id_fallback_length} after {store.id_max_attempts} attempts)")
        click.echo(f"default goal: {store.default_goal}")
        click.echo(f"momentum delta cap: {policy.momentum_delta_cap or 'none'}")
        click.echo(f"goal max: {policy.goal_max or 'none'}")
        click.echo(f"reclaim grace: {lifecycle.grace_sec}s")

    flask_app.cli.add_command(serve_command)
    flask_app.cli.add_command(sessions_config_command)

    return flask_app
