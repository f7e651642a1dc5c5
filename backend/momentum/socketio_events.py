from functools import partial

from flask import request
from flask_socketio import emit

from momentum import socketio


def _get_sid() -> str:
    # request.sid exists in a Socket.IO handler context
    return request.sid  # type: ignore


def _get_namespace() -> str:
    return getattr(request, 'namespace', None) or '/ws'


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(core, *args):
    # A closed tab counts as leaving every session it still watched
    core.connection_closed(_get_sid())


def handle_message(core, data=None):
    """Subscribe/unsubscribe envelopes; anything else is silently dropped."""
    try:
        core.on_connection_message(_get_sid(), data, namespace=_get_namespace())
    except Exception:
        # Keep the connection open whatever the envelope looked like
        core.logger.exception(f"[envelope-error] sid={_get_sid()}")


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers(core, namespaces=('/ws',)) -> None:
    """Register Socket.IO event handlers bound to `core` on each namespace."""
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', partial(handle_disconnect, core), namespace=namespace)
        socketio.on_event('message', partial(handle_message, core), namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
