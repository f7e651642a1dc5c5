from typing import Any, Dict, Iterable, NamedTuple

from flask_socketio import join_room, leave_room

WATCHER = 'watcher'


class Channel(NamedTuple):
    """Broadcast group for one kind of traffic about one session."""
    kind: str
    session_id: str

    @classmethod
    def watchers(cls, session_id: str) -> 'Channel':
        return cls(WATCHER, session_id)

    @property
    def room(self) -> str:
        return f"{self.kind}_{self.session_id}"


class Broadcaster:
    """Fans session updates out to Socket.IO rooms.

    There is no backlog: a connection joining a room after a publish does
    not receive it.
    """

    event = 'state_update'

    def __init__(self, socketio, namespaces: Iterable[str] = ('/ws',)) -> None:
        self.socketio = socketio
        self.namespaces = tuple(namespaces)

    def subscribe(self, sid: str, session_id: str, namespace: str) -> str:
        room = Channel.watchers(session_id).room
        join_room(room, sid=sid, namespace=namespace)
        return room

    def unsubscribe(self, sid: str, session_id: str, namespace: str) -> str:
        room = Channel.watchers(session_id).room
        leave_room(room, sid=sid, namespace=namespace)
        return room

    def publish(self, session_id: str, message: Dict[str, Any]) -> None:
        room = Channel.watchers(session_id).room
        for namespace in self.namespaces:
            self.socketio.emit(self.event, message, to=room, namespace=namespace)
