import json
import logging
from collections import Counter
from typing import Any, Dict, Optional, Tuple

from momentum.channels import Broadcaster
from momentum.errors import InternalError, MomentumError, NotFoundError, ValidationError
from momentum.models import Session
from momentum.services.lifecycle import LifecycleController
from momentum.services.mutations import ClampPolicy, apply_goal, apply_momentum, next_momentum, numeric_or_zero
from momentum.store import SessionStore

SUBSCRIBE = 'subscribe'
UNSUBSCRIBE = 'unsubscribe'


def as_session_id(value: Any) -> Optional[str]:
    """Identifiers arrive as JSON; an all-digit code may come in as a number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value
    return None


class MomentumCore:
    """Operations the HTTP and socket layers are allowed to call.

    Owns the session store, the broadcaster and the lifecycle controller;
    nothing else touches the store directly.
    """

    def __init__(self, store: SessionStore, broadcaster: Broadcaster,
                 lifecycle: LifecycleController, policy: ClampPolicy,
                 logger: Optional[logging.Logger] = None) -> None:
        self.store = store
        self.broadcaster = broadcaster
        self.lifecycle = lifecycle
        self.policy = policy
        self.logger = logger or logging.getLogger(__name__)
        # sid -> Counter of (session_id, namespace) subscriptions still held
        self._connections: Dict[str, Counter] = {}

    def resolve_session(self, requested_id: Optional[str] = None) -> Tuple[str, Session]:
        return self.store.resolve(requested_id or None)

    def _require(self, session_id: Optional[str]) -> Session:
        if not session_id:
            raise ValidationError('Session ID is required')
        session = self.store.get(session_id)
        if session is None:
            raise NotFoundError('No Session was found')
        return session

    def apply_momentum(self, session_id: Any, is_player: Any, is_set: Any, momentum: Any) -> Dict[str, Any]:
        session_id = as_session_id(session_id)
        is_player, is_set = bool(is_player), bool(is_set)
        value = self.policy.clamp_momentum_input(numeric_or_zero(momentum))
        try:
            with self.store.lock:
                session = self._require(session_id)
                self.logger.info(
                    f"[momentum] id={session_id} is_player={is_player} is_set={is_set} momentum={value}"
                )
                player, opponent = next_momentum(session, is_player, is_set, value)
                payload = {'isPlayer': is_player, 'newMomentum': player if is_player else opponent}
                self.broadcaster.publish(session_id, payload)
                apply_momentum(session, player, opponent)
        except MomentumError:
            raise
        except Exception as exc:
            raise InternalError('momentum update failed') from exc
        self.logger.info(f"[momentum-out] id={session_id} payload={payload}")
        return payload

    def apply_goal(self, session_id: Any, is_player: Any, goal: Any) -> Dict[str, Any]:
        session_id = as_session_id(session_id)
        is_player = bool(is_player)
        value = self.policy.clamp_goal(numeric_or_zero(goal))
        try:
            with self.store.lock:
                session = self._require(session_id)
                self.logger.info(f"[goal] id={session_id} is_player={is_player} goal={value}")
                payload = {'isPlayer': is_player, 'newGoal': value}
                self.broadcaster.publish(session_id, payload)
                apply_goal(session, is_player, value)
        except MomentumError:
            raise
        except Exception as exc:
            raise InternalError('goal update failed') from exc
        self.logger.info(f"[goal-out] id={session_id} payload={payload}")
        return payload

    def query_state(self, session_id: Any) -> Dict[str, int]:
        session_id = as_session_id(session_id)
        if not session_id:
            raise NotFoundError('No Session was found')
        with self.store.lock:
            session = self.store.get(session_id)
            if session is None:
                raise NotFoundError('No Session was found')
            return session.to_dict()

    def on_connection_message(self, sid: str, raw: Any, namespace: str = '/ws') -> Optional[str]:
        """Feed a subscribe/unsubscribe envelope from a connection.

        Anything that isn't a well formed envelope is dropped; the return
        value names the action taken, or None.
        """
        envelope = raw
        if isinstance(raw, (str, bytes, bytearray)):
            try:
                envelope = json.loads(raw)
            except ValueError:
                self.logger.debug(f"[envelope-drop] sid={sid} not json")
                return None
        if not isinstance(envelope, dict):
            return None
        session_id = as_session_id(envelope.get('sessionId'))
        kind = envelope.get('type')
        if not session_id or kind not in (SUBSCRIBE, UNSUBSCRIBE):
            self.logger.debug(f"[envelope-drop] sid={sid} envelope={envelope!r}")
            return None
        if kind == SUBSCRIBE:
            self.subscribe(sid, session_id, namespace)
        else:
            self.unsubscribe(sid, session_id, namespace)
        return kind

    def subscribe(self, sid: str, session_id: str, namespace: str = '/ws') -> None:
        room = self.broadcaster.subscribe(sid, session_id, namespace)
        guests = self.lifecycle.guest_joined(session_id)
        # Only a counted guest is released again on disconnect
        if guests is not None:
            self._connections.setdefault(sid, Counter())[(session_id, namespace)] += 1
        self.logger.info(f"[subscribe] sid={sid} room={room} guests={guests}")

    def unsubscribe(self, sid: str, session_id: str, namespace: str = '/ws') -> None:
        room = self.broadcaster.unsubscribe(sid, session_id, namespace)
        held = self._connections.get(sid)
        if held and held[(session_id, namespace)] > 0:
            held[(session_id, namespace)] -= 1
            if held[(session_id, namespace)] == 0:
                del held[(session_id, namespace)]
        guests = self.lifecycle.guest_left(session_id)
        self.logger.info(f"[unsubscribe] sid={sid} room={room} guests={guests}")

    def connection_closed(self, sid: str) -> None:
        """Release every subscription a closed connection still held."""
        held = self._connections.pop(sid, None)
        if not held:
            return
        for (session_id, _namespace), times in held.items():
            for _ in range(times):
                guests = self.lifecycle.guest_left(session_id)
            self.logger.info(f"[disconnect] sid={sid} id={session_id} released={times} guests={guests}")
