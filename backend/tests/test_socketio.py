import json
import time


def _subscribe(sio_client, session_id):
    sio_client.send(json.dumps({'sessionId': session_id, 'type': 'subscribe'}), namespace='/ws')


def _unsubscribe(sio_client, session_id):
    sio_client.send(json.dumps({'sessionId': session_id, 'type': 'unsubscribe'}), namespace='/ws')


def _updates(sio_client):
    return [e['args'][0] for e in sio_client.get_received('/ws') if e['name'] == 'state_update']


def test_socket_connect(sio_client):
    assert sio_client.is_connected('/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'connected' for pkt in received)


def test_subscriber_receives_updates(sio_client, client, core):
    core.resolve_session('AB12')
    _subscribe(sio_client, 'AB12')
    assert core.store.get('AB12').guest_count == 1
    sio_client.get_received('/ws')  # flush

    client.post('/momentum', json={'sessionId': 'AB12', 'isPlayer': True, 'momentum': 5})
    client.post('/goal', json={'sessionId': 'AB12', 'isPlayer': False, 'goal': 12})
    assert _updates(sio_client) == [
        {'isPlayer': True, 'newMomentum': 5},
        {'isPlayer': False, 'newGoal': 12},
    ]


def test_other_sessions_are_not_broadcast(sio_client, client, core):
    core.resolve_session('AB12')
    core.resolve_session('CD34')
    _subscribe(sio_client, 'AB12')
    sio_client.get_received('/ws')

    client.post('/momentum', json={'sessionId': 'CD34', 'isPlayer': True, 'momentum': 5})
    assert _updates(sio_client) == []


def test_no_backlog_for_late_subscribers(sio_client, client, core):
    core.resolve_session('AB12')
    client.post('/momentum', json={'sessionId': 'AB12', 'isPlayer': True, 'momentum': 5})
    _subscribe(sio_client, 'AB12')
    assert _updates(sio_client) == []


def test_malformed_envelopes_are_ignored(sio_client, core):
    core.resolve_session('AB12')
    sio_client.send('not json at all', namespace='/ws')
    sio_client.send(json.dumps(['subscribe']), namespace='/ws')
    sio_client.send(json.dumps({'sessionId': 'AB12', 'type': 'shout'}), namespace='/ws')
    sio_client.send(json.dumps({'type': 'subscribe'}), namespace='/ws')
    assert sio_client.is_connected('/ws')
    assert core.store.get('AB12').guest_count == 0


def test_decoded_envelope_is_accepted(sio_client, core):
    core.resolve_session('AB12')
    sio_client.emit('message', {'sessionId': 'AB12', 'type': 'subscribe'}, namespace='/ws')
    assert core.store.get('AB12').guest_count == 1


def _wait_for(predicate, timeout=3.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return predicate()


def test_unsubscribe_reclaims_after_grace(sio_client, core):
    core.resolve_session('AB12')
    _subscribe(sio_client, 'AB12')
    _unsubscribe(sio_client, 'AB12')
    # Still there right after the last guest leaves
    assert core.store.get('AB12') is not None
    assert _wait_for(lambda: core.store.get('AB12') is None)


def test_resubscribe_cancels_reclaim(sio_client, core):
    core.resolve_session('AB12')
    _subscribe(sio_client, 'AB12')
    _unsubscribe(sio_client, 'AB12')
    _subscribe(sio_client, 'AB12')
    time.sleep(core.lifecycle.grace_sec * 3)
    assert core.store.get('AB12') is not None
    assert core.query_state('AB12')['playerGoal'] == 10


def test_disconnect_releases_subscriptions(flask_app, core):
    from momentum import socketio as _sio
    viewer = _sio.test_client(flask_app, namespace='/ws')
    core.resolve_session('AB12')
    _subscribe(viewer, 'AB12')
    assert core.store.get('AB12').guest_count == 1

    viewer.disconnect(namespace='/ws')
    assert core.store.get('AB12').guest_count == 0
    assert _wait_for(lambda: core.store.get('AB12') is None)


def test_ping(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(e['name'] == 'pong' and e['args'][0] == {'n': 1} for e in received)


def test_stale_subscriber_disconnect_keeps_recreated_session(flask_app, core):
    from momentum import socketio as _sio
    # A tab left open on a session that no longer exists subscribes again
    stale = _sio.test_client(flask_app, namespace='/ws')
    _subscribe(stale, 'XY77')
    assert core.store.get('XY77') is None

    # Someone revisits the link, which recreates the session, and watches it
    core.resolve_session('XY77')
    viewer = _sio.test_client(flask_app, namespace='/ws')
    _subscribe(viewer, 'XY77')
    assert core.store.get('XY77').guest_count == 1

    stale.disconnect(namespace='/ws')
    assert core.store.get('XY77').guest_count == 1
    assert not core.lifecycle.is_pending('XY77')
    time.sleep(core.lifecycle.grace_sec * 3)
    assert core.store.get('XY77') is not None
    viewer.disconnect(namespace='/ws')


def test_numeric_session_id_in_envelope(sio_client, core):
    core.resolve_session('1234')
    sio_client.emit('message', {'sessionId': 1234, 'type': 'subscribe'}, namespace='/ws')
    assert core.store.get('1234').guest_count == 1
