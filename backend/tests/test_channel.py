import pytest

from courtside.channel import RoomChannel
from courtside.errors import CourtNotFound, RoomNotFound
from courtside.models import default_courts
from courtside.mutations import parse_mutation


@pytest.fixture()
def channel(store, fake_socketio):
    return RoomChannel(fake_socketio, store)


def _mutation(event, **data):
    return parse_mutation(event, data)[1]


def test_join_sends_snapshot_to_joiner_only(channel, room, fake_socketio):
    channel.join('a', room.key)
    assert fake_socketio.events_for('a') == [('room-joined', room.to_dict())]
    assert channel.room_of('a') == room.key
    assert 'a' in room.subscribers


def test_join_notifies_existing_subscribers(channel, room, fake_socketio):
    channel.join('a', room.key)
    channel.join('b', room.key.lower())
    assert fake_socketio.events_for('a')[-1] == ('user-joined', {'userId': 'b'})
    # No snapshot resend to the existing participant
    assert [e for e, _ in fake_socketio.events_for('a')].count('room-joined') == 1
    assert [e for e, _ in fake_socketio.events_for('b')] == ['room-joined']


def test_join_unknown_room_raises(channel, fake_socketio):
    with pytest.raises(RoomNotFound):
        channel.join('a', 'MISSING1')
    assert fake_socketio.sent == []
    assert channel.room_of('a') is None


def test_join_touches_room(channel, room):
    room.last_activity_at = 1.0
    channel.join('a', room.key)
    assert room.last_activity_at > 1.0


def test_joining_another_room_leaves_the_first(channel, store, room):
    other = store.create('OTHER001', default_courts())
    channel.join('a', room.key)
    channel.join('a', other.key)
    assert 'a' not in room.subscribers
    assert 'a' in other.subscribers
    assert channel.room_of('a') == other.key


def test_dispatch_echoes_to_every_subscriber(channel, room, fake_socketio):
    channel.join('a', room.key)
    channel.join('b', room.key)
    fake_socketio.sent.clear()

    payload = channel.dispatch('a', room.key, _mutation('update-score', courtId=1, player=1, points=1))
    assert payload['score'] == {'player1': 1, 'player2': 0}
    assert fake_socketio.events_for('a') == [('score-updated', payload)]
    assert fake_socketio.events_for('b') == [('score-updated', payload)]


def test_dispatch_falls_back_to_subscribed_room(channel, room):
    channel.join('a', room.key)
    channel.dispatch('a', None, _mutation('reset-court', courtId=1))
    with pytest.raises(RoomNotFound):
        channel.dispatch('stranger', None, _mutation('reset-court', courtId=1))


def test_dispatch_unknown_court_broadcasts_nothing(channel, room, fake_socketio):
    channel.join('a', room.key)
    fake_socketio.sent.clear()
    with pytest.raises(CourtNotFound):
        channel.dispatch('a', room.key, _mutation('reset-court', courtId=42))
    assert fake_socketio.sent == []


def test_broadcast_order_matches_application_order(channel, room, fake_socketio):
    channel.join('a', room.key)
    channel.join('b', room.key)
    fake_socketio.sent.clear()
    for _ in range(3):
        channel.dispatch('b', room.key, _mutation('update-score', courtId=2, player=2, points=1))
    scores = [data['score']['player2'] for event, data in fake_socketio.events_for('a')]
    assert scores == [1, 2, 3]


def test_late_joiner_snapshot_reflects_prior_mutations(channel, room, fake_socketio):
    channel.join('a', room.key)
    channel.dispatch('a', room.key, _mutation('update-score', courtId=1, player=1, points=1, x=1, y=1))
    channel.dispatch('a', room.key, _mutation('add-court'))
    channel.dispatch('a', room.key, _mutation('update-player-name', courtId=5, playerIndex=0, name='Lin'))

    channel.join('late', room.key)
    (event, snapshot), = fake_socketio.events_for('late')
    assert event == 'room-joined'
    courts = {c['id']: c for c in snapshot['courts']}
    assert courts[1]['score'] == {'player1': 1, 'player2': 0}
    assert len(courts[1]['scorePoints']) == 1
    assert courts[5]['players'][0] == 'Lin'


def test_leave_stops_broadcasts(channel, room, fake_socketio):
    channel.join('a', room.key)
    channel.join('b', room.key)
    channel.leave('b')
    fake_socketio.sent.clear()
    channel.dispatch('a', room.key, _mutation('reset-court', courtId=1))
    assert fake_socketio.events_for('b') == []
    assert channel.room_of('b') is None
    # Leaving twice or without a room is harmless
    channel.leave('b')
    channel.leave('never-joined')


def test_broken_connection_does_not_fail_mutation(channel, room, fake_socketio):
    channel.join('a', room.key)
    channel.join('b', room.key)
    fake_socketio.broken.add('b')
    fake_socketio.sent.clear()
    channel.dispatch('a', room.key, _mutation('update-score', courtId=1, player=1, points=1))
    assert room.find_court(1).player1 == 1
    assert [e for e, _ in fake_socketio.events_for('a')] == ['score-updated']


def test_sever_drops_subscriptions(channel, store, room, fake_socketio):
    channel.join('a', room.key)
    channel.sever(room)
    assert room.subscribers == set()
    assert channel.room_of('a') is None


def test_dispatch_on_closed_room_reference(channel, room):
    channel.join('a', room.key)
    room.closed = True
    with pytest.raises(RoomNotFound):
        channel.dispatch('a', room.key, _mutation('reset-court', courtId=1))


def test_disconnect_during_join_leaves_no_subscriber(channel, store, room, fake_socketio, monkeypatch):
    resolve = store.get

    def _resolve_then_disconnect(key):
        found = resolve(key)
        # Disconnect handler runs between room lookup and registration
        fake_socketio.disconnect('gone')
        channel.leave('gone')
        return found

    monkeypatch.setattr(store, 'get', _resolve_then_disconnect)
    channel.join('gone', room.key)
    monkeypatch.undo()

    assert 'gone' not in room.subscribers
    assert channel.room_of('gone') is None
    channel.join('a', room.key)
    channel.dispatch('a', room.key, _mutation('reset-court', courtId=1))
    assert fake_socketio.events_for('gone') == []
