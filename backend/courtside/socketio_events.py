from flask import current_app, request
from flask_socketio import emit

from courtside import socketio
from courtside.channel import NAMESPACE, RoomChannel
from courtside.errors import CourtNotFound, CourtsideError, InvalidPayload
from courtside.mutations import parse_mutation


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _channel() -> RoomChannel:
    return current_app.extensions['room_channel']


def _reject(sid: str, event: str, exc: CourtsideError) -> None:
    current_app.logger.info(f"[room-error] sid={sid} event={event} error={exc.message}")
    emit('room-error', {'message': exc.message})


def handle_connect(auth=None):
    current_app.logger.debug(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    sid = _get_sid()
    _channel().leave(sid)
    current_app.logger.debug(f"[disconnect] sid={sid}")


def handle_join_room(data):
    sid = _get_sid()
    room_key = data.get('roomKey') if isinstance(data, dict) else data
    try:
        if not isinstance(room_key, str) or not room_key.strip():
            raise InvalidPayload('roomKey is required')
        _channel().join(sid, room_key)
    except CourtsideError as exc:
        _reject(sid, 'join-room', exc)


def _dispatch(event: str, data) -> None:
    sid = _get_sid()
    try:
        room_key, mutation = parse_mutation(event, data)
        _channel().dispatch(sid, room_key, mutation)
    except CourtNotFound as exc:
        current_app.logger.warning(
            f"[court-missing] sid={sid} room={exc.key} court={exc.court_id} event={event}"
        )
        if current_app.config.get('SURFACE_COURT_ERRORS'):
            emit('room-error', {'message': exc.message})
    except CourtsideError as exc:
        _reject(sid, event, exc)


def handle_update_score(data):
    _dispatch('update-score', data)


def handle_add_rally_point(data):
    _dispatch('add-rally-point', data)


def handle_change_mode(data):
    _dispatch('change-mode', data)


def handle_reset_court(data):
    _dispatch('reset-court', data)


def handle_add_court(data):
    _dispatch('add-court', data)


def handle_update_player_name(data):
    _dispatch('update-player-name', data)


def register_socketio_handlers(namespace: str = NAMESPACE) -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('join-room', handle_join_room, namespace=namespace)
    socketio.on_event('update-score', handle_update_score, namespace=namespace)
    socketio.on_event('add-rally-point', handle_add_rally_point, namespace=namespace)
    socketio.on_event('change-mode', handle_change_mode, namespace=namespace)
    socketio.on_event('reset-court', handle_reset_court, namespace=namespace)
    socketio.on_event('add-court', handle_add_court, namespace=namespace)
    socketio.on_event('update-player-name', handle_update_player_name, namespace=namespace)
