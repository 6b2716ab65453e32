from flask import Blueprint, current_app, jsonify

from courtside.errors import DuplicateKey, RoomNotFound
from courtside.models import default_courts, generate_room_key
from courtside.store import SessionStore

rooms = Blueprint('rooms', __name__)


def _sessions() -> SessionStore:
    return current_app.extensions['session_store']


@rooms.route('/generate-key', methods=['POST'])
def generate_key():
    """
    Creates a new room seeded with the default courts and returns its key.
    """
    sessions = _sessions()
    while True:
        try:
            room = sessions.create(generate_room_key(), default_courts())
            break
        except DuplicateKey:
            continue

    current_app.logger.info(f"[room-create] key={room.key} courts={len(room.courts)}")
    return jsonify({
        'success': True,
        'roomKey': room.key,
        'message': f'Room key generated: {room.key}',
    }), 200


@rooms.route('/validate-key/<string:key>', methods=['GET'])
def validate_key(key):
    """
    Reports whether a key resolves to a live room and returns its snapshot.
    Counts as activity on the room.
    """
    try:
        room = _sessions().touch(key)
    except RoomNotFound:
        return jsonify({'success': False, 'message': 'Invalid or expired room key'}), 404

    with room.lock:
        snapshot = room.to_dict()
    return jsonify({'success': True, 'roomData': snapshot}), 200


@rooms.route('/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok', 'rooms': len(_sessions())}), 200
