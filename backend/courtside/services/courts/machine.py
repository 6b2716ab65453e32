"""State transitions for a single court.

Every function expects the caller to hold ``room.lock`` and refreshes the
room's last activity on success. Failures leave the room untouched.
"""

from typing import Optional, Tuple

from courtside.errors import CourtNotFound, InvalidName, InvalidPayload
from courtside.models import (
    Court,
    Mode,
    PlainIncrement,
    PositionedIncrement,
    RallyPoint,
    Room,
    ScoreMutation,
    ScorePoint,
    now_ms,
)


def _court(room: Room, court_id) -> Court:
    court = room.find_court(court_id)
    if court is None:
        raise CourtNotFound(room.key, court_id)
    return court


def apply_score(room: Room, court_id: int, mutation: ScoreMutation) -> Tuple[dict, Optional[ScorePoint]]:
    """Add ``mutation.delta`` to a player's score, recording a point when positioned."""
    court = _court(room, court_id)
    if not isinstance(mutation, (PlainIncrement, PositionedIncrement)):
        raise TypeError(f'unsupported score mutation: {mutation!r}')
    if mutation.player not in (1, 2):
        raise InvalidPayload('player must be 1 or 2')
    if mutation.delta < 0:
        raise InvalidPayload('points must be a non-negative integer')

    if mutation.player == 1:
        court.player1 += mutation.delta
    else:
        court.player2 += mutation.delta

    point = None
    if isinstance(mutation, PositionedIncrement):
        point = ScorePoint(
            x=mutation.x,
            y=mutation.y,
            player=mutation.player,
            timestamp=now_ms(),
            type=mutation.type,
        )
        court.score_points.append(point)

    room.touch()
    return court.score_dict(), point


def add_rally_point(room: Room, court_id: int, x: float, y: float) -> RallyPoint:
    # Accepted in either mode; gating rally input is up to the client
    court = _court(room, court_id)
    point = RallyPoint(x=x, y=y, timestamp=now_ms())
    court.rally_points.append(point)
    room.touch()
    return point


def change_mode(room: Room, court_id: int, mode: Mode) -> Mode:
    """Switch mode and drop the collection belonging to the other mode.

    Re-selecting the current mode still clears the other collection.
    """
    court = _court(room, court_id)
    mode = Mode(mode)
    court.mode = mode
    if mode is Mode.SCORING:
        court.rally_points = []
    else:
        court.score_points = []
    room.touch()
    return mode


def reset_court(room: Room, court_id: int) -> Court:
    court = _court(room, court_id)
    court.player1 = 0
    court.player2 = 0
    court.rally_points = []
    court.score_points = []
    room.touch()
    return court


def add_court(room: Room) -> Court:
    next_id = max((c.id for c in room.courts), default=0) + 1
    court = Court.with_defaults(next_id)
    room.courts.append(court)
    room.touch()
    return court


def rename_player(room: Room, court_id: int, player_index: int, name: str) -> str:
    court = _court(room, court_id)
    if player_index not in (0, 1):
        raise InvalidPayload('playerIndex must be 0 or 1')
    cleaned = (name or '').strip()
    if not cleaned:
        raise InvalidName()
    court.players[player_index] = cleaned
    room.touch()
    return cleaned
