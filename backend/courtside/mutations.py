"""Client mutation requests, validated from raw Socket.IO payloads.

Each mutation knows the broadcast event it produces and applies itself to a
room through the court state machine. ``apply`` must run under ``room.lock``.
"""

from dataclasses import dataclass
from numbers import Real
from typing import Any, ClassVar, Dict, Tuple

from courtside.errors import InvalidPayload
from courtside.models import Mode, PlainIncrement, PointType, PositionedIncrement, Room, ScoreMutation
from courtside.services.courts import machine


def _require(data: Dict[str, Any], name: str) -> Any:
    if name not in data or data[name] is None:
        raise InvalidPayload(f'{name} is required')
    return data[name]


def _int(data, name) -> int:
    value = _require(data, name)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidPayload(f'{name} must be an integer')
    return value


def _number(data, name) -> float:
    value = _require(data, name)
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidPayload(f'{name} must be a number')
    return value


def _choice(data, name, enum_cls, default=None):
    value = data.get(name)
    if value is None:
        if default is None:
            raise InvalidPayload(f'{name} is required')
        return default
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ', '.join(m.value for m in enum_cls)
        raise InvalidPayload(f'{name} must be one of: {allowed}') from None


@dataclass(frozen=True)
class UpdateScore:
    event: ClassVar[str] = 'score-updated'
    court_id: int
    change: ScoreMutation

    @classmethod
    def from_payload(cls, data):
        court_id = _int(data, 'courtId')
        player = _int(data, 'player')
        if player not in (1, 2):
            raise InvalidPayload('player must be 1 or 2')
        points = _int(data, 'points')
        if points < 0:
            raise InvalidPayload('points must be a non-negative integer')

        has_x = data.get('x') is not None
        has_y = data.get('y') is not None
        if has_x != has_y:
            raise InvalidPayload('x and y must be supplied together')
        if has_x:
            change = PositionedIncrement(
                player=player,
                delta=points,
                x=_number(data, 'x'),
                y=_number(data, 'y'),
                type=_choice(data, 'type', PointType, PointType.NORMAL),
            )
        else:
            change = PlainIncrement(player=player, delta=points)
        return cls(court_id=court_id, change=change)

    def apply(self, room: Room):
        score, point = machine.apply_score(room, self.court_id, self.change)
        return {
            'courtId': self.court_id,
            'score': score,
            'scorePoint': point.to_dict() if point else None,
        }


@dataclass(frozen=True)
class AddRallyPoint:
    event: ClassVar[str] = 'rally-point-added'
    court_id: int
    x: float
    y: float

    @classmethod
    def from_payload(cls, data):
        # A client supplied timestamp is ignored, the server stamps the point
        return cls(court_id=_int(data, 'courtId'), x=_number(data, 'x'), y=_number(data, 'y'))

    def apply(self, room: Room):
        point = machine.add_rally_point(room, self.court_id, self.x, self.y)
        return {'courtId': self.court_id, 'point': point.to_dict()}


@dataclass(frozen=True)
class ChangeMode:
    event: ClassVar[str] = 'mode-changed'
    court_id: int
    mode: Mode

    @classmethod
    def from_payload(cls, data):
        return cls(court_id=_int(data, 'courtId'), mode=_choice(data, 'mode', Mode))

    def apply(self, room: Room):
        mode = machine.change_mode(room, self.court_id, self.mode)
        return {'courtId': self.court_id, 'mode': mode.value}


@dataclass(frozen=True)
class ResetCourt:
    event: ClassVar[str] = 'court-reset'
    court_id: int

    @classmethod
    def from_payload(cls, data):
        return cls(court_id=_int(data, 'courtId'))

    def apply(self, room: Room):
        machine.reset_court(room, self.court_id)
        return {'courtId': self.court_id}


@dataclass(frozen=True)
class AddCourt:
    event: ClassVar[str] = 'court-added'

    @classmethod
    def from_payload(cls, data):
        return cls()

    def apply(self, room: Room):
        court = machine.add_court(room)
        return {'court': court.to_dict()}


@dataclass(frozen=True)
class RenamePlayer:
    event: ClassVar[str] = 'player-name-updated'
    court_id: int
    player_index: int
    name: str

    @classmethod
    def from_payload(cls, data):
        player_index = _int(data, 'playerIndex')
        if player_index not in (0, 1):
            raise InvalidPayload('playerIndex must be 0 or 1')
        name = data.get('name')
        if not isinstance(name, str):
            raise InvalidPayload('name must be a string')
        return cls(court_id=_int(data, 'courtId'), player_index=player_index, name=name)

    def apply(self, room: Room):
        name = machine.rename_player(room, self.court_id, self.player_index, self.name)
        return {'courtId': self.court_id, 'playerIndex': self.player_index, 'name': name}


# Client event name -> mutation class
MUTATIONS: Dict[str, Any] = {
    'update-score': UpdateScore,
    'add-rally-point': AddRallyPoint,
    'change-mode': ChangeMode,
    'reset-court': ResetCourt,
    'add-court': AddCourt,
    'update-player-name': RenamePlayer,
}


def parse_mutation(event: str, data) -> Tuple[str, Any]:
    """Return ``(room_key, mutation)`` for a client event payload."""
    if not isinstance(data, dict):
        raise InvalidPayload('payload must be an object')
    try:
        mutation_cls = MUTATIONS[event]
    except KeyError:
        raise InvalidPayload(f'unknown event {event}') from None
    return data.get('roomKey'), mutation_cls.from_payload(data)
