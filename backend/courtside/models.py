import random
import string
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Set, Union

ROOM_KEY_LENGTH = 8
ROOM_KEY_ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_COURT_COUNT = 4


class Mode(str, Enum):
    SCORING = 'scoring'
    RALLY = 'rally'


class PointType(str, Enum):
    NORMAL = 'normal'
    NET = 'net'
    OUT = 'out'


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_room_key(length=ROOM_KEY_LENGTH):
    """Generate a short room key. Uniqueness is enforced by the session store."""
    return ''.join(random.choices(ROOM_KEY_ALPHABET, k=length))


def normalize_room_key(key) -> str:
    return str(key or '').strip().upper()


def is_room_key(key: str) -> bool:
    return len(key) == ROOM_KEY_LENGTH and all(ch in ROOM_KEY_ALPHABET for ch in key)


def column_letters(index: int) -> str:
    """1 -> A, 26 -> Z, 27 -> AA."""
    letters = ''
    while index > 0:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord('A') + rem) + letters
    return letters


@dataclass
class RallyPoint:
    x: float
    y: float
    timestamp: int

    def to_dict(self):
        return {'x': self.x, 'y': self.y, 'timestamp': self.timestamp}


@dataclass
class ScorePoint:
    x: float
    y: float
    player: int
    timestamp: int
    type: PointType = PointType.NORMAL

    def to_dict(self):
        return {
            'x': self.x,
            'y': self.y,
            'player': self.player,
            'timestamp': self.timestamp,
            'type': self.type.value,
        }


@dataclass(frozen=True)
class PlainIncrement:
    player: int
    delta: int = 1


@dataclass(frozen=True)
class PositionedIncrement:
    player: int
    delta: int
    x: float
    y: float
    type: PointType = PointType.NORMAL


ScoreMutation = Union[PlainIncrement, PositionedIncrement]


@dataclass
class Court:
    id: int
    name: str
    players: List[str]
    player1: int = 0
    player2: int = 0
    mode: Mode = Mode.SCORING
    rally_points: List[RallyPoint] = field(default_factory=list)
    score_points: List[ScorePoint] = field(default_factory=list)

    @classmethod
    def with_defaults(cls, court_id: int) -> 'Court':
        return cls(
            id=court_id,
            name=f'Terrain {court_id}',
            players=[
                f'Joueur {column_letters(court_id * 2 - 1)}',
                f'Joueur {column_letters(court_id * 2)}',
            ],
        )

    def score_dict(self):
        return {'player1': self.player1, 'player2': self.player2}

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'players': list(self.players),
            'score': self.score_dict(),
            'rallyPoints': [p.to_dict() for p in self.rally_points],
            'scorePoints': [p.to_dict() for p in self.score_points],
            'mode': self.mode.value,
        }


def default_courts(count=DEFAULT_COURT_COUNT) -> List[Court]:
    return [Court.with_defaults(i) for i in range(1, count + 1)]


@dataclass(eq=False)
class Room:
    """A live session. Content is guarded by ``lock``; the store owns the instance."""
    key: str
    courts: List[Court]
    created_at: float = field(default_factory=time.time)
    last_activity_at: float = 0.0
    subscribers: Set[str] = field(default_factory=set)
    closed: bool = False
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def __post_init__(self):
        if not self.last_activity_at:
            self.last_activity_at = self.created_at

    def touch(self, when: Optional[float] = None) -> None:
        self.last_activity_at = time.time() if when is None else when

    def find_court(self, court_id) -> Optional[Court]:
        for court in self.courts:
            if court.id == court_id:
                return court
        return None

    def to_dict(self):
        return {
            'key': self.key,
            'courts': [c.to_dict() for c in self.courts],
            'createdAt': datetime.fromtimestamp(self.created_at, tz=timezone.utc).isoformat(),
        }
