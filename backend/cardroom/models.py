from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any
import secrets
import string
import uuid

from cardroom.services.games.cards import Card
from cardroom.services.games.scoring import hand_value

WAITING = 'waiting'
IN_PROGRESS = 'in_progress'
FINISHED = 'finished'

LOBBY_CODE_ALPHABET = string.ascii_uppercase + string.digits


@dataclass
class Player:
    id: str
    name: Optional[str] = None
    hand: List[Card] = field(default_factory=list)
    is_standing: bool = False
    is_busted: bool = False
    forced_stand: bool = False

    @property
    def display_name(self) -> str:
        return self.name or self.id[:5]

    @property
    def is_eligible(self) -> bool:
        return not (self.is_standing or self.is_busted)

    def reset_round(self) -> None:
        self.hand = []
        self.is_standing = False
        self.is_busted = False
        self.forced_stand = False

    def to_dict(self):
        return {'id': self.id, 'name': self.name}

    def hand_view(self, reveal: bool = True) -> Dict[str, Any]:
        """Hand snapshot; unrevealed hands hide the first card and the value."""
        cards = [c.to_dict() for c in self.hand]
        if not reveal and cards:
            cards[0] = {'hidden': True}
        return {
            'hand': cards,
            'value': hand_value(self.hand) if reveal else None,
            'busted': self.is_busted,
            'standing': self.is_standing,
        }


def new_player_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Lobby:
    code: str
    host_id: str
    members: List[Player] = field(default_factory=list)
    deck: List[Card] = field(default_factory=list)
    turn_index: int = 0
    turn_serial: int = 0
    phase: str = WAITING
    result: Optional[Dict[str, Any]] = None

    @property
    def room(self) -> str:
        return f"lobby:{self.code}"

    @property
    def acting_player(self) -> Optional[Player]:
        if self.phase != IN_PROGRESS or not self.members:
            return None
        return self.members[self.turn_index]

    def find_member(self, player_id: str) -> Optional[Player]:
        for p in self.members:
            if p.id == player_id:
                return p
        return None

    def index_of(self, player_id: str) -> int:
        for idx, p in enumerate(self.members):
            if p.id == player_id:
                return idx
        return -1

    def membership(self):
        return {
            'code': self.code,
            'members': [p.to_dict() for p in self.members],
            'host_id': self.host_id,
        }

    def to_dict(self, viewer_id: Optional[str] = None):
        """Snapshot of the lobby as seen by ``viewer_id``.

        While a round is in progress only the viewer's own hand is revealed.
        """
        reveal_all = self.phase == FINISHED
        acting = self.acting_player
        players = []
        for p in self.members:
            pd = p.to_dict()
            if self.phase != WAITING:
                pd.update(p.hand_view(reveal=reveal_all or p.id == viewer_id))
            players.append(pd)
        return {
            'code': self.code,
            'phase': self.phase,
            'host_id': self.host_id,
            'players': players,
            'acting_player_id': acting.id if acting else None,
            'cards_remaining': len(self.deck),
            'result': self.result,
        }


def generate_lobby_code(taken, length=6, alphabet=LOBBY_CODE_ALPHABET):
    """Generate a short lobby code that is not in ``taken``."""
    while True:
        code = ''.join(secrets.choice(alphabet) for _ in range(length))
        if code not in taken:
            return code


class LobbyRepository:
    """In-memory registry of live lobbies keyed by upper-case code."""

    def __init__(self, code_length: int = 6):
        self.code_length = code_length
        self._lobbies: Dict[str, Lobby] = {}
        self._player_lobby: Dict[str, str] = {}

    def __len__(self):
        return len(self._lobbies)

    def __contains__(self, code):
        return self.normalize(code) in self._lobbies

    @staticmethod
    def normalize(code: str) -> str:
        return (code or '').strip().upper()

    def create(self, host: Player) -> Lobby:
        code = generate_lobby_code(self._lobbies, length=self.code_length)
        lobby = Lobby(code=code, host_id=host.id, members=[host])
        self._lobbies[code] = lobby
        self._player_lobby[host.id] = code
        return lobby

    def get(self, code: str) -> Optional[Lobby]:
        return self._lobbies.get(self.normalize(code))

    def add_member(self, lobby: Lobby, player: Player) -> None:
        lobby.members.append(player)
        self._player_lobby[player.id] = lobby.code

    def remove_member(self, lobby: Lobby, player_id: str) -> int:
        """Drop a member, returning its former index (-1 if absent)."""
        idx = lobby.index_of(player_id)
        if idx >= 0:
            del lobby.members[idx]
        self._player_lobby.pop(player_id, None)
        return idx

    def lobby_for_player(self, player_id: str) -> Optional[Lobby]:
        code = self._player_lobby.get(player_id)
        return self._lobbies.get(code) if code else None

    def destroy(self, code: str) -> None:
        lobby = self._lobbies.pop(self.normalize(code), None)
        if lobby:
            for p in lobby.members:
                self._player_lobby.pop(p.id, None)

    def codes(self) -> List[str]:
        return list(self._lobbies)
