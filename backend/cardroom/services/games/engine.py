import logging
import threading
from typing import Callable, List, Optional

from cardroom.models import (
    FINISHED,
    IN_PROGRESS,
    WAITING,
    Lobby,
    LobbyRepository,
    Player,
)
from .cards import Card, build_deck
from .errors import (
    AlreadyStarted,
    DeckExhausted,
    InvalidPhase,
    LobbyFull,
    LobbyNotFound,
    NotEnoughPlayers,
    NotHost,
    NotYourTurn,
)
from .scoring import hand_value, is_bust, score_round


class Broadcaster:
    """Outbound side of the transport as seen by the engine.

    Implementations deliver named events to a lobby room or to a single
    player, and move players in and out of rooms.
    """

    def enter(self, player_id: str, room: str) -> None:
        raise NotImplementedError

    def exit(self, player_id: str, room: str) -> None:
        raise NotImplementedError

    def to_room(self, room: str, event: str, payload) -> None:
        raise NotImplementedError

    def to_player(self, player_id: str, event: str, payload) -> None:
        raise NotImplementedError


class SessionEngine:
    """Authoritative lobby and turn state machine.

    Every public operation validates, mutates and broadcasts while holding
    the engine lock, so each inbound event runs to completion before the
    next one is applied.
    """

    def __init__(
        self,
        repository: LobbyRepository,
        broadcaster: Broadcaster,
        max_players: int = 8,
        min_players: int = 1,
        deck_count: int = 1,
        deck_factory: Callable[[int], List[Card]] = build_deck,
        turn_timer=None,
        logger: Optional[logging.Logger] = None,
    ):
        self.repository = repository
        self.broadcaster = broadcaster
        self.max_players = max_players
        self.min_players = min_players
        self.deck_count = deck_count
        self.deck_factory = deck_factory
        self.turn_timer = turn_timer
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.RLock()

    # ---- lobby membership ----

    def create_lobby(self, player_id: str, name: Optional[str] = None) -> Lobby:
        with self._lock:
            self._leave_current(player_id)
            host = Player(id=player_id, name=name)
            lobby = self.repository.create(host)
            self.broadcaster.enter(player_id, lobby.room)
            self.logger.info(f"[create] lobby={lobby.code} host={player_id}")
            self.broadcaster.to_player(player_id, 'lobby_created', {'code': lobby.code, 'player_id': player_id})
            self._emit_membership(lobby)
            return lobby

    def join_lobby(self, code: str, player_id: str, name: Optional[str] = None) -> Lobby:
        with self._lock:
            lobby = self._require_lobby(code)
            if lobby.find_member(player_id) is None:
                if lobby.phase != WAITING:
                    raise AlreadyStarted()
                if len(lobby.members) >= self.max_players:
                    raise LobbyFull()
                self._leave_current(player_id)
                self.repository.add_member(lobby, Player(id=player_id, name=name))
                self.broadcaster.enter(player_id, lobby.room)
                self.logger.info(f"[join] lobby={lobby.code} player={player_id} members={len(lobby.members)}")
            payload = lobby.membership()
            payload['player_id'] = player_id
            self.broadcaster.to_player(player_id, 'lobby_joined', payload)
            self._emit_membership(lobby)
            return lobby

    def leave(self, player_id: str) -> Optional[Lobby]:
        """Remove ``player_id`` from whichever lobby holds it.

        Used for both explicit leaves and dropped connections. Returns the
        lobby if it still exists afterwards.
        """
        with self._lock:
            lobby = self.repository.lobby_for_player(player_id)
            if lobby is None:
                return None
            idx = self.repository.remove_member(lobby, player_id)
            self.broadcaster.exit(player_id, lobby.room)
            self.logger.info(f"[leave] lobby={lobby.code} player={player_id} remaining={len(lobby.members)}")
            if not lobby.members:
                self.repository.destroy(lobby.code)
                self.logger.info(f"[destroy] lobby={lobby.code}")
                return None

            host_left = lobby.host_id == player_id
            if host_left:
                lobby.host_id = lobby.members[0].id
                self.logger.info(f"[host] lobby={lobby.code} new_host={lobby.host_id}")
            self._emit_membership(lobby)
            if host_left:
                self.broadcaster.to_room(lobby.room, 'host_changed', {'host_id': lobby.host_id})

            if lobby.phase == IN_PROGRESS:
                if idx < lobby.turn_index:
                    lobby.turn_index -= 1
                elif idx == lobby.turn_index:
                    # The next member now sits at idx; scan from there
                    self.advance_turn(lobby, start=idx)
            return lobby

    # ---- round flow ----

    def start_game(self, code: str, player_id: str) -> Lobby:
        with self._lock:
            lobby = self._require_lobby(code)
            if lobby.host_id != player_id:
                raise NotHost()
            if lobby.phase != WAITING:
                raise InvalidPhase()
            if len(lobby.members) < self.min_players:
                raise NotEnoughPlayers(f"At least {self.min_players} players are required to start")

            lobby.deck = list(self.deck_factory(self.deck_count))
            for p in lobby.members:
                p.reset_round()
                p.hand = [lobby.deck.pop() for _ in range(2) if lobby.deck]
            lobby.phase = IN_PROGRESS
            lobby.turn_index = 0
            lobby.result = None
            self.logger.info(
                f"[deal] lobby={lobby.code} players={len(lobby.members)} decks={self.deck_count} remaining={len(lobby.deck)}"
            )
            acting = lobby.members[0]
            for viewer in lobby.members:
                self.broadcaster.to_player(viewer.id, 'round_started', {
                    'members': [
                        dict(p.to_dict(), **p.hand_view(reveal=p.id == viewer.id))
                        for p in lobby.members
                    ],
                    'acting_player_id': acting.id,
                })
            self._begin_turn(lobby)
            return lobby

    def hit(self, code: str, player_id: str) -> Player:
        with self._lock:
            lobby = self._require_lobby(code)
            player = self._require_turn(lobby, player_id)
            if not lobby.deck:
                self.logger.warning(f"[deck-exhausted] lobby={lobby.code} player={player_id} forced stand")
                self.broadcaster.to_player(player_id, 'action_rejected', DeckExhausted().to_dict())
                self._force_stand(lobby, player)
                return player

            card = lobby.deck.pop()
            player.hand.append(card)
            if is_bust(player.hand):
                player.is_busted = True
                player.is_standing = True
                self.logger.info(f"[bust] lobby={lobby.code} player={player_id} value={hand_value(player.hand)}")
            else:
                self.logger.info(f"[hit] lobby={lobby.code} player={player_id} card={card}")
            self._emit_hand(lobby, player)
            if player.is_busted:
                self.advance_turn(lobby)
            return player

    def stand(self, code: str, player_id: str) -> Player:
        with self._lock:
            lobby = self._require_lobby(code)
            player = self._require_turn(lobby, player_id)
            player.is_standing = True
            self.logger.info(f"[stand] lobby={lobby.code} player={player_id} value={hand_value(player.hand)}")
            self._emit_hand(lobby, player)
            self.advance_turn(lobby)
            return player

    def expire_turn(self, code: str, player_id: str, turn_serial: int) -> bool:
        """Force-stand a player whose turn deadline passed.

        Stale timers (the turn already moved on) are ignored.
        """
        with self._lock:
            lobby = self.repository.get(code)
            if lobby is None or lobby.phase != IN_PROGRESS or lobby.turn_serial != turn_serial:
                return False
            player = lobby.acting_player
            if player is None or player.id != player_id:
                return False
            self.logger.info(f"[timer-fire] lobby={lobby.code} player={player_id} serial={turn_serial}")
            self._force_stand(lobby, player)
            return True

    def advance_turn(self, lobby: Lobby, start: Optional[int] = None) -> Optional[Player]:
        """Move the cursor to the next member still able to act.

        Scans at most ``len(members)`` seats, wrapping around. When nobody is
        eligible the round finishes and None is returned.
        """
        count = len(lobby.members)
        if start is None:
            start = lobby.turn_index + 1
        for step in range(count):
            idx = (start + step) % count
            if lobby.members[idx].is_eligible:
                lobby.turn_index = idx
                self._begin_turn(lobby)
                return lobby.members[idx]
        self.compute_outcome(lobby)
        return None

    def compute_outcome(self, lobby: Lobby):
        lobby.phase = FINISHED
        lobby.result = score_round(lobby.members)
        self.logger.info(f"[finish] lobby={lobby.code} winners={lobby.result['winners']}")
        self.broadcaster.to_room(lobby.room, 'round_finished', lobby.result)
        return lobby.result

    def lobby_state(self, code: str, viewer_id: Optional[str] = None):
        with self._lock:
            return self._require_lobby(code).to_dict(viewer_id=viewer_id)

    # ---- helpers ----

    def _require_lobby(self, code: str) -> Lobby:
        lobby = self.repository.get(code)
        if lobby is None:
            raise LobbyNotFound()
        return lobby

    def _require_turn(self, lobby: Lobby, player_id: str) -> Player:
        if lobby.phase != IN_PROGRESS:
            raise InvalidPhase()
        acting = lobby.acting_player
        if acting is None or acting.id != player_id:
            raise NotYourTurn()
        return acting

    def _leave_current(self, player_id: str) -> None:
        if self.repository.lobby_for_player(player_id) is not None:
            self.leave(player_id)

    def _force_stand(self, lobby: Lobby, player: Player) -> None:
        player.is_standing = True
        player.forced_stand = True
        self._emit_hand(lobby, player)
        self.advance_turn(lobby)

    def _begin_turn(self, lobby: Lobby) -> None:
        lobby.turn_serial += 1
        acting = lobby.members[lobby.turn_index]
        payload = {'acting_player_id': acting.id}
        if self.turn_timer is not None:
            deadline = self.turn_timer.schedule(lobby.code, acting.id, lobby.turn_serial)
            if deadline is not None:
                payload['turn_deadline'] = deadline
        self.logger.info(f"[turn] lobby={lobby.code} player={acting.id} serial={lobby.turn_serial}")
        self.broadcaster.to_room(lobby.room, 'turn_changed', payload)

    def _emit_membership(self, lobby: Lobby) -> None:
        self.broadcaster.to_room(lobby.room, 'membership_changed', lobby.membership())

    def _emit_hand(self, lobby: Lobby, player: Player) -> None:
        for viewer in lobby.members:
            payload = {'player_id': player.id}
            payload.update(player.hand_view(reveal=viewer.id == player.id))
            self.broadcaster.to_player(viewer.id, 'hand_updated', payload)
