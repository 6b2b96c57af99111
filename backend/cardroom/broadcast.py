from typing import Dict, Tuple

from cardroom.services.games.engine import Broadcaster


class SocketIOBroadcaster(Broadcaster):
    """Deliver engine events over Flask-SocketIO.

    The engine only knows stable player ids; this keeps the mapping from a
    player id to the socket (sid, namespace) currently carrying it.
    """

    def __init__(self, socketio, namespace: str = '/ws'):
        self.socketio = socketio
        self.namespace = namespace
        self._sockets: Dict[str, Tuple[str, str]] = {}

    def bind(self, player_id: str, sid: str, namespace: str) -> None:
        self._sockets[player_id] = (sid, namespace)

    def unbind(self, player_id: str) -> None:
        self._sockets.pop(player_id, None)

    def enter(self, player_id: str, room: str) -> None:
        sock = self._sockets.get(player_id)
        if sock:
            self.socketio.server.enter_room(sock[0], room, namespace=sock[1])

    def exit(self, player_id: str, room: str) -> None:
        sock = self._sockets.get(player_id)
        if sock:
            self.socketio.server.leave_room(sock[0], room, namespace=sock[1])

    def to_room(self, room: str, event: str, payload) -> None:
        for ns in {self.namespace, *(ns for _, ns in self._sockets.values())}:
            self.socketio.emit(event, payload, to=room, namespace=ns)

    def to_player(self, player_id: str, event: str, payload) -> None:
        sock = self._sockets.get(player_id)
        if sock:
            self.socketio.emit(event, payload, to=sock[0], namespace=sock[1])
