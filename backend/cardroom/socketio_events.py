from flask_socketio import emit
from flask import current_app, request
from typing import Dict, Any

from cardroom import socketio
from cardroom.models import new_player_id
from cardroom.services.games.errors import LobbyError, NotHost

# Socket context per connection: its stable player id and current lobby code
_sid_to_ctx: Dict[str, Dict[str, Any]] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _engine():
    return current_app.extensions['cardroom']


def _broadcaster():
    return _engine().broadcaster


def _ctx() -> Dict[str, Any]:
    """Context for the current socket, created on first use."""
    sid = _get_sid()
    ctx = _sid_to_ctx.get(sid)
    if ctx is None:
        ctx = {'player_id': new_player_id(), 'lobby_code': None}
        _sid_to_ctx[sid] = ctx
        _broadcaster().bind(ctx['player_id'], sid, request.namespace)
    return ctx


def _require_code(data):
    code = (data or {}).get('code') if isinstance(data, dict) else data
    if not code or not isinstance(code, str):
        emit('error', {'message': 'code is required'})
        return None
    return code.strip().upper()


def _name(data):
    name = (data or {}).get('name') if isinstance(data, dict) else None
    if isinstance(name, str) and name.strip():
        return name.strip()[:32]
    return None


def _reject(event: str, exc: LobbyError) -> None:
    current_app.logger.debug(f"[reject] sid={_get_sid()} event={event} reason={exc.reason}")
    if isinstance(exc, NotHost):
        # Non-hosts learn nothing about the lobby
        return
    emit('join_rejected' if event == 'join_lobby' else 'action_rejected', exc.to_dict())


def handle_connect(auth=None):
    ctx = _ctx()
    emit('connected', {'message': 'Connected to /ws', 'player_id': ctx['player_id']})


def handle_disconnect(*args):
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if not ctx:
        return
    engine = _engine()
    engine.leave(ctx['player_id'])
    engine.broadcaster.unbind(ctx['player_id'])


def handle_create_lobby(data=None):
    ctx = _ctx()
    lobby = _engine().create_lobby(ctx['player_id'], name=_name(data))
    ctx['lobby_code'] = lobby.code


def handle_join_lobby(data):
    code = _require_code(data)
    if not code:
        return
    ctx = _ctx()
    try:
        lobby = _engine().join_lobby(code, ctx['player_id'], name=_name(data))
    except LobbyError as exc:
        _reject('join_lobby', exc)
        return
    ctx['lobby_code'] = lobby.code


def handle_leave_lobby(data=None):
    ctx = _ctx()
    code = ctx.get('lobby_code')
    _engine().leave(ctx['player_id'])
    ctx['lobby_code'] = None
    emit('left', {'code': code})


def _lobby_action(event: str, data, action) -> None:
    code = _require_code(data)
    if not code:
        return
    try:
        action(code, _ctx()['player_id'])
    except LobbyError as exc:
        _reject(event, exc)


def handle_start_game(data):
    _lobby_action('start_game', data, _engine().start_game)


def handle_hit(data):
    _lobby_action('hit', data, _engine().hit)


def handle_stand(data):
    _lobby_action('stand', data, _engine().stand)


def handle_ping(data=None):
    emit('pong', data or {})


_HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'create_lobby': handle_create_lobby,
    'join_lobby': handle_join_lobby,
    'leave_lobby': handle_leave_lobby,
    'start_game': handle_start_game,
    'hit': handle_hit,
    'stand': handle_stand,
    'ping': handle_ping,
}


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    for event, handler in _HANDLERS.items():
        socketio.on_event(event, handler, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        for event, handler in _HANDLERS.items():
            socketio.on_event(event, handler, namespace='/')
