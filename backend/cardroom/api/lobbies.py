from flask import Blueprint, jsonify, current_app

from cardroom.services.games.errors import LobbyNotFound


lobbies = Blueprint('lobbies', __name__)


def _engine():
    return current_app.extensions['cardroom']


@lobbies.route('/', methods=['GET'])
def list_lobbies():
    return jsonify({'live_lobbies': len(_engine().repository)})


@lobbies.route('/<string:code>/state', methods=['GET'])
def get_lobby_state(code):
    # Observer view: hands stay hidden until the round is finished
    try:
        state = _engine().lobby_state(code)
    except LobbyNotFound as exc:
        return jsonify({'error': str(exc), 'reason': exc.reason}), 404
    return jsonify(state)
