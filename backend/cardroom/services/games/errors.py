"""Rejections raised by the session engine.

Each carries a short ``reason`` code that is sent back to the requesting
client only. None of them is fatal to the lobby or the process.
"""


class LobbyError(Exception):
    reason = 'Error'
    message = 'Request rejected'

    def __init__(self, message=None):
        super().__init__(message or self.message)

    def to_dict(self):
        return {'reason': self.reason, 'message': str(self)}


class LobbyNotFound(LobbyError):
    reason = 'NotFound'
    message = 'Lobby not found.'


class LobbyFull(LobbyError):
    reason = 'Full'
    message = 'Lobby full.'


class AlreadyStarted(LobbyError):
    reason = 'AlreadyStarted'
    message = 'Game already started.'


class NotHost(LobbyError):
    reason = 'NotHost'
    message = 'Only the host can start the game.'


class NotYourTurn(LobbyError):
    reason = 'NotYourTurn'
    message = 'Not your turn.'


class InvalidPhase(LobbyError):
    reason = 'InvalidPhase'
    message = 'Action not allowed right now.'


class NotEnoughPlayers(LobbyError):
    reason = 'NotEnoughPlayers'
    message = 'Not enough players to start.'


class DeckExhausted(LobbyError):
    reason = 'DeckExhausted'
    message = 'The deck is empty; your hand stands as dealt.'
