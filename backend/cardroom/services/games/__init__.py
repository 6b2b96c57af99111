"""Game domain services: cards, scoring, the session engine and turn timers.

This package contains the game mechanics that socket handlers and HTTP
routes call into, keeping transport concerns separated from the core
lobby/turn state machine.
"""
