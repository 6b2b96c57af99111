import time
from typing import Set, Tuple


class TurnTimer:
    """Per-turn deadline for the acting player.

    - No-ops when ``timeout_sec`` is 0 (the default)
    - Returns the deadline so clients can render countdowns
    - Ensures a single timer per (lobby, turn serial)
    - On expiry asks the engine to force-stand the player; the engine ignores
      timers whose turn has already moved on
    """

    def __init__(self, app, socketio, timeout_sec: float = 0, heartbeat_sec: float = 0, spawn=None):
        self.app = app
        self.socketio = socketio
        self.timeout_sec = timeout_sec
        self.heartbeat_sec = heartbeat_sec
        self.spawn = spawn or socketio.start_background_task
        self.engine = None
        self._scheduled: Set[Tuple[str, int]] = set()

    def schedule(self, code: str, player_id: str, turn_serial: int):
        if not self.timeout_sec or self.timeout_sec <= 0:
            return None
        key = (code, turn_serial)
        if key in self._scheduled:
            self.app.logger.info(f"[timer-skip] lobby={code} serial={turn_serial} already scheduled")
            return None
        self._scheduled.add(key)
        deadline = time.time() + self.timeout_sec
        self.app.logger.info(
            f"[timer-set] lobby={code} player={player_id} serial={turn_serial} duration={self.timeout_sec}s deadline={deadline}"
        )
        self.spawn(self._worker, code, player_id, turn_serial, self.timeout_sec)
        return deadline

    def _worker(self, code: str, player_id: str, turn_serial: int, delay: float):
        hb = self.heartbeat_sec
        if hb and hb > 0:
            slept = 0.0
            while slept < delay:
                step = min(hb, delay - slept)
                self.socketio.sleep(step)
                slept += step
                self.app.logger.debug(f"[timer-heartbeat] lobby={code} serial={turn_serial} remaining={max(0, delay - slept)}s")
        else:
            self.socketio.sleep(delay)
        self._scheduled.discard((code, turn_serial))
        with self.app.app_context():
            if not self.engine.expire_turn(code, player_id, turn_serial):
                self.app.logger.info(f"[timer-abort] lobby={code} serial={turn_serial} turn already over")
