"""
Timer Service - Cancellable per-room phase deadlines.

This service handles:
- At most one outstanding phase deadline per room
- Periodic time-remaining ticks while a deadline is pending
- Cancellation tokens so a deadline that lost the race to a natural
  phase completion never fires a transition
- Delayed one-off background work (bot pacing, reconnect grace expiry)

Background work runs through ``socketio.start_background_task`` and
``socketio.sleep`` so it cooperates with the eventlet worker.
"""

import itertools
import logging
import threading
from typing import Callable, Dict, Optional

from acrophylia.core.game_phases import GamePhase

logger = logging.getLogger(__name__)


class PhaseTimer:
    """Handle for one scheduled deadline; doubles as its cancellation token."""

    def __init__(self, token: int, room_id: str, phase: GamePhase, duration: int):
        self.token = token
        self.room_id = room_id
        self.phase = phase
        self.duration = duration
        self.cancelled = False

    def __repr__(self) -> str:
        return (f"PhaseTimer(token={self.token}, room={self.room_id}, phase={self.phase.value}, "
                f"duration={self.duration}, cancelled={self.cancelled})")


class TimerScheduler:
    """Schedules and cancels per-room phase deadlines."""

    def __init__(self, socketio, tick_interval: int = 1):
        """Initialize the timer scheduler.

        Args:
            socketio: Flask-SocketIO instance providing start_background_task/sleep
            tick_interval: Seconds between time-remaining notifications
        """
        self.socketio = socketio
        self.tick_interval = tick_interval
        self._timers: Dict[str, PhaseTimer] = {}
        self._lock = threading.Lock()
        self._tokens = itertools.count(1)

    def schedule(self, room_id: str, phase: GamePhase, duration: int,
                 on_expire: Callable[[PhaseTimer], None],
                 on_tick: Optional[Callable[[PhaseTimer, int], None]] = None) -> PhaseTimer:
        """Schedule the room's deadline, replacing any pending one.

        ``on_tick(timer, remaining)`` is called every tick interval, down to 0.
        ``on_expire(timer)`` is called once the deadline elapses; it must call
        :meth:`release` under the room's lock before acting on it.
        """
        with self._lock:
            previous = self._timers.pop(room_id, None)
            if previous is not None:
                previous.cancelled = True
                logger.debug(f"[timer-replace] room={room_id} old={previous.token}")
            timer = PhaseTimer(next(self._tokens), room_id, phase, duration)
            self._timers[room_id] = timer

        logger.info(f"[timer-set] room={room_id} phase={phase.value} duration={duration}s token={timer.token}")
        self.socketio.start_background_task(self._run, timer, on_expire, on_tick)
        return timer

    def cancel(self, room_id: str) -> bool:
        """Cancel the room's pending deadline, if any."""
        with self._lock:
            timer = self._timers.pop(room_id, None)
            if timer is None:
                return False
            timer.cancelled = True
        logger.info(f"[timer-cancel] room={room_id} phase={timer.phase.value} token={timer.token}")
        return True

    def cancel_all(self) -> int:
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancelled = True
        return len(timers)

    def is_current(self, timer: PhaseTimer) -> bool:
        """True while ``timer`` is the room's live deadline."""
        with self._lock:
            return not timer.cancelled and self._timers.get(timer.room_id) is timer

    def release(self, timer: PhaseTimer) -> bool:
        """Consume a fired deadline.

        Returns False if the timer was cancelled or superseded in the meantime,
        in which case the caller must not act on it.
        """
        with self._lock:
            if timer.cancelled or self._timers.get(timer.room_id) is not timer:
                return False
            del self._timers[timer.room_id]
            timer.cancelled = True
            return True

    def get_timer(self, room_id: str) -> Optional[PhaseTimer]:
        with self._lock:
            return self._timers.get(room_id)

    def run_later(self, delay: float, callback: Callable, *args) -> None:
        """Run ``callback(*args)`` in the background after ``delay`` seconds."""
        self.socketio.start_background_task(self._run_later, delay, callback, args)

    def _run(self, timer: PhaseTimer, on_expire, on_tick):
        remaining = timer.duration
        while remaining > 0:
            step = min(self.tick_interval, remaining)
            self.socketio.sleep(step)
            if not self.is_current(timer):
                logger.debug(f"[timer-abort] room={timer.room_id} token={timer.token}")
                return
            remaining -= step
            if on_tick is not None:
                try:
                    on_tick(timer, remaining)
                except Exception as e:
                    logger.error(f"Error in timer tick for room {timer.room_id}: {e}")

        if not self.is_current(timer):
            logger.debug(f"[timer-abort] room={timer.room_id} token={timer.token}")
            return
        logger.info(f"[timer-fire] room={timer.room_id} phase={timer.phase.value} token={timer.token}")
        try:
            on_expire(timer)
        except Exception as e:
            logger.error(f"Error handling deadline for room {timer.room_id}: {e}")

    def _run_later(self, delay: float, callback: Callable, args: tuple):
        if delay > 0:
            self.socketio.sleep(delay)
        try:
            callback(*args)
        except Exception as e:
            logger.error(f"Error in delayed task {getattr(callback, '__name__', callback)}: {e}")
