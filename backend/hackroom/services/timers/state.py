"""Timer state machine.

Transitions mutate a ``Timer`` row in place and never touch the session;
persisting and broadcasting is the caller's job. Every applied transition
appends one log entry and returns True. A transition that would change
nothing returns False and records nothing.

``remaining_time`` is a checkpoint: while running it holds the seconds left
as of ``start_time``, so the live value is always derived from the clock.
"""

import math

from hackroom.models import (
    TIMER_ENDED,
    TIMER_PAUSED,
    TIMER_RUNNING,
    TimerLogEntry,
)
from hackroom.services.errors import ValidationError

SYSTEM_ACTOR = 'system'
# Upper bound of the 32-bit remaining_time column
MAX_TIMER_SECONDS = 2**31 - 1


def parse_duration(value, max_seconds: int = MAX_TIMER_SECONDS) -> int:
    """Coerce a client-supplied duration to positive whole seconds."""
    if isinstance(value, bool):
        raise ValidationError('totalSeconds must be a whole number of seconds')
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError('totalSeconds must be a whole number of seconds')
        value = int(value)
    elif isinstance(value, str):
        value = value.strip()
        if not (value.isascii() and value.isdigit()):
            raise ValidationError('totalSeconds must be a whole number of seconds')
        value = int(value)
    elif not isinstance(value, int):
        raise ValidationError('totalSeconds must be a whole number of seconds')
    if value <= 0:
        raise ValidationError('totalSeconds must be greater than zero')
    if value > max_seconds:
        raise ValidationError(f'totalSeconds cannot exceed {max_seconds}')
    return value


def elapsed_seconds(timer, now: float) -> int:
    if timer.start_time is None:
        return 0
    return max(0, math.floor(now - timer.start_time))


def remaining_at(timer, now: float) -> int:
    """Live remaining seconds, without mutating the timer."""
    if timer.status != TIMER_RUNNING or timer.start_time is None:
        return timer.remaining_time or 0
    return max(0, (timer.remaining_time or 0) - elapsed_seconds(timer, now))


def _record(timer, action: str, actor: str, now: float) -> None:
    timer.last_update_by = actor
    timer.updated_at = now
    timer.log.append(TimerLogEntry(action=action, actor=actor, timestamp=now))


def set_duration(timer, total_seconds, actor: str, now: float, max_seconds: int = MAX_TIMER_SECONDS) -> bool:
    seconds = parse_duration(total_seconds, max_seconds)
    timer.status = TIMER_PAUSED
    timer.remaining_time = seconds
    timer.start_time = None
    _record(timer, 'set', actor, now)
    return True


def start(timer, actor: str, now: float, action: str = 'start') -> bool:
    if timer.status == TIMER_RUNNING:
        # Re-anchoring a running timer would silently add time back
        return False
    if (timer.remaining_time or 0) <= 0:
        raise ValidationError('Set a duration before starting the timer')
    timer.status = TIMER_RUNNING
    timer.start_time = now
    _record(timer, action, actor, now)
    return True


def resume(timer, actor: str, now: float) -> bool:
    return start(timer, actor, now, action='resume')


def pause(timer, actor: str, now: float) -> bool:
    if timer.status != TIMER_RUNNING:
        return False
    timer.remaining_time = remaining_at(timer, now)
    timer.status = TIMER_PAUSED
    timer.start_time = None
    _record(timer, 'pause', actor, now)
    return True


def reset(timer, actor: str, now: float) -> bool:
    timer.status = TIMER_PAUSED
    timer.remaining_time = 0
    timer.start_time = None
    _record(timer, 'reset', actor, now)
    return True


def expire(timer, now: float) -> bool:
    if timer.status != TIMER_RUNNING:
        return False
    timer.status = TIMER_ENDED
    timer.remaining_time = 0
    timer.start_time = None
    _record(timer, 'ended', SYSTEM_ACTOR, now)
    return True
