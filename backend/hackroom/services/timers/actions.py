import time
from typing import Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from hackroom import db
from hackroom.models import TIMER_PAUSED, Timer
from hackroom.services.errors import NotFoundError, ValidationError
from . import state

TIMER_ACTIONS = {
    'set': state.set_duration,
    'start': state.start,
    'pause': state.pause,
    'resume': state.resume,
    'reset': state.reset,
}


def now_seconds() -> float:
    clock = current_app.config.get('TIMER_CLOCK') or time.time
    return float(clock())


def get_timer(room_id: str) -> Optional[Timer]:
    return Timer.query.filter_by(room_id=room_id).first()


def ensure_timer(room_id: str, actor: str) -> Timer:
    """Return the room's timer, creating a paused one with nothing on it."""
    timer = get_timer(room_id)
    if timer:
        return timer
    timer = Timer(
        room_id=room_id,
        status=TIMER_PAUSED,
        remaining_time=0,
        start_time=None,
        last_update_by=actor,
        updated_at=now_seconds(),
    )
    db.session.add(timer)
    try:
        db.session.commit()
    except IntegrityError:
        # Another participant created it first
        db.session.rollback()
        return get_timer(room_id)
    current_app.logger.info(f"[timer-create] room={room_id} actor={actor}")
    return timer


def save_timer(timer: Timer) -> bool:
    """Commit a transition unless another writer changed the row first.

    The timer's version column makes the UPDATE conditional, so the loser
    of a race is rolled back and its transition dropped.
    """
    db.session.add(timer)
    try:
        db.session.commit()
    except StaleDataError:
        db.session.rollback()
        current_app.logger.info(f"[timer-conflict] room={timer.room_id} concurrent update won, dropping")
        return False
    return True


def apply_timer_action(room_id: str, action: str, actor: str, now: Optional[float] = None, **params) -> Optional[Timer]:
    """Apply one participant action to the room's timer and persist it.

    Returns the updated timer, or None when the action changed nothing
    (pause while not running, start while running, lost a write race).
    """
    transition = TIMER_ACTIONS.get(action)
    if transition is None:
        raise ValidationError(f'Unknown timer action: {action}')
    timer = get_timer(room_id)
    if not timer:
        raise NotFoundError('Timer not found for this room')
    now = now_seconds() if now is None else now

    if action == 'set':
        configured = int(current_app.config.get('TIMER_MAX_SECONDS') or state.MAX_TIMER_SECONDS)
        max_seconds = min(configured, state.MAX_TIMER_SECONDS)
        applied = transition(timer, params.get('total_seconds'), actor, now, max_seconds=max_seconds)
    else:
        applied = transition(timer, actor, now)
    if not applied:
        current_app.logger.debug(f"[timer-noop] room={room_id} action={action} status={timer.status}")
        return None
    if not save_timer(timer):
        return None
    current_app.logger.info(
        f"[timer-{action}] room={room_id} actor={actor} status={timer.status} remaining={timer.remaining_time}"
    )
    return timer
