import time
from typing import Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from hackroom import db, socketio
from hackroom.models import TIMER_RUNNING, Timer
from hackroom.realtime import broadcast_timer
from . import state
from .actions import now_seconds, save_timer


def run_tick(now: Optional[float] = None) -> int:
    """One recompute pass over every running timer. Needs an app context.

    Timers that still have time left are broadcast with the live value but
    not written back; the stored checkpoint only moves on an explicit
    action or when the timer ends. Returns the number of timers visited.
    """
    now = now_seconds() if now is None else now
    timers = Timer.query.filter_by(status=TIMER_RUNNING).populate_existing().all()
    for timer in timers:
        room_id = None
        try:
            room_id = timer.room_id
            # Rows reload after any commit in this pass; skip ones that moved on
            if timer.status != TIMER_RUNNING:
                continue
            remaining = state.remaining_at(timer, now)
            if remaining > 0:
                broadcast_timer(timer, remaining_time=remaining)
                continue
            state.expire(timer, now)
            if save_timer(timer):
                current_app.logger.info(f"[timer-ended] room={room_id}")
                broadcast_timer(timer)
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception(f"[tick-error] room={room_id}")
    return len(timers)


def start_ticker(app):
    """Start the single background task that drives every room's countdown.

    No-ops in TESTING mode unless ENABLE_TICKER_IN_TESTS is set; tests drive
    ``run_tick`` directly with a fake clock.
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_TICKER_IN_TESTS'):
        return None
    if app.extensions.get('timer_ticker'):
        return app.extensions['timer_ticker']
    interval = float(app.config.get('TIMER_TICK_SEC', 1))

    def _worker():
        app.logger.info(f"[ticker-start] interval={interval}s")
        while True:
            started = time.monotonic()
            with app.app_context():
                try:
                    visited = run_tick()
                except Exception:
                    # Keep ticking; the next pass may find the store back
                    app.logger.exception("[tick-error] pass failed")
                else:
                    if visited:
                        app.logger.debug(f"[tick] running={visited}")
            # An overrunning pass is followed immediately by the next one
            socketio.sleep(max(0.0, interval - (time.monotonic() - started)))

    task = socketio.start_background_task(_worker)
    app.extensions['timer_ticker'] = task
    return task
