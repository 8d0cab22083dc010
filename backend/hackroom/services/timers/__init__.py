"""Shared room countdown: state machine, persisted actions and the tick."""

from .actions import TIMER_ACTIONS, apply_timer_action, ensure_timer, get_timer, now_seconds
from .state import remaining_at

__all__ = [
    'TIMER_ACTIONS',
    'apply_timer_action',
    'ensure_timer',
    'get_timer',
    'now_seconds',
    'remaining_at',
]
