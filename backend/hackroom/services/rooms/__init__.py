from flask import current_app

from .registry import Departure, RoomRegistry


def get_registry() -> RoomRegistry:
    return current_app.extensions['room_registry']


__all__ = ['Departure', 'RoomRegistry', 'get_registry']
