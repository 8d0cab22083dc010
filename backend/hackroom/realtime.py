from hackroom import socketio

NAMESPACE = '/ws'


def room_channel(room_id: str) -> str:
    return f"room:{room_id}"


def broadcast(event: str, payload, room_id: str) -> None:
    # socketio.emit works from HTTP routes and background tasks alike
    socketio.emit(event, payload, to=room_channel(room_id), namespace=NAMESPACE)


def broadcast_timer(timer, remaining_time=None) -> None:
    broadcast('timer:update', timer.to_dict(remaining_time=remaining_time), timer.room_id)
