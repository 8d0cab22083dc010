import functools

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room
from sqlalchemy.exc import SQLAlchemyError

from hackroom import db, socketio
from hackroom.realtime import NAMESPACE, broadcast, broadcast_timer, room_channel
from hackroom.services.errors import RoomError, UsernameTakenError, ValidationError
from hackroom.services.files import get_file
from hackroom.services.rooms import get_registry
from hackroom.services.rooms.content import (
    add_note,
    delete_note,
    message_history,
    post_message,
    post_system_message,
    room_files,
    room_has_history,
    room_notes,
)
from hackroom.services.timers import apply_timer_action, ensure_timer, now_seconds, remaining_at


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _room_id(data) -> str:
    room_id = str(data.get('roomId') or '').strip()
    if not room_id:
        raise ValidationError('roomId is required')
    return room_id


def _username(data, room_id: str) -> str:
    """Registry name for this connection, else whatever the client sent."""
    name = get_registry().name_for(room_id, _get_sid()) or str(data.get('username') or '').strip()
    if not name:
        raise ValidationError('username is required')
    return name


def _actor(room_id: str) -> str:
    return get_registry().name_for(room_id, _get_sid()) or _get_sid()


def _reports_errors(error_event: str, failure_message: str):
    """Send failures back to the originating socket as ``error_event``."""
    def decorator(handler):
        @functools.wraps(handler)
        def wrapper(data=None):
            if data is not None and not isinstance(data, dict):
                emit(error_event, {'error': 'Invalid payload'})
                return None
            try:
                return handler(data or {})
            except RoomError as exc:
                emit(error_event, {'error': exc.message})
            except SQLAlchemyError:
                db.session.rollback()
                current_app.logger.exception(f"[{error_event}] sid={_get_sid()}")
                emit(error_event, {'error': failure_message})
        return wrapper
    return decorator


def handle_connect():
    emit('connected', {'sid': _get_sid()})


def handle_disconnect(reason=None):
    for departure in get_registry().disconnect(_get_sid()):
        current_app.logger.info(f"[disconnect] room={departure.room_id} user={departure.username}")
        if departure.room_empty:
            continue
        try:
            notice = post_system_message(departure.room_id, f"{departure.username} has disconnected")
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception(f"[disconnect-error] room={departure.room_id}")
            continue
        broadcast('message', notice.to_dict(), departure.room_id)


def handle_username_check(data=None):
    data = data if isinstance(data, dict) else {}
    room_id = str(data.get('roomId') or '').strip()
    username = str(data.get('username') or '').strip()
    valid = bool(room_id) and get_registry().check_username(room_id, username)
    if valid:
        message = ''
    elif not room_id or not username:
        message = 'Room and username are required'
    else:
        message = 'Username is already taken in this room'
    emit('username:response', {'valid': valid, 'message': message})


@_reports_errors('joinRoom:error', 'Failed to join room')
def handle_join_room(data):
    room_id = _room_id(data)
    username = str(data.get('username') or '').strip()
    if not username:
        raise ValidationError('username is required')

    registry = get_registry()
    sid = _get_sid()
    is_new_room = not registry.has_room(room_id) and not room_has_history(room_id)
    previous = registry.name_for(room_id, sid)
    if not registry.join(room_id, sid, username):
        # Same connection, same name: already in
        return

    channel = room_channel(room_id)
    join_room(channel)
    try:
        timer = ensure_timer(room_id, username)
        emit('room:joined', {'roomId': room_id, 'username': username, 'isNewRoom': is_new_room})
        limit = int(current_app.config.get('MESSAGE_HISTORY_LIMIT', 100))
        emit('message:history', [m.to_dict() for m in message_history(room_id, limit)])
        emit('notes:history', [n.to_dict() for n in room_notes(room_id)])
        emit('timer:update', timer.to_dict(remaining_time=remaining_at(timer, now_seconds())))
        emit('files:list', [f.to_dict() for f in room_files(room_id)])
        if previous:
            notice = post_system_message(room_id, f"{previous} is now known as {username}")
        else:
            notice = post_system_message(room_id, f"{username} has joined the room")
    except SQLAlchemyError:
        registry.leave(room_id, sid)
        if previous:
            # Put the connection back under the name it had
            try:
                registry.join(room_id, sid, previous)
            except UsernameTakenError:
                leave_room(channel)
        else:
            leave_room(channel)
        raise
    if previous:
        current_app.logger.info(f"[rename] room={room_id} from={previous} to={username}")
    else:
        current_app.logger.info(f"[join] room={room_id} user={username} new={is_new_room}")
    broadcast('message', notice.to_dict(), room_id)


@_reports_errors('leaveRoom:error', 'Failed to leave room')
def handle_leave_room(data):
    room_id = _room_id(data)
    departure = get_registry().leave(room_id, _get_sid())
    leave_room(room_channel(room_id))
    emit('room:left', {'roomId': room_id})
    if not departure:
        return
    current_app.logger.info(f"[leave] room={room_id} user={departure.username}")
    if not departure.room_empty:
        notice = post_system_message(room_id, f"{departure.username} has left the room")
        broadcast('message', notice.to_dict(), room_id)


@_reports_errors('message:error', 'Failed to save message')
def handle_message(data):
    room_id = _room_id(data)
    message = post_message(room_id, _username(data, room_id), data.get('message'))
    broadcast('message', message.to_dict(), room_id)


def _run_timer_action(data, action: str, **params) -> None:
    room_id = _room_id(data)
    timer = apply_timer_action(room_id, action, _actor(room_id), **params)
    if timer:
        broadcast_timer(timer)


@_reports_errors('timer:error', 'Failed to update timer')
def handle_timer_set(data):
    _run_timer_action(data, 'set', total_seconds=data.get('totalSeconds'))


@_reports_errors('timer:error', 'Failed to update timer')
def handle_timer_start(data):
    _run_timer_action(data, 'start')


@_reports_errors('timer:error', 'Failed to update timer')
def handle_timer_pause(data):
    _run_timer_action(data, 'pause')


@_reports_errors('timer:error', 'Failed to update timer')
def handle_timer_resume(data):
    _run_timer_action(data, 'resume')


@_reports_errors('timer:error', 'Failed to update timer')
def handle_timer_reset(data):
    _run_timer_action(data, 'reset')


@_reports_errors('note:error', 'Failed to save note')
def handle_note_add(data):
    room_id = _room_id(data)
    note = add_note(room_id, _username(data, room_id), data.get('content'))
    broadcast('note:added', note.to_dict(), room_id)


@_reports_errors('note:error', 'Failed to delete note')
def handle_note_delete(data):
    room_id = _room_id(data)
    note_id = delete_note(room_id, data.get('noteId'), _username(data, room_id))
    broadcast('note:deleted', {'noteId': note_id}, room_id)


def _file_id(data) -> int:
    try:
        return int(data.get('fileId'))
    except (TypeError, ValueError):
        raise ValidationError('fileId is required')


@_reports_errors('file:error', 'Failed to send uploaded file')
def handle_file_uploaded(data):
    shared = get_file(_file_id(data))
    broadcast('file:added', shared.to_dict(), shared.room_id)


@_reports_errors('file:error', 'Failed to notify file deletion')
def handle_file_deleted(data):
    broadcast('file:removed', {'fileId': _file_id(data)}, _room_id(data))


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the '/ws' namespace."""
    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'username:check': handle_username_check,
        'joinRoom': handle_join_room,
        'leaveRoom': handle_leave_room,
        'message': handle_message,
        'timer:set': handle_timer_set,
        'timer:start': handle_timer_start,
        'timer:pause': handle_timer_pause,
        'timer:resume': handle_timer_resume,
        'timer:reset': handle_timer_reset,
        'note:add': handle_note_add,
        'note:delete': handle_note_delete,
        'file:uploaded': handle_file_uploaded,
        'file:deleted': handle_file_deleted,
        'ping': handle_ping,
    }
    for event, handler in handlers.items():
        socketio.on_event(event, handler, namespace=NAMESPACE)
