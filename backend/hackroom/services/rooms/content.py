"""Persisted room content: chat, system notices, sticky notes, file metadata."""

from typing import List

from hackroom import db
from hackroom.models import SYSTEM_USERNAME, Message, Note, SharedFile, Timer
from hackroom.services.errors import ForbiddenError, NotFoundError, ValidationError


def room_has_history(room_id: str) -> bool:
    for model in (Message, SharedFile, Timer, Note):
        if db.session.query(model.query.filter_by(room_id=room_id).exists()).scalar():
            return True
    return False


def post_message(room_id: str, username: str, text: str) -> Message:
    if text is None:
        text = ''
    if not isinstance(text, str):
        raise ValidationError('Message must be text')
    text = text.strip()
    if not text:
        raise ValidationError('Message cannot be empty')
    if not username:
        raise ValidationError('username is required')
    message = Message(room_id=room_id, username=username, message=text)
    db.session.add(message)
    db.session.commit()
    return message


def post_system_message(room_id: str, text: str) -> Message:
    return post_message(room_id, SYSTEM_USERNAME, text)


def message_history(room_id: str, limit: int) -> List[Message]:
    """The latest ``limit`` messages, oldest first."""
    latest = (
        Message.query.filter_by(room_id=room_id)
        .order_by(Message.timestamp.desc(), Message.id.desc())
        .limit(limit)
        .all()
    )
    return list(reversed(latest))


def room_notes(room_id: str) -> List[Note]:
    return Note.query.filter_by(room_id=room_id).order_by(Note.timestamp.desc(), Note.id.desc()).all()


def add_note(room_id: str, username: str, content: str) -> Note:
    if content is None:
        content = ''
    if not isinstance(content, str):
        raise ValidationError('Note must be text')
    content = content.strip()
    if not content:
        raise ValidationError('Note cannot be empty')
    if not username:
        raise ValidationError('username is required')
    note = Note(room_id=room_id, username=username, content=content)
    db.session.add(note)
    db.session.commit()
    return note


def delete_note(room_id: str, note_id, username: str) -> int:
    try:
        note_id = int(note_id)
    except (TypeError, ValueError):
        raise NotFoundError('Note not found')
    note = Note.query.filter_by(id=note_id, room_id=room_id).first()
    if not note:
        raise NotFoundError('Note not found')
    if note.username != username:
        raise ForbiddenError('Only the author can delete this note')
    db.session.delete(note)
    db.session.commit()
    return note_id


def room_files(room_id: str) -> List[SharedFile]:
    return (
        SharedFile.query.filter_by(room_id=room_id)
        .order_by(SharedFile.upload_date.desc(), SharedFile.id.desc())
        .all()
    )
