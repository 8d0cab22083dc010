import os
import time
from typing import Optional

from flask import current_app
from werkzeug.utils import secure_filename

from hackroom import db
from hackroom.models import SharedFile
from hackroom.services.errors import NotFoundError, ValidationError


def upload_folder() -> str:
    folder = current_app.config['UPLOAD_FOLDER']
    os.makedirs(folder, exist_ok=True)
    return folder


def store_upload(room_id: str, username: Optional[str], upload) -> SharedFile:
    """Write an uploaded ``FileStorage`` to disk and record its metadata."""
    if not room_id:
        raise ValidationError('roomId is required')
    if upload is None or not upload.filename:
        raise ValidationError('No file provided')
    safe_name = secure_filename(upload.filename) or 'upload'
    stored_name = f"{int(time.time() * 1000)}-{safe_name}"
    path = os.path.join(upload_folder(), stored_name)
    upload.save(path)

    shared = SharedFile(
        room_id=room_id,
        filename=stored_name,
        original_name=upload.filename,
        uploaded_by=username,
        size=os.path.getsize(path),
        mimetype=upload.mimetype,
    )
    db.session.add(shared)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        os.remove(path)
        raise
    current_app.logger.info(f"[file-upload] room={room_id} file={stored_name} by={username}")
    return shared


def get_file(file_id: int) -> SharedFile:
    shared = db.session.get(SharedFile, file_id)
    if not shared:
        raise NotFoundError('File not found')
    return shared


def delete_file(file_id: int) -> dict:
    """Remove the stored bytes and the row; returns the metadata as it was."""
    shared = get_file(file_id)
    snapshot = shared.to_dict()
    try:
        os.remove(os.path.join(current_app.config['UPLOAD_FOLDER'], shared.filename))
    except FileNotFoundError:
        current_app.logger.warning(f"[file-missing] file={shared.filename} already gone from disk")
    db.session.delete(shared)
    db.session.commit()
    current_app.logger.info(f"[file-delete] room={snapshot['roomId']} file={snapshot['filename']}")
    return snapshot
