from flask import Blueprint, jsonify, request, current_app, send_from_directory, url_for
from sqlalchemy.exc import SQLAlchemyError

from hackroom import db
from hackroom.realtime import broadcast
from hackroom.services.errors import NotFoundError, ValidationError
from hackroom.services.files import delete_file, get_file, store_upload


files = Blueprint('files', __name__)


@files.route('/upload', methods=['POST'])
def upload_file():
    room_id = request.form.get('roomId')
    username = request.form.get('username')
    try:
        shared = store_upload(room_id, username, request.files.get('file'))
    except ValidationError as exc:
        return jsonify({'error': exc.message}), 400
    except (SQLAlchemyError, OSError):
        current_app.logger.exception(f"[file-upload-error] room={room_id}")
        return jsonify({'error': 'Failed to upload file'}), 500

    payload = shared.to_dict()
    # Emit live update to all clients in the room
    broadcast('file:added', payload, room_id)
    return jsonify({'message': 'File uploaded', 'file': payload}), 201


@files.route('/<int:file_id>/url', methods=['GET'])
def file_url(file_id):
    try:
        shared = get_file(file_id)
    except NotFoundError as exc:
        return jsonify({'error': exc.message}), 404
    return jsonify({'downloadUrl': url_for('files.download_file', file_id=shared.id)})


@files.route('/<int:file_id>/download', methods=['GET'])
def download_file(file_id):
    try:
        shared = get_file(file_id)
    except NotFoundError as exc:
        return jsonify({'error': exc.message}), 404
    return send_from_directory(
        current_app.config['UPLOAD_FOLDER'],
        shared.filename,
        as_attachment=True,
        download_name=shared.original_name,
        mimetype=shared.mimetype,
    )


@files.route('/<int:file_id>', methods=['DELETE'])
def remove_file(file_id):
    try:
        removed = delete_file(file_id)
    except NotFoundError as exc:
        return jsonify({'error': exc.message}), 404
    except (SQLAlchemyError, OSError):
        db.session.rollback()
        current_app.logger.exception(f"[file-delete-error] file={file_id}")
        return jsonify({'error': 'Error deleting file'}), 500

    broadcast('file:removed', {'fileId': removed['id']}, removed['roomId'])
    return jsonify({'message': 'File deleted'})
