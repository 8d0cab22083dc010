from flask import Blueprint, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from hackroom import db
from hackroom.services.rooms import get_registry
from hackroom.services.rooms.content import room_files, room_has_history
from hackroom.services.timers import get_timer, now_seconds, remaining_at


rooms = Blueprint('rooms', __name__)


@rooms.route('/<string:room_id>/exists', methods=['GET'])
def room_exists(room_id):
    try:
        exists = get_registry().has_room(room_id) or room_has_history(room_id)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception(f"[room-exists-error] room={room_id}")
        return jsonify({'error': 'Error checking room existence'}), 500
    return jsonify({'exists': exists})


@rooms.route('/<string:room_id>/timer', methods=['GET'])
def room_timer(room_id):
    try:
        timer = get_timer(room_id)
        if not timer:
            return jsonify({'error': 'Timer not found'}), 404
        # Live value, same as what the tick broadcasts
        return jsonify(timer.to_dict(remaining_time=remaining_at(timer, now_seconds())))
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception(f"[room-timer-error] room={room_id}")
        return jsonify({'error': 'Error fetching timer'}), 500


@rooms.route('/<string:room_id>/files', methods=['GET'])
def list_room_files(room_id):
    try:
        return jsonify([f.to_dict() for f in room_files(room_id)])
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception(f"[room-files-error] room={room_id}")
        return jsonify({'error': 'Error fetching files'}), 500
