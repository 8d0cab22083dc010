from datetime import datetime, timezone

from hackroom import db

TIMER_PAUSED = 'paused'
TIMER_RUNNING = 'running'
TIMER_ENDED = 'ended'
TIMER_STATUSES = (TIMER_PAUSED, TIMER_RUNNING, TIMER_ENDED)

SYSTEM_USERNAME = 'System'


def utcnow():
    return datetime.now(timezone.utc)


def isoformat(value):
    """Serialize a datetime or epoch-seconds float as ISO-8601 UTC."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        value = datetime.fromtimestamp(value, tz=timezone.utc)
    elif value.tzinfo is None:
        # SQLite hands naive values back
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class Timer(db.Model):
    __tablename__ = 'timer'
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.String(128), unique=True, nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default=TIMER_PAUSED, index=True)
    # Checkpoint: seconds left as of start_time (or now, when not running)
    remaining_time = db.Column(db.Integer, nullable=False, default=0)
    start_time = db.Column(db.Float, nullable=True)  # epoch seconds, running only
    last_update_by = db.Column(db.String(128), nullable=True)
    updated_at = db.Column(db.Float, nullable=True)
    version = db.Column(db.Integer, nullable=False)
    log = db.relationship(
        'TimerLogEntry',
        back_populates='timer',
        order_by='TimerLogEntry.id',
        cascade='all, delete-orphan',
    )

    __mapper_args__ = {'version_id_col': version}

    def to_dict(self, remaining_time=None):
        return {
            'roomId': self.room_id,
            'status': self.status,
            'remainingTime': self.remaining_time if remaining_time is None else remaining_time,
            'startTime': isoformat(self.start_time),
            'lastUpdateBy': self.last_update_by,
            'log': [entry.to_dict() for entry in self.log],
        }


class TimerLogEntry(db.Model):
    __tablename__ = 'timer_log_entry'
    id = db.Column(db.Integer, primary_key=True)
    timer_id = db.Column(db.Integer, db.ForeignKey('timer.id'), nullable=False, index=True)
    action = db.Column(db.String(32), nullable=False)
    actor = db.Column(db.String(128), nullable=True)
    timestamp = db.Column(db.Float, nullable=False)
    timer = db.relationship('Timer', back_populates='log')

    def to_dict(self):
        return {
            'action': self.action,
            'actor': self.actor,
            'timestamp': isoformat(self.timestamp),
        }


class Message(db.Model):
    __tablename__ = 'message'
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.String(128), nullable=False, index=True)
    username = db.Column(db.String(64), nullable=False)
    message = db.Column(db.Text, nullable=False)
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'roomId': self.room_id,
            'username': self.username,
            'message': self.message,
            'timestamp': isoformat(self.timestamp),
        }


class Note(db.Model):
    __tablename__ = 'note'
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.String(128), nullable=False, index=True)
    username = db.Column(db.String(64), nullable=False)
    content = db.Column(db.Text, nullable=False)
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'roomId': self.room_id,
            'username': self.username,
            'content': self.content,
            'timestamp': isoformat(self.timestamp),
        }


class SharedFile(db.Model):
    __tablename__ = 'shared_file'
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.String(128), nullable=False, index=True)
    filename = db.Column(db.String(255), nullable=False, unique=True)
    original_name = db.Column(db.String(255), nullable=False)
    uploaded_by = db.Column(db.String(64), nullable=True)
    size = db.Column(db.Integer, nullable=True)
    mimetype = db.Column(db.String(128), nullable=True)
    upload_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'roomId': self.room_id,
            'filename': self.filename,
            'originalName': self.original_name,
            'uploadedBy': self.uploaded_by,
            'size': self.size,
            'mimetype': self.mimetype,
            'uploadDate': isoformat(self.upload_date),
        }
