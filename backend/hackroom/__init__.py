from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Live room membership is owned by the app instance, not module state
    from hackroom.services.rooms.registry import RoomRegistry
    flask_app.extensions['room_registry'] = RoomRegistry()

    @flask_app.route('/')
    def index():
        return jsonify({'message': 'Hackroom backend is running!'})

    # Import and register blueprints here
    from hackroom.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    from hackroom.api.files import files
    flask_app.register_blueprint(files, url_prefix='/api/files')

    # Register Socket.IO event handlers against the initialized socketio instance
    from hackroom.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database tables."""
        import hackroom.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            click.echo('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    # One background tick drives every room's countdown
    from hackroom.services.timers.ticker import start_ticker
    start_ticker(flask_app)

    return flask_app
