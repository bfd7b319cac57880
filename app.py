import atexit
import logging

from flask import Flask, jsonify, redirect, url_for

from config import Config
from controllers.roster import RosterRegistry
from utils.db import init_db_connection
from utils.errors import RosterError

# Import controllers
from controllers.attendance_controller import attendance_bp
from controllers.mass_controller import mass_bp
from controllers.tusbha_controller import tusbha_bp
from controllers.children_controller import children_bp


def configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)


def create_app(config_object=None, database=None):
    app = Flask(__name__)                           # Initialize Flask app
    app.config.from_object(config_object or Config)  # Load configuration from Config class
    configure_logging(app)

    if database is None:
        database = init_db_connection(app).db       # Initialize MongoDB connection

    registry = RosterRegistry(database, app.config)
    app.extensions["rosters"] = registry
    # Last coalesced edits go out before the process exits
    atexit.register(registry.close_all)

    # Register Blueprint
    app.register_blueprint(attendance_bp)
    app.register_blueprint(mass_bp)
    app.register_blueprint(tusbha_bp)
    app.register_blueprint(children_bp)

    # Every store, parse and validation failure ends here as one message
    @app.errorhandler(RosterError)
    def handle_roster_error(error):
        if error.status_code >= 500:
            app.logger.error("%s: %s", type(error).__name__, error.detail or error.message)
        else:
            app.logger.info("%s: %s", type(error).__name__, error.detail or error.message)

        body = {"success": False, "message": error.message}
        partial = getattr(error, "partial", None)
        if partial is not None:
            body["added"] = partial.added
        return jsonify(body), error.status_code

    @app.route("/")
    def index():
        return redirect(url_for("attendance.list_rows", stage="angels"))

    app.logger.info("Roster app ready")
    return app


# Run the app
if __name__ == "__main__":
    create_app().run(debug=Config.DEBUG)
