import pytz
from flask import Flask
from bathroom_scheduler.config import DevelopmentConfig
from bathroom_scheduler.extensions import db, migrate

def create_app(config_class=DevelopmentConfig):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Fail at startup on an unknown zone rather than on the first date query
    pytz.timezone(app.config['BOOKING_TIMEZONE'])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Models must be imported before create_all / migrations see the metadata
    from bathroom_scheduler import models  # noqa: F401

    # Register Blueprints
    from bathroom_scheduler.api.routes.auth import auth_bp
    from bathroom_scheduler.api.routes.bookings import bookings_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(bookings_bp, url_prefix='/api/bookings')

    from bathroom_scheduler.cli import register_commands
    register_commands(app)

    @app.route('/health')
    def health():
        return {"status": "ok", "app": "BathroomScheduler"}

    return app
