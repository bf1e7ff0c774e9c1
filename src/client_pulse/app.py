import logging

from flask import Flask, jsonify
from sqlalchemy import text

from .config import Config
from .context import build_services, get_services
from .errors import register_error_handlers
from .extensions import SERVICES_KEY, cors, db, migrate
from .services import store_transaction
from .views.clients import clients_bp
from .views.logs import logs_bp
from .views.reminders import reminders_bp
from . import models  # noqa: F401  (registers tables before create_all)


def create_app(config_class=Config, clock=None, dispatcher=None):
    app = Flask(__name__)
    app.url_map.strict_slashes = False
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    db_url = app.config.get('SQLALCHEMY_DATABASE_URI')
    if db_url and db_url.startswith("postgres://"):
        app.config['SQLALCHEMY_DATABASE_URI'] = db_url.replace("postgres://", "postgresql://", 1)

    db.init_app(app)
    migrate.init_app(app, db)
    cors.init_app(app)
    register_error_handlers(app)

    app.register_blueprint(clients_bp, url_prefix='/api/clients')
    app.register_blueprint(reminders_bp, url_prefix='/api/reminders')
    app.register_blueprint(logs_bp, url_prefix='/api')

    # --- Health Check Routes ---
    @app.route('/')
    def api_root_health():
        return jsonify({"status": "healthy", "message": "ClientPulse API is running!"})

    @app.route('/api/db-health-check')
    def database_health_check():
        try:
            with store_transaction(get_services().lock) as session:
                session.execute(text('SELECT 1'))
            return jsonify({"status": "ok", "database": "connected"}), 200
        except Exception as e:
            app.logger.error(f"Database health check failed: {e}", exc_info=True)
            return jsonify({"status": "error", "database": "disconnected", "details": str(e)}), 500

    services = build_services(app.config, clock=clock, dispatcher=dispatcher)
    app.extensions[SERVICES_KEY] = services

    with app.app_context():
        db.create_all()
        services.dispatcher.verify()
        if app.config.get('SCHEDULER_ENABLED'):
            services.scheduler.start(app)

    return app
