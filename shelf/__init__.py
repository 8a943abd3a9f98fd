import logging

from flask import Flask, jsonify
from config import config
from shelf.extensions import db, migrate, csrf, login_manager, use_immediate_transactions


def create_app(config_name=None):
    if config_name is None:
        import os

        config_name = os.environ.get("FLASK_CONFIG", "default")

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    app.logger.setLevel(
        getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    )

    db.init_app(app)
    with app.app_context():
        if db.engine.dialect.name == "sqlite":
            use_immediate_transactions(db.engine)
    migrate.init_app(app, db)
    csrf.init_app(app)
    login_manager.init_app(app)

    # Import models so Alembic can detect them
    from shelf import models  # noqa: F401

    @login_manager.user_loader
    def load_user(user_id):
        from shelf.models.user import User

        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return (
            jsonify({"error": "unauthorized", "message": "Login required."}),
            401,
        )

    from shelf.routes import register_blueprints

    register_blueprints(app)

    from shelf.cli import register_commands

    register_commands(app)

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "not_found", "message": "Not found."}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return (
            jsonify({"error": "method_not_allowed", "message": "Method not allowed."}),
            405,
        )

    @app.errorhandler(500)
    def internal_error(e):
        app.logger.exception("Internal server error")
        return (
            jsonify({"error": "internal_error", "message": "Something went wrong."}),
            500,
        )

    return app
