# backend/justoo/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints (gateway: one parent blueprint per surface)
    from .routes.system import system_bp
    from .routes.admin import admin_surface_bp
    from .routes.customer import customer_surface_bp
    from .routes.inventory import inventory_surface_bp
    from .routes.rider import rider_surface_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(admin_surface_bp)
    app.register_blueprint(customer_surface_bp)
    app.register_blueprint(inventory_surface_bp)
    app.register_blueprint(rider_surface_bp)

    from .routes.system import register_error_handlers
    register_error_handlers(app)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config["CORS_ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
