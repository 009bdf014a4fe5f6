# phonerelay/__init__.py
# -*- coding: utf-8 -*-
"""Main application package setup."""

import os
import logging
from flask import Flask, jsonify, abort, request

from .config import config
from .extensions import db, migrate, bcrypt, login_manager


def create_app(config_name=None, telephony_provider=None):
    """
    Create and configure an instance of the Flask application using the App Factory pattern.

    Args:
        config_name (str, optional): The name of the configuration to use ('development', 'testing', 'production').
                                     Defaults to FLASK_ENV environment variable or 'default'.
        telephony_provider (optional): Object with `place_call`, `send_message` and
                                       `system_sender`. Defaults to a TwilioProvider built
                                       from the TWILIO_* settings.

    Returns:
        Flask: The configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'default')
        if config_name not in config:
             print(f"WARNING: Invalid FLASK_ENV '{config_name}', defaulting to 'development'.")
             config_name = 'development'

    app = Flask(__name__)

    try:
        app.config.from_object(config[config_name])
        config[config_name].init_app(app)
        print(f"INFO: App created with configuration: '{config_name}'")
    except KeyError:
         print(f"ERROR: Configuration '{config_name}' not found. Check config.py.")
         raise ValueError(f"Invalid configuration name: {config_name}")

    # Initialize Flask extensions
    db.init_app(app)
    migrate.init_app(app, db)
    bcrypt.init_app(app)
    login_manager.init_app(app)

    log_level_name = app.config.get('LOG_LEVEL', 'INFO' if not app.debug else 'DEBUG').upper()
    log_level = getattr(logging, log_level_name, logging.INFO)
    app.logger.setLevel(log_level)
    for handler in app.logger.handlers:
         handler.setLevel(log_level)
    # Modules that log outside a request (dispatcher worker, provider client)
    logging.getLogger('phonerelay').setLevel(log_level)
    app.logger.info(f"Flask logger initialized with level: {log_level_name}")

    # --- Telephony provider and outbound dispatcher ---
    from .services.telephony_provider import TwilioProvider
    from .services.outbound_dispatcher import OutboundDispatcher

    if telephony_provider is None:
        telephony_provider = TwilioProvider.from_config(app.config)
        if telephony_provider.missing_credentials:
            app.logger.warning(
                f"Twilio credentials incomplete ({', '.join(telephony_provider.missing_credentials)}); "
                f"outbound calls and SMS will fail until configured."
            )
    app.extensions['telephony_provider'] = telephony_provider
    OutboundDispatcher(telephony_provider, app=app)

    # --- Register Blueprints ---
    from .api.routes.auth import auth_bp
    app.register_blueprint(auth_bp, url_prefix='/api/auth')

    # Provider callbacks (unauthenticated)
    from .api.routes.webhooks import webhooks_bp
    app.register_blueprint(webhooks_bp, url_prefix='/webhooks')

    from .api.routes.settings import settings_bp
    app.register_blueprint(settings_bp, url_prefix='/api/settings')
    from .api.routes.contacts import contacts_bp
    app.register_blueprint(contacts_bp, url_prefix='/api/contacts')
    from .api.routes.events import events_bp
    app.register_blueprint(events_bp, url_prefix='/api/events')
    from .api.routes.dashboard import dashboard_bp
    app.register_blueprint(dashboard_bp, url_prefix='/api/dashboard')

    # --- CLI commands ---
    from .cli import register_commands
    register_commands(app)

    # --- Basic Routes & Health Check ---
    @app.route('/health')
    def health_check():
        return {"status": "ok", "message": "Application is running."}, 200

    # --- Configure Flask-Login ---
    @login_manager.unauthorized_handler
    def unauthorized():
        """Handles unauthorized access attempts for @login_required routes."""
        app.logger.debug("Unauthorized access attempt caught by login_manager.")
        abort(401, description="Authentication required to access this resource.")

    # --- Global HTTP Error Handlers ---
    # Consistent JSON error bodies for abort() and unhandled HTTP exceptions.

    @app.errorhandler(400)
    def bad_request_error(error):
        app.logger.warning(f"Bad Request (400): {error.description}")
        return jsonify(message=error.description or "Bad request."), 400

    @app.errorhandler(401)
    def unauthorized_error(error):
        app.logger.warning(f"Unauthorized (401): {error.description}")
        return jsonify(message=error.description or "Unauthorized."), 401

    @app.errorhandler(403)
    def forbidden_error(error):
        app.logger.warning(f"Forbidden (403): {error.description}")
        return jsonify(message=error.description or "Forbidden."), 403

    @app.errorhandler(404)
    def not_found_error(error):
        app.logger.info(f"Not Found (404): {error.description} (Path: {request.path})")
        return jsonify(message=error.description or "Resource not found."), 404

    @app.errorhandler(409)
    def conflict_error(error):
        app.logger.warning(f"Conflict (409): {error.description}")
        return jsonify(message=error.description or "Conflict."), 409

    @app.errorhandler(500)
    def internal_error(error):
        original_exception = getattr(error, "original_exception", error)
        app.logger.error(f"Internal Server Error (500): {error.description}", exc_info=original_exception)
        try:
            db.session.rollback()
            app.logger.info("Rolled back database session due to 500 error.")
        except Exception as rb_err:
             app.logger.error(f"Error during automatic rollback after 500 error: {rb_err}", exc_info=True)
        return jsonify(message=error.description or "Internal server error."), 500

    # --- Shell Context Processor ---
    @app.shell_context_processor
    def make_shell_context():
        from .database import models
        from .services.outbound_dispatcher import get_dispatcher
        return {'db': db, 'models': models, 'dispatcher': get_dispatcher()}

    return app
