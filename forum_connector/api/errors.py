"""Error handlers for the application."""
from flask import jsonify
from werkzeug.exceptions import HTTPException

from forum_connector.core.forum import (
    AccountExistsError,
    DirectoryError,
    IdentityNotFoundError,
    RegistrationError,
    SettingsError,
)


def register_error_handlers(app):
    """Register JSON error handlers with the Flask app."""

    @app.errorhandler(IdentityNotFoundError)
    def identity_not_found(error):
        return jsonify({"error": "Not Found", "message": str(error)}), 404

    @app.errorhandler(AccountExistsError)
    def account_exists(error):
        return jsonify({"error": "Conflict", "message": str(error)}), 409

    @app.errorhandler(RegistrationError)
    def registration_invalid(error):
        return jsonify({"error": "Bad Request", "message": str(error)}), 400

    @app.errorhandler(SettingsError)
    def not_configured(error):
        app.logger.error(f"Forum connector is not configured: {error}")
        return jsonify({"error": "Service Unavailable", "message": str(error)}), 503

    @app.errorhandler(DirectoryError)
    def directory_failure(error):
        app.logger.error(f"Forum directory failure: {error}", exc_info=True)
        return jsonify({"error": "Bad Gateway", "message": str(error)}), 502

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({"error": error.name, "message": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        app.logger.error(f"Unhandled exception: {error}", exc_info=True)
        return jsonify({"error": "Internal Server Error", "message": "An unexpected error occurred"}), 500
