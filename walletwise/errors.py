# walletwise/errors.py
import logging

from flask import jsonify

logger = logging.getLogger("walletwise")


class WalletWiseError(Exception):
    status_code = 500

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details or []

    def to_dict(self):
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(WalletWiseError):
    """Bad input, caught before any network call"""
    status_code = 400


class NotFoundError(WalletWiseError):
    status_code = 404


class EmptyExportError(WalletWiseError):
    status_code = 404


class CollaboratorError(WalletWiseError):
    """A hosted service (database, auth) failed or answered garbage"""
    status_code = 502


def register_error_handlers(app):
    @app.errorhandler(WalletWiseError)
    def handle_walletwise_error(error):
        if error.status_code >= 500:
            logger.error(f"{type(error).__name__}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({"error": "Method not allowed"}), 405
