# walletwise/app.py

import logging
import os

import click
from flask import Flask, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager

from .assistant import AssistantBridge, assistant_bp
from .auth import auth_bp
from .config import Config
from .errors import register_error_handlers
from .goals import goals_bp
from .models import CATEGORIES
from .profile import profile_bp
from .stats import TIME_RANGES
from .transactions import bp as transactions_bp

logger = logging.getLogger("walletwise")

SCHEMA_FILE = os.path.join(os.path.dirname(__file__), "schema.sql")


def _register_jwt_handlers(jwt):
    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({"error": "Authentication required", "details": [reason]}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({"error": "Invalid session", "details": [reason]}), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({"error": "Session expired, please log in again"}), 401


# ---------------- Flask App Factory ----------------
def create_app(config_overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    logging.basicConfig(level=app.config["LOG_LEVEL"])

    jwt = JWTManager(app)
    _register_jwt_handlers(jwt)

    origins = [o.strip() for o in app.config["CORS_ORIGINS"].split(",") if o.strip()]
    CORS(app, resources={r"/*": {"origins": origins}}, supports_credentials=True)

    register_error_handlers(app)
    app.extensions["walletwise.assistant"] = AssistantBridge.from_config(app.config)

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(transactions_bp)
    app.register_blueprint(goals_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(assistant_bp)

    @app.route("/")
    def root():
        return jsonify({"msg": "WalletWise API"})

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    @app.route("/categories")
    def categories():
        return jsonify({"categories": CATEGORIES, "time_ranges": TIME_RANGES})

    @app.cli.command("schema")
    def print_schema():
        """Print the table and row-level security SQL for the Supabase project."""
        with open(SCHEMA_FILE, encoding="utf-8") as f:
            click.echo(f.read())

    logger.info("WalletWise API initialized")
    return app


# ---------------- Run ----------------
# python -m walletwise.app  (or: flask --app walletwise run)
if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)), debug=app.config["DEBUG"])
