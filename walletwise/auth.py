# walletwise/auth.py
import logging
import re
import time
from enum import Enum

import httpx
from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required
from supabase_auth.errors import AuthRetryableError

from .db import bearer_token, get_auth_client
from .errors import ValidationError, WalletWiseError
from .repository import ProfileStore

logger = logging.getLogger("walletwise")

auth_bp = Blueprint("auth", __name__)

SPECIAL_CHARS = r'[!@#$%^&*(),.?":{}|<>]'
MIN_PASSWORD_LENGTH = 6


# ---------------- Validation ----------------
def password_problems(password, confirm_password=None):
    """Strength and match checks run before any network call"""
    problems = []
    password = password or ""
    if len(password) < MIN_PASSWORD_LENGTH:
        problems.append(f"Password must have at least {MIN_PASSWORD_LENGTH} characters")
    if not re.search(r"\d", password):
        problems.append("Password must contain a number")
    if not re.search(SPECIAL_CHARS, password):
        problems.append("Password must contain a special character")
    if not re.search(r"[A-Z]", password):
        problems.append("Password must contain an uppercase letter")
    if confirm_password is not None and password != confirm_password:
        problems.append("Passwords do not match")
    return problems


# ---------------- Failures ----------------
class AuthFailureReason(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    NETWORK = "network"
    UNKNOWN = "unknown"


STATUS_BY_REASON = {
    AuthFailureReason.INVALID_CREDENTIALS: 401,
    AuthFailureReason.EMAIL_NOT_CONFIRMED: 403,
    AuthFailureReason.NETWORK: 503,
    AuthFailureReason.UNKNOWN: 400,
}


class AuthFailure(WalletWiseError):
    def __init__(self, reason, message):
        super().__init__(message)
        self.reason = reason
        self.status_code = STATUS_BY_REASON[reason]

    def to_dict(self):
        payload = super().to_dict()
        payload["reason"] = self.reason.value
        return payload


def is_network_error(exc):
    return isinstance(exc, (httpx.TransportError, AuthRetryableError))


def classify(exc):
    """Map an auth collaborator exception to a typed failure"""
    if is_network_error(exc):
        return AuthFailure(AuthFailureReason.NETWORK,
                           "Could not reach the authentication service. Please try again.")
    text = str(getattr(exc, "message", None) or exc)
    if "Invalid login credentials" in text:
        return AuthFailure(AuthFailureReason.INVALID_CREDENTIALS,
                           "Incorrect email or password. Please check your details and try again.")
    if "Email not confirmed" in text:
        return AuthFailure(AuthFailureReason.EMAIL_NOT_CONFIRMED,
                           "Please confirm your email before logging in. Check your inbox.")
    return AuthFailure(AuthFailureReason.UNKNOWN, text or "Something went wrong. Please try again.")


# ---------------- Gateway ----------------
class AuthGateway:
    """Auth collaborator calls; only sign-in and sign-up are retried"""

    def __init__(self, client, max_retries=3, retry_delay=1.0, sleep=time.sleep):
        self.client = client
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.sleep = sleep

    def _with_retry(self, action, call):
        attempt = 0
        while True:
            attempt += 1
            try:
                logger.info(f"{action} attempt {attempt}/{self.max_retries}")
                return call()
            except Exception as e:
                if is_network_error(e) and attempt < self.max_retries:
                    logger.warning(f"{action} attempt {attempt} hit a network error: {e}")
                    self.sleep(self.retry_delay)
                    continue
                logger.error(f"{action} failed after {attempt} attempt(s): {e}")
                raise classify(e) from e

    def _once(self, action, call):
        try:
            return call()
        except Exception as e:
            logger.error(f"{action} failed: {e}")
            raise classify(e) from e

    def sign_in(self, email, password):
        return self._with_retry(
            "Sign-in",
            lambda: self.client.auth.sign_in_with_password({"email": email, "password": password}),
        )

    def sign_up(self, email, password, first_name, last_name, redirect_to=None):
        options = {"data": {"first_name": first_name, "last_name": last_name}}
        if redirect_to:
            options["email_redirect_to"] = redirect_to
        return self._with_retry(
            "Sign-up",
            lambda: self.client.auth.sign_up({"email": email, "password": password, "options": options}),
        )

    def sign_out(self, access_token):
        return self._once("Sign-out", lambda: self.client.auth.admin.sign_out(access_token))

    def get_user(self, access_token):
        response = self._once("Session lookup", lambda: self.client.auth.get_user(access_token))
        return response.user if response else None

    def request_password_reset(self, email, redirect_to=None):
        options = {"redirect_to": redirect_to} if redirect_to else {}
        return self._once(
            "Password reset request",
            lambda: self.client.auth.reset_password_for_email(email, options),
        )

    def update_password(self, access_token, refresh_token, password):
        def call():
            self.client.auth.set_session(access_token, refresh_token)
            self.client.auth.update_user({"password": password})
            self.client.auth.sign_out()
        return self._once("Password update", call)


def get_gateway():
    config = current_app.config
    return AuthGateway(
        get_auth_client(),
        max_retries=config.get("AUTH_MAX_RETRIES", 3),
        retry_delay=config.get("AUTH_RETRY_DELAY", 1.0),
    )


def user_to_dict(user):
    metadata = getattr(user, "user_metadata", None) or {}
    return {
        "id": str(user.id),
        "email": getattr(user, "email", None),
        "first_name": metadata.get("first_name"),
        "last_name": metadata.get("last_name"),
    }


def session_to_dict(session):
    return {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "expires_at": getattr(session, "expires_at", None),
    }


def _json_body():
    return request.get_json(silent=True) or {}


def _credentials(data):
    email = (data.get("email") or "").strip()
    password = data.get("password") or ""
    if not email or not password:
        raise ValidationError("Email and password are required")
    return email, password


# ---------------- Routes ----------------
@auth_bp.route("/register", methods=["POST"])
def register():
    data = _json_body()
    email = (data.get("email") or "").strip()
    password = data.get("password") or ""
    first_name = (data.get("first_name") or "").strip()
    last_name = (data.get("last_name") or "").strip()

    problems = []
    if not email:
        problems.append("Email is required")
    if not first_name or not last_name:
        problems.append("First and last name are required")
    problems += password_problems(password, data.get("confirm_password", ""))
    if problems:
        raise ValidationError("Validation failed", problems)

    gateway = get_gateway()
    redirect_to = current_app.config.get("SITE_URL")
    response = gateway.sign_up(email, password, first_name, last_name, redirect_to=redirect_to)
    user = getattr(response, "user", None)
    if user is None:
        raise AuthFailure(AuthFailureReason.UNKNOWN, "The account could not be created. Please try again.")

    payload = {"user": user_to_dict(user), "profile_created": True}
    try:
        ProfileStore(gateway.client, str(user.id)).create_default(
            first_name, last_name,
            language=current_app.config.get("DEFAULT_LANGUAGE"),
            currency=current_app.config.get("DEFAULT_CURRENCY"),
        )
        payload["message"] = "Account created. We sent you a confirmation email, please check your inbox."
        logger.info(f"✅ Account and profile created for {user.id}")
    except WalletWiseError as e:
        logger.error(f"Profile setup failed for new account {user.id}: {e.message}")
        payload["profile_created"] = False
        payload["warning"] = "The account was created but the profile setup failed. Please try logging in."
    return jsonify(payload), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    email, password = _credentials(_json_body())
    gateway = get_gateway()
    response = gateway.sign_in(email, password)
    session = getattr(response, "session", None)
    user = getattr(response, "user", None)
    if session is None or user is None:
        raise AuthFailure(AuthFailureReason.UNKNOWN, "Login did not return a session. Please try again.")

    try:
        gateway.client.postgrest.auth(session.access_token)
        ProfileStore(gateway.client, str(user.id)).record_login()
    except WalletWiseError as e:
        logger.warning(f"Could not record login metadata for {user.id}: {e.message}")

    payload = session_to_dict(session)
    payload["user"] = user_to_dict(user)
    return jsonify(payload)


@auth_bp.route("/logout", methods=["POST"])
@jwt_required()
def logout():
    get_gateway().sign_out(bearer_token())
    logger.info(f"User {get_jwt_identity()} signed out")
    return jsonify({"message": "Signed out"})


@auth_bp.route("/session", methods=["GET"])
@jwt_required()
def current_session():
    user = get_gateway().get_user(bearer_token())
    if user is None:
        raise AuthFailure(AuthFailureReason.UNKNOWN, "Invalid session")
    return jsonify({"user": user_to_dict(user)})


@auth_bp.route("/password-reset", methods=["POST"])
def password_reset():
    email = (_json_body().get("email") or "").strip()
    if not email:
        raise ValidationError("Email is required")
    redirect_to = current_app.config.get("SITE_URL")
    get_gateway().request_password_reset(email, redirect_to=redirect_to)
    return jsonify({"message": "Email sent. Check your inbox for the reset link."})


@auth_bp.route("/password", methods=["POST"])
@jwt_required()
def update_password():
    data = _json_body()
    password = data.get("password") or ""
    refresh_token = data.get("refresh_token") or ""
    problems = password_problems(password, data.get("confirm_password", ""))
    if not refresh_token:
        problems.append("Refresh token is required")
    if problems:
        raise ValidationError("Validation failed", problems)

    get_gateway().update_password(bearer_token(), refresh_token, password)
    logger.info(f"Password updated for {get_jwt_identity()}")
    return jsonify({"message": "Password updated. Please log in again."})
