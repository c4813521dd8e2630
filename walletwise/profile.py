# walletwise/profile.py
from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from .db import get_db
from .errors import ValidationError
from .models import PROFILE_FIELDS, money_problem, to_decimal
from .repository import ProfileStore

profile_bp = Blueprint("profile", __name__, url_prefix="/profile")

THEMES = ("light", "dark", "system")
BOOLEAN_FIELDS = ("email_notifications", "push_notifications")


def profile_changes(data):
    """Keep the editable fields only, with their types checked"""
    changes = {k: v for k, v in data.items() if k in PROFILE_FIELDS}
    errors = []
    if "theme" in changes and changes["theme"] not in THEMES:
        errors.append(f"Theme must be one of {', '.join(THEMES)}")
    for name in BOOLEAN_FIELDS:
        if name in changes and not isinstance(changes[name], bool):
            errors.append(f"'{name}' must be true or false")
    if "preferred_currency" in changes:
        currency = str(changes["preferred_currency"] or "").strip().upper()
        if len(currency) != 3:
            errors.append("Currency must be a 3-letter code")
        changes["preferred_currency"] = currency
    if changes.get("monthly_budget") is not None:
        try:
            budget = to_decimal(changes["monthly_budget"])
            if budget < 0:
                errors.append("Monthly budget cannot be negative")
            elif money_problem(budget, "Monthly budget"):
                errors.append(money_problem(budget, "Monthly budget"))
            changes["monthly_budget"] = str(budget)
        except ValueError:
            errors.append("Invalid monthly budget")
    if errors:
        raise ValidationError("Invalid profile", errors)
    if not changes:
        raise ValidationError("No profile fields to update")
    return changes


@profile_bp.route("", methods=["GET"])
@jwt_required()
def get_profile():
    profile = ProfileStore(get_db(), get_jwt_identity()).get()
    return jsonify({"profile": profile.to_dict()})


@profile_bp.route("", methods=["PUT"])
@jwt_required()
def update_profile():
    changes = profile_changes(request.get_json(silent=True) or {})
    profile = ProfileStore(get_db(), get_jwt_identity()).update(changes)
    return jsonify({"message": "Profile updated", "profile": profile.to_dict()})
