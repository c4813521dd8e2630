# walletwise/goals.py
import logging

from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from .db import get_db
from .errors import ValidationError
from .models import FinancialGoal, money_problem, to_decimal
from .repository import GoalStore

logger = logging.getLogger("walletwise")

goals_bp = Blueprint("goals", __name__, url_prefix="/goals")

GOAL_COLORS = [
    "bg-blue-500", "bg-green-500", "bg-yellow-500", "bg-red-500",
    "bg-purple-500", "bg-pink-500", "bg-indigo-500",
]


def goal_from_payload(data) -> FinancialGoal:
    errors = []
    name = (data.get("name") or "").strip()
    if not name:
        errors.append("Goal name is required")

    target = current = None
    try:
        target = to_decimal(data.get("target_amount"))
        if target <= 0:
            errors.append("Target amount must be positive")
        elif money_problem(target, "Target amount"):
            errors.append(money_problem(target, "Target amount"))
    except ValueError:
        errors.append("Invalid target amount")
    try:
        current = to_decimal(data.get("current_amount") or 0)
        if current < 0:
            errors.append("Current amount cannot be negative")
        elif money_problem(current, "Current amount"):
            errors.append(money_problem(current, "Current amount"))
    except ValueError:
        errors.append("Invalid current amount")

    color = (data.get("color") or GOAL_COLORS[0]).strip()
    if errors:
        raise ValidationError("Invalid goal", errors)
    return FinancialGoal(id=None, user_id=None, name=name, target_amount=target,
                         current_amount=current, color=color)


def current_store():
    return GoalStore(get_db(), get_jwt_identity())


@goals_bp.route("", methods=["GET"])
@jwt_required()
def get_goals():
    goals = current_store().list()
    logger.info(f"📋 Retrieved {len(goals)} goals for user {get_jwt_identity()}")
    return jsonify({"goals": [g.to_dict() for g in goals]})


@goals_bp.route("", methods=["POST"])
@jwt_required()
def create_goal():
    goal = current_store().create(goal_from_payload(request.get_json(silent=True) or {}))
    return jsonify({"message": "Goal created", "goal": goal.to_dict()}), 201


@goals_bp.route("/<goal_id>", methods=["PUT"])
@jwt_required()
def update_goal(goal_id):
    goal = current_store().update(goal_id, goal_from_payload(request.get_json(silent=True) or {}))
    return jsonify({"message": "Goal updated", "goal": goal.to_dict()})


@goals_bp.route("/<goal_id>", methods=["DELETE"])
@jwt_required()
def delete_goal(goal_id):
    current_store().delete(goal_id)
    logger.info(f"🗑️ Goal {goal_id} deleted for user {get_jwt_identity()}")
    return jsonify({"message": "Goal deleted", "deleted_goal_id": goal_id})
