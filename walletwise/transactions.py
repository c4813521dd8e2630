# walletwise/transactions.py

import logging
from datetime import date

from flask import Blueprint, Response, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from .db import get_db
from .errors import ValidationError
from .export import export_filename, transactions_to_csv
from .models import (
    Transaction,
    TransactionFilters,
    TransactionKind,
    money_problem,
    parse_date,
    to_decimal,
)
from .repository import TransactionStore
from .stats import category_percentages, expenses_by_category, summarize, time_range

logger = logging.getLogger("walletwise")

bp = Blueprint("transactions", __name__, url_prefix="/transactions")

MAX_DESCRIPTION_LENGTH = 1000


def current_store():
    return TransactionStore(get_db(), get_jwt_identity())


def transaction_from_payload(data):
    """Validate a create/update body; unknown types are rejected here"""
    errors = []

    description = (data.get("description") or "").strip()[:MAX_DESCRIPTION_LENGTH]
    if not description:
        errors.append("Description is required")

    amount = None
    try:
        amount = to_decimal(data.get("amount"))
        if amount < 0:
            errors.append("Amount cannot be negative")
        elif money_problem(amount):
            errors.append(money_problem(amount))
    except ValueError:
        errors.append("Invalid amount format")

    kind = TransactionKind.parse(data.get("type"))
    if kind is None:
        errors.append("Type must be 'income' or 'expense'")

    category = (data.get("category") or "").strip()
    if not category:
        errors.append("Category is required")

    tx_date = parse_date(data.get("date"))
    if tx_date is None:
        errors.append("Invalid or missing date")

    if errors:
        raise ValidationError("Invalid transaction", errors)
    return Transaction(
        id=None,
        user_id=None,
        description=description,
        amount=amount,
        kind=kind,
        category=category,
        date=tx_date,
    )


def _date_arg(args, name, default):
    raw = args.get(name)
    if not raw:
        return default
    value = parse_date(raw)
    if value is None:
        raise ValidationError(f"Invalid date for '{name}': {raw}")
    return value


def filters_from_args(args, today=None):
    """Date range (default: this month so far), category and search from the query string"""
    today = today or date.today()
    range_name = args.get("range")
    if range_name:
        try:
            start, end = time_range(range_name, today)
        except ValueError as e:
            raise ValidationError(str(e))
    else:
        start = _date_arg(args, "start", today.replace(day=1))
        end = _date_arg(args, "end", today)
    if start > end:
        raise ValidationError("Start date must not be after end date")

    category = (args.get("category") or "").strip()
    if category.lower() == "all":
        category = ""
    search = (args.get("search") or "").strip()
    return TransactionFilters(start=start, end=end, category=category or None, search=search or None)


def _int_arg(args, name, default, minimum, maximum=None):
    try:
        value = int(args.get(name, default))
    except (TypeError, ValueError):
        raise ValidationError(f"'{name}' must be an integer")
    if value < minimum or (maximum is not None and value > maximum):
        raise ValidationError(f"'{name}' is out of range")
    return value


# ---------------- Listing ----------------
@bp.route("", methods=["GET"])
@jwt_required()
def list_transactions():
    filters = filters_from_args(request.args)
    page = _int_arg(request.args, "page", 0, 0)
    page_size = _int_arg(
        request.args, "page_size", current_app.config["PAGE_SIZE"], 1, current_app.config["MAX_PAGE_SIZE"]
    )
    result = current_store().list_page(filters, page, page_size)
    payload = result.to_dict()
    payload["filters"] = {
        "start": filters.start.isoformat(),
        "end": filters.end.isoformat(),
        "category": filters.category,
        "search": filters.search,
    }
    return jsonify(payload)


# ---------------- Writes ----------------
@bp.route("", methods=["POST"])
@jwt_required()
def add_transaction():
    transaction = transaction_from_payload(request.get_json(silent=True) or {})
    created = current_store().create(transaction)
    return jsonify({"message": "Transaction created", "transaction": created.to_dict()}), 201


@bp.route("/<tx_id>", methods=["GET"])
@jwt_required()
def get_transaction(tx_id):
    return jsonify({"transaction": current_store().get(tx_id).to_dict()})


@bp.route("/<tx_id>", methods=["PUT"])
@jwt_required()
def update_transaction(tx_id):
    transaction = transaction_from_payload(request.get_json(silent=True) or {})
    updated = current_store().update(tx_id, transaction)
    return jsonify({"message": "Transaction updated", "transaction": updated.to_dict()})


@bp.route("/<tx_id>", methods=["DELETE"])
@jwt_required()
def delete_transaction(tx_id):
    current_store().delete(tx_id)
    return jsonify({"message": "Transaction removed", "deleted_id": tx_id})


# ---------------- Reports ----------------
@bp.route("/stats", methods=["GET"])
@jwt_required()
def dashboard_stats():
    today = _date_arg(request.args, "today", date.today())
    # balance needs the full history, not just the last two months
    transactions = current_store().list_all()
    stats = summarize(transactions, today)
    logger.info(f"📊 Stats computed over {len(transactions)} transactions for {get_jwt_identity()}")
    return jsonify({"stats": stats.to_dict(), "transaction_count": len(transactions)})


@bp.route("/categories", methods=["GET"])
@jwt_required()
def category_breakdown():
    filters = filters_from_args(request.args)
    totals = expenses_by_category(current_store().list_range(filters))
    return jsonify({"by_category": category_percentages(totals)})


@bp.route("/export", methods=["GET"])
@jwt_required()
def export_transactions():
    filters = filters_from_args(request.args)
    language = request.args.get("lang") or current_app.config["DEFAULT_LANGUAGE"]
    currency = request.args.get("currency") or current_app.config["DEFAULT_CURRENCY"]
    transactions = current_store().list_range(filters)
    content = transactions_to_csv(transactions, language=language, currency=currency)
    logger.info(f"Exported {len(transactions)} transactions for {get_jwt_identity()}")
    return Response(
        content,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(filters.start)}"'},
    )


@bp.route("/time-ranges/<name>", methods=["GET"])
def resolve_time_range(name):
    try:
        start, end = time_range(name)
    except ValueError as e:
        raise ValidationError(str(e))
    return jsonify({"range": name, "start": start.isoformat(), "end": end.isoformat()})
