# walletwise/stats.py
"""
Dashboard aggregation over a snapshot of a user's transactions.

Everything here is a pure function of its inputs: no store access, no
ambient "current user", and ``today`` is passed in (defaulting to the
wall clock) so results can be reproduced.
"""
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from .models import CategoryTotal, DashboardStats, Transaction, TransactionKind

ZERO = Decimal("0")


def month_bounds(today: date) -> Tuple[date, date, date]:
    """First day of this month, first and last day of the previous month"""
    first_of_month = today.replace(day=1)
    last_of_previous = first_of_month - timedelta(days=1)
    first_of_previous = last_of_previous.replace(day=1)
    return first_of_month, first_of_previous, last_of_previous


def _sum_kind(transactions: Iterable[Transaction], kind: TransactionKind) -> Decimal:
    return sum((t.amount for t in transactions if t.kind is kind), ZERO)


def signed_amount(transaction: Transaction) -> Decimal:
    if transaction.kind is TransactionKind.INCOME:
        return transaction.amount
    if transaction.kind is TransactionKind.EXPENSE:
        return -transaction.amount
    return ZERO


def summarize(transactions: Iterable[Transaction], today: Optional[date] = None) -> DashboardStats:
    """Compute balance plus current/previous month income and expenses.

    The balance runs over every transaction given, so callers that want a
    real running balance must pass the complete history. Transactions older
    than the previous month only count towards the balance.
    """
    today = today or date.today()
    transactions = list(transactions)
    first_of_month, first_of_previous, last_of_previous = month_bounds(today)

    current = [t for t in transactions if t.date and t.date >= first_of_month]
    previous = [
        t for t in transactions
        if t.date and first_of_previous <= t.date <= last_of_previous
    ]

    return DashboardStats(
        total_balance=sum((signed_amount(t) for t in transactions), ZERO),
        monthly_income=_sum_kind(current, TransactionKind.INCOME),
        monthly_expenses=_sum_kind(current, TransactionKind.EXPENSE),
        previous_month_income=_sum_kind(previous, TransactionKind.INCOME),
        previous_month_expenses=_sum_kind(previous, TransactionKind.EXPENSE),
    )


def expenses_by_category(transactions: Iterable[Transaction]) -> List[CategoryTotal]:
    """Sum expenses per category label, in order of first appearance"""
    totals: Dict[str, Decimal] = {}
    for t in transactions:
        if t.kind is not TransactionKind.EXPENSE:
            continue
        totals[t.category] = totals.get(t.category, ZERO) + t.amount
    return [CategoryTotal(category, total) for category, total in totals.items()]


def category_percentages(totals: List[CategoryTotal]) -> List[Dict[str, object]]:
    """Chart rows with each category's share of total expenses"""
    grand_total = sum((c.total for c in totals), ZERO)
    rows = []
    for c in totals:
        row = c.to_dict()
        if grand_total:
            row["percent"] = float((c.total / grand_total * 100).quantize(Decimal("0.01")))
        else:
            row["percent"] = 0.0
        rows.append(row)
    return rows


def time_range(name: str, today: Optional[date] = None) -> Tuple[date, date]:
    """Resolve a quick-filter name into an inclusive (start, end) date range"""
    today = today or date.today()
    if name == "today":
        return today, today
    if name == "week":
        # weeks start on Monday
        return today - timedelta(days=today.weekday()), today
    if name == "month":
        return today.replace(day=1), today
    if name == "year":
        return today.replace(month=1, day=1), today
    raise ValueError(f"unknown time range: {name}")


TIME_RANGES = ["today", "week", "month", "year"]
