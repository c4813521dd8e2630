# walletwise/repository.py
"""
Table accessors for the hosted store.

Every read carries an explicit ``user_id`` equality filter on top of the
store's row-level security; nothing here queries across users.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .db import execute
from .errors import NotFoundError
from .models import (
    PROFILE_DEFAULTS,
    FinancialGoal,
    Page,
    Transaction,
    TransactionFilters,
    UserProfile,
)

logger = logging.getLogger("walletwise")


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def like_escape(text: str) -> str:
    """Make % and _ in user text match literally inside a LIKE pattern"""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class TransactionStore:
    TABLE = "transactions"
    # must not exceed the project's PostgREST max-rows (1000 by default)
    BATCH_SIZE = 1000

    def __init__(self, client, user_id: str):
        self.client = client
        self.user_id = user_id

    def _select(self, count=None):
        query = self.client.table(self.TABLE)
        query = query.select("*", count=count) if count else query.select("*")
        return query.eq("user_id", self.user_id)

    def _filtered(self, filters: TransactionFilters, count=None):
        query = (
            self._select(count)
            .gte("date", filters.start.isoformat())
            .lte("date", filters.end.isoformat())
        )
        if filters.category:
            query = query.eq("category", filters.category)
        if filters.search:
            query = query.ilike("description", f"%{like_escape(filters.search)}%")
        return query

    def list_page(self, filters: TransactionFilters, page: int = 0, page_size: int = 5) -> Page:
        """One page of matching transactions, newest first, with the exact total"""
        offset = page * page_size
        query = (
            self._filtered(filters, count="exact")
            .order("date", desc=True)
            .range(offset, offset + page_size - 1)
        )
        response = execute(query, "load transactions")
        items = [Transaction.from_row(r) for r in (response.data or [])]
        total = response.count if response.count is not None else len(items)
        return Page(items=items, total=total, page=page, page_size=page_size)

    def list_range(self, filters: TransactionFilters) -> List[Transaction]:
        return self._fetch_all(lambda: self._filtered(filters))

    def list_all(self) -> List[Transaction]:
        return self._fetch_all(self._select)

    def _fetch_all(self, make_query) -> List[Transaction]:
        """Read every matching row in BATCH_SIZE chunks, past the server's max-rows cap"""
        rows = []
        offset = 0
        while True:
            query = (
                make_query()
                .order("date", desc=True)
                .order("id")
                .range(offset, offset + self.BATCH_SIZE - 1)
            )
            batch = execute(query, "load transactions").data or []
            rows.extend(batch)
            if len(batch) < self.BATCH_SIZE:
                break
            offset += self.BATCH_SIZE
        return [Transaction.from_row(r) for r in rows]

    def get(self, tx_id: str) -> Transaction:
        query = self._select().eq("id", tx_id).limit(1)
        response = execute(query, "load transaction")
        if not response.data:
            raise NotFoundError("Transaction not found")
        return Transaction.from_row(response.data[0])

    def create(self, transaction: Transaction) -> Transaction:
        transaction.user_id = self.user_id
        query = self.client.table(self.TABLE).insert(transaction.to_record())
        response = execute(query, "create transaction")
        logger.info(f"Transaction created for user {self.user_id}")
        return Transaction.from_row(response.data[0]) if response.data else transaction

    def update(self, tx_id: str, transaction: Transaction) -> Transaction:
        record = transaction.to_record()
        record["updated_at"] = utcnow_iso()
        query = (
            self.client.table(self.TABLE)
            .update(record)
            .eq("id", tx_id)
            .eq("user_id", self.user_id)
        )
        response = execute(query, "update transaction")
        if not response.data:
            raise NotFoundError("Transaction not found")
        return Transaction.from_row(response.data[0])

    def delete(self, tx_id: str) -> None:
        query = (
            self.client.table(self.TABLE)
            .delete()
            .eq("id", tx_id)
            .eq("user_id", self.user_id)
        )
        response = execute(query, "delete transaction")
        if not response.data:
            raise NotFoundError("Transaction not found")
        logger.info(f"Transaction {tx_id} deleted for user {self.user_id}")


class GoalStore:
    TABLE = "financial_goals"

    def __init__(self, client, user_id: str):
        self.client = client
        self.user_id = user_id

    def list(self) -> List[FinancialGoal]:
        query = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("user_id", self.user_id)
            .order("created_at")
        )
        response = execute(query, "load goals")
        return [FinancialGoal.from_row(r) for r in (response.data or [])]

    def create(self, goal: FinancialGoal) -> FinancialGoal:
        goal.user_id = self.user_id
        response = execute(self.client.table(self.TABLE).insert(goal.to_record()), "create goal")
        return FinancialGoal.from_row(response.data[0]) if response.data else goal

    def update(self, goal_id: str, goal: FinancialGoal) -> FinancialGoal:
        goal.user_id = self.user_id
        record = goal.to_record()
        record["updated_at"] = utcnow_iso()
        query = (
            self.client.table(self.TABLE)
            .update(record)
            .eq("id", goal_id)
            .eq("user_id", self.user_id)
        )
        response = execute(query, "update goal")
        if not response.data:
            raise NotFoundError("Goal not found")
        return FinancialGoal.from_row(response.data[0])

    def delete(self, goal_id: str) -> None:
        query = (
            self.client.table(self.TABLE)
            .delete()
            .eq("id", goal_id)
            .eq("user_id", self.user_id)
        )
        response = execute(query, "delete goal")
        if not response.data:
            raise NotFoundError("Goal not found")


class ProfileStore:
    TABLE = "user_profiles"

    def __init__(self, client, user_id: str):
        self.client = client
        self.user_id = user_id

    def get(self) -> UserProfile:
        query = self.client.table(self.TABLE).select("*").eq("id", self.user_id).limit(1)
        response = execute(query, "load profile")
        if not response.data:
            raise NotFoundError("Profile not found")
        return UserProfile.from_row(response.data[0])

    def create_default(self, first_name: str, last_name: str, language: Optional[str] = None,
                       currency: Optional[str] = None) -> UserProfile:
        """Upsert the profile row written right after sign-up"""
        record: Dict[str, Any] = dict(PROFILE_DEFAULTS)
        record.update({
            "id": self.user_id,
            "first_name": first_name,
            "last_name": last_name,
            "updated_at": utcnow_iso(),
        })
        if language:
            record["language"] = language
        if currency:
            record["preferred_currency"] = currency
        response = execute(self.client.table(self.TABLE).upsert(record), "create profile")
        return UserProfile.from_row(response.data[0] if response.data else record)

    def update(self, changes: Dict[str, Any]) -> UserProfile:
        record = dict(changes)
        record["updated_at"] = utcnow_iso()
        query = self.client.table(self.TABLE).update(record).eq("id", self.user_id)
        response = execute(query, "update profile")
        if not response.data:
            raise NotFoundError("Profile not found")
        return UserProfile.from_row(response.data[0])

    def record_login(self) -> None:
        profile = self.get()
        self.update({
            "last_login": utcnow_iso(),
            "login_count": profile.login_count + 1,
        })
