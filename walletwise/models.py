# walletwise/models.py
# lightweight record classes (rows come from Supabase as plain dicts)
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional

CENTS = Decimal("0.01")

CATEGORIES = [
    "Alimentação",
    "Transportes",
    "Habitação",
    "Saúde",
    "Educação",
    "Lazer",
    "Outros",
]

DATE_FORMATS = ["%Y-%m-%d", "%d-%m-%Y", "%Y/%m/%d", "%d/%m/%Y"]


class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"

    @classmethod
    def parse(cls, value) -> Optional["TransactionKind"]:
        """Return the kind for a stored value, or None when it is not recognized"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


# plain digits or thousands groups, then an optional decimal part
AMOUNT_PATTERN = re.compile(r"-?(\d{1,3}([.,]\d{3})+|\d+)([.,]\d+)?")
CURRENCY_SYMBOLS = "€$£"

# NUMERIC(12, 2) columns
MAX_AMOUNT = Decimal("10000000000")


def to_decimal(value) -> Decimal:
    """Convert a JSON number/string to Decimal without float drift"""
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None or value == "":
        raise ValueError("amount is required")
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"invalid amount: {value}")
        result = Decimal(repr(value))
    else:
        text = str(value).strip().replace("R$", "").strip(CURRENCY_SYMBOLS + " \u00a0")
        if not AMOUNT_PATTERN.fullmatch(text):
            raise ValueError(f"invalid amount: {value}")
        # "1.234,56" and "12,5" are decimal-comma amounts
        if "," in text and text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
        try:
            result = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"invalid amount: {value}")
    if not result.is_finite():
        raise ValueError(f"invalid amount: {value}")
    return result


def money_problem(value: Decimal, label: str = "Amount") -> Optional[str]:
    """Why a value does not fit a money column, or None"""
    if abs(value) >= MAX_AMOUNT:
        return f"{label} is too large"
    if value != value.quantize(CENTS):
        return f"{label} cannot have more than 2 decimal places"
    return None


def parse_date(s) -> Optional[date]:
    """Try multiple date formats"""
    if not s:
        return None
    if isinstance(s, datetime):
        return s.date()
    if isinstance(s, date):
        return s
    s = str(s).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def money(value: Decimal) -> str:
    return str(value.quantize(CENTS))


@dataclass
class Transaction:
    id: Optional[str]
    user_id: Optional[str]
    description: str
    amount: Decimal
    kind: Optional[TransactionKind]
    category: str
    date: date
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Transaction":
        return cls(
            id=row.get("id"),
            user_id=row.get("user_id"),
            description=row.get("description") or "",
            amount=to_decimal(row.get("amount", 0)),
            kind=TransactionKind.parse(row.get("type")),
            category=row.get("category") or "",
            date=parse_date(row.get("date")),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def to_record(self) -> Dict[str, Any]:
        """Columns written to the transactions table"""
        record = {
            "description": self.description,
            "amount": str(self.amount),
            "type": self.kind.value,
            "category": self.category,
            "date": self.date.isoformat(),
        }
        if self.user_id:
            record["user_id"] = self.user_id
        return record

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "description": self.description,
            "amount": money(self.amount),
            "type": self.kind.value if self.kind else None,
            "category": self.category,
            "date": self.date.isoformat() if self.date else None,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class DashboardStats:
    total_balance: Decimal = Decimal("0")
    monthly_income: Decimal = Decimal("0")
    monthly_expenses: Decimal = Decimal("0")
    previous_month_income: Decimal = Decimal("0")
    previous_month_expenses: Decimal = Decimal("0")

    def to_dict(self) -> Dict[str, str]:
        return {
            "total_balance": money(self.total_balance),
            "monthly_income": money(self.monthly_income),
            "monthly_expenses": money(self.monthly_expenses),
            "previous_month_income": money(self.previous_month_income),
            "previous_month_expenses": money(self.previous_month_expenses),
        }


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    total: Decimal

    def to_dict(self) -> Dict[str, str]:
        return {"category": self.category, "total": money(self.total)}


@dataclass
class FinancialGoal:
    id: Optional[str]
    user_id: Optional[str]
    name: str
    target_amount: Decimal
    current_amount: Decimal = Decimal("0")
    color: str = "bg-blue-500"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "FinancialGoal":
        return cls(
            id=row.get("id"),
            user_id=row.get("user_id"),
            name=row.get("name") or "",
            target_amount=to_decimal(row.get("target_amount", 0)),
            current_amount=to_decimal(row.get("current_amount") or 0),
            color=row.get("color") or "bg-blue-500",
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    @property
    def progress(self) -> Decimal:
        """Percent complete, unclamped; 0 when the target is 0"""
        if self.target_amount == 0:
            return Decimal("0")
        return self.current_amount / self.target_amount * 100

    def to_record(self) -> Dict[str, Any]:
        record = {
            "name": self.name,
            "target_amount": str(self.target_amount),
            "current_amount": str(self.current_amount),
            "color": self.color,
        }
        if self.user_id:
            record["user_id"] = self.user_id
        return record

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "target_amount": money(self.target_amount),
            "current_amount": money(self.current_amount),
            "color": self.color,
            "progress": float(self.progress.quantize(Decimal("0.1"))),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


PROFILE_DEFAULTS = {
    "preferred_currency": "EUR",
    "theme": "light",
    "language": "pt",
    "email_notifications": True,
    "push_notifications": True,
}

PROFILE_FIELDS = [
    "first_name", "last_name", "avatar_url", "preferred_currency", "theme",
    "language", "email_notifications", "push_notifications", "monthly_budget",
]


@dataclass
class UserProfile:
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None
    preferred_currency: str = "EUR"
    theme: str = "light"
    language: str = "pt"
    email_notifications: bool = True
    push_notifications: bool = True
    monthly_budget: Optional[Decimal] = None
    last_login: Optional[str] = None
    login_count: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "UserProfile":
        budget = row.get("monthly_budget")
        return cls(
            id=row["id"],
            first_name=row.get("first_name"),
            last_name=row.get("last_name"),
            avatar_url=row.get("avatar_url"),
            preferred_currency=row.get("preferred_currency") or "EUR",
            theme=row.get("theme") or "light",
            language=row.get("language") or "pt",
            email_notifications=bool(row.get("email_notifications", True)),
            push_notifications=bool(row.get("push_notifications", True)),
            monthly_budget=to_decimal(budget) if budget is not None else None,
            last_login=row.get("last_login"),
            login_count=int(row.get("login_count") or 0),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "avatar_url": self.avatar_url,
            "preferred_currency": self.preferred_currency,
            "theme": self.theme,
            "language": self.language,
            "email_notifications": self.email_notifications,
            "push_notifications": self.push_notifications,
            "monthly_budget": money(self.monthly_budget) if self.monthly_budget is not None else None,
            "last_login": self.last_login,
            "login_count": self.login_count,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class TransactionFilters:
    start: date
    end: date
    category: Optional[str] = None
    search: Optional[str] = None


@dataclass
class Page:
    items: List[Transaction] = field(default_factory=list)
    total: int = 0
    page: int = 0
    page_size: int = 5

    @property
    def page_count(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transactions": [t.to_dict() for t in self.items],
            "total": self.total,
            "page": self.page,
            "page_size": self.page_size,
            "page_count": self.page_count,
        }
