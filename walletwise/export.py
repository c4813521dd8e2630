# walletwise/export.py
import csv
import io
from datetime import date
from decimal import Decimal
from typing import Iterable, List

from .errors import EmptyExportError
from .models import Transaction, TransactionKind

LABELS = {
    "pt": {
        "columns": ["Data", "Descrição", "Categoria", "Tipo", "Valor"],
        TransactionKind.INCOME: "Receita",
        TransactionKind.EXPENSE: "Despesa",
    },
    "en": {
        "columns": ["Date", "Description", "Category", "Type", "Value"],
        TransactionKind.INCOME: "Income",
        TransactionKind.EXPENSE: "Expense",
    },
}

CURRENCY_FORMATS = {
    "EUR": "{amount} €",
    "USD": "${amount}",
    "GBP": "£{amount}",
    "BRL": "R$ {amount}",
}


def format_currency(amount: Decimal, currency: str = "EUR", language: str = "pt") -> str:
    """Format amount with two decimals and the currency symbol, e.g. "1.234,56 €" """
    number = f"{abs(amount):,.2f}"
    if language == "pt":
        number = number.replace(",", " ").replace(".", ",").replace(" ", ".")
    currency_format = CURRENCY_FORMATS.get(currency, "{amount} " + currency)
    text = currency_format.format(amount=number)
    return f"-{text}" if amount < 0 else text


def export_filename(start: date) -> str:
    return f"transacoes_{start.isoformat()}.csv"


def transactions_to_csv(transactions: Iterable[Transaction], language: str = "pt",
                        currency: str = "EUR") -> str:
    """Render transactions as CSV text; an empty selection is refused"""
    transactions: List[Transaction] = list(transactions)
    if not transactions:
        raise EmptyExportError("No transactions to export in the selected period")

    labels = LABELS.get(language, LABELS["en"])
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(labels["columns"])
    for t in transactions:
        writer.writerow([
            t.date.strftime("%d/%m/%Y") if t.date else "",
            t.description,
            t.category,
            labels.get(t.kind, ""),
            format_currency(t.amount, currency, language),
        ])
    return output.getvalue()
