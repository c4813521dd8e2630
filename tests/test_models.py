# tests/test_models.py
import unittest
from datetime import date
from decimal import Decimal

from walletwise.export import format_currency, transactions_to_csv
from walletwise.errors import EmptyExportError
from walletwise.models import (
    FinancialGoal,
    Page,
    Transaction,
    TransactionKind,
    money_problem,
    parse_date,
    to_decimal,
)


class GoalProgressTests(unittest.TestCase):
    def goal(self, current, target):
        return FinancialGoal(id="g1", user_id="user-1", name="Férias",
                             target_amount=Decimal(target), current_amount=Decimal(current))

    def test_quarter_done(self):
        self.assertEqual(self.goal("50", "200").to_dict()["progress"], 25.0)

    def test_progress_is_not_clamped(self):
        self.assertEqual(self.goal("250", "200").to_dict()["progress"], 125.0)

    def test_zero_target(self):
        self.assertEqual(self.goal("10", "0").progress, Decimal("0"))


class ParsingTests(unittest.TestCase):
    def test_amounts(self):
        self.assertEqual(to_decimal("12.50"), Decimal("12.50"))
        self.assertEqual(to_decimal("1.234,56"), Decimal("1234.56"))
        self.assertEqual(to_decimal("€ 12,5"), Decimal("12.5"))
        self.assertEqual(to_decimal(3), Decimal("3"))
        self.assertEqual(to_decimal(650.5), Decimal("650.5"))
        self.assertEqual(to_decimal("1,234.50"), Decimal("1234.50"))
        self.assertEqual(to_decimal("-3"), Decimal("-3"))
        for bad in (None, "", "abc", float("nan"), True, "1e3", "12abc", "1e+16", "1-2", "12..5"):
            with self.assertRaises(ValueError):
                to_decimal(bad)

    def test_large_floats_keep_their_magnitude(self):
        self.assertEqual(to_decimal(1e16), Decimal("1E+16"))

    def test_money_column_limits(self):
        self.assertIsNone(money_problem(Decimal("12.50")))
        self.assertIsNone(money_problem(Decimal("9999999999.99")))
        self.assertEqual(money_problem(Decimal("12.345")), "Amount cannot have more than 2 decimal places")
        self.assertEqual(money_problem(Decimal("10000000000")), "Amount is too large")
        self.assertEqual(money_problem(Decimal("1E+16"), "Target amount"), "Target amount is too large")

    def test_dates(self):
        self.assertEqual(parse_date("2024-03-01"), date(2024, 3, 1))
        self.assertEqual(parse_date("01/03/2024"), date(2024, 3, 1))
        self.assertEqual(parse_date("2024-03-01T10:00:00Z"), date(2024, 3, 1))
        self.assertIsNone(parse_date("yesterday"))

    def test_kind(self):
        self.assertIs(TransactionKind.parse("Income"), TransactionKind.INCOME)
        self.assertIsNone(TransactionKind.parse("transfer"))

    def test_row_round_trip_keeps_cents(self):
        row = {"id": "t1", "user_id": "user-1", "description": "Renda", "amount": "650.5",
               "type": "expense", "category": "Habitação", "date": "2024-03-01"}
        t = Transaction.from_row(row)
        self.assertEqual(t.to_dict()["amount"], "650.50")
        self.assertEqual(t.to_record()["amount"], "650.5")

    def test_page_count(self):
        self.assertEqual(Page(total=11, page_size=5).page_count, 3)
        self.assertEqual(Page(total=0, page_size=5).page_count, 0)


class ExportTests(unittest.TestCase):
    def test_empty_export_is_refused(self):
        with self.assertRaises(EmptyExportError):
            transactions_to_csv([])

    def test_portuguese_rows(self):
        t = Transaction(id="t1", user_id="user-1", description="Salário", amount=Decimal("1234.5"),
                        kind=TransactionKind.INCOME, category="Outros", date=date(2024, 3, 1))
        lines = transactions_to_csv([t]).splitlines()
        self.assertEqual(lines[0], "Data,Descrição,Categoria,Tipo,Valor")
        self.assertEqual(lines[1], '01/03/2024,Salário,Outros,Receita,"1.234,50 €"')

    def test_currency_formats(self):
        self.assertEqual(format_currency(Decimal("1234.5"), "EUR", "pt"), "1.234,50 €")
        self.assertEqual(format_currency(Decimal("1234.5"), "USD", "en"), "$1,234.50")
        self.assertEqual(format_currency(Decimal("-3"), "EUR", "en"), "-3.00 €")


if __name__ == "__main__":
    unittest.main()
