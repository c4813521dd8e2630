# tests/test_stats.py
import unittest
from datetime import date
from decimal import Decimal

from walletwise.models import Transaction, TransactionKind
from walletwise.stats import (
    category_percentages,
    expenses_by_category,
    month_bounds,
    summarize,
    time_range,
)

TODAY = date(2024, 3, 15)


def tx(kind, amount, when, category="Outros"):
    return Transaction(id=None, user_id="user-1", description="t", amount=Decimal(amount),
                       kind=kind, category=category, date=when)


INCOME, EXPENSE = TransactionKind.INCOME, TransactionKind.EXPENSE


class SummarizeTests(unittest.TestCase):
    def test_two_month_scenario(self):
        stats = summarize([
            tx(INCOME, "1000", date(2024, 3, 5)),
            tx(EXPENSE, "300", date(2024, 3, 6)),
            tx(INCOME, "900", date(2024, 2, 10)),
            tx(EXPENSE, "250", date(2024, 2, 11)),
        ], TODAY)
        self.assertEqual(stats.total_balance, Decimal("1350"))
        self.assertEqual(stats.monthly_income, Decimal("1000"))
        self.assertEqual(stats.monthly_expenses, Decimal("300"))
        self.assertEqual(stats.previous_month_income, Decimal("900"))
        self.assertEqual(stats.previous_month_expenses, Decimal("250"))

    def test_empty_input_is_all_zero(self):
        stats = summarize([], TODAY)
        self.assertEqual(stats.to_dict(), {
            "total_balance": "0.00",
            "monthly_income": "0.00",
            "monthly_expenses": "0.00",
            "previous_month_income": "0.00",
            "previous_month_expenses": "0.00",
        })

    def test_month_boundaries(self):
        first_of_month = tx(INCOME, "10", date(2024, 3, 1))
        last_of_previous = tx(INCOME, "20", date(2024, 2, 29))
        two_months_ago = tx(INCOME, "40", date(2024, 1, 31))
        stats = summarize([first_of_month, last_of_previous, two_months_ago], TODAY)
        self.assertEqual(stats.monthly_income, Decimal("10"))
        self.assertEqual(stats.previous_month_income, Decimal("20"))
        # older rows still count towards the balance
        self.assertEqual(stats.total_balance, Decimal("70"))

    def test_balance_does_not_depend_on_reference_date(self):
        rows = [tx(INCOME, "500.10", date(2023, 7, 1)), tx(EXPENSE, "120.05", date(2024, 3, 2))]
        self.assertEqual(summarize(rows, TODAY).total_balance, summarize(rows, date(2030, 1, 1)).total_balance)
        self.assertEqual(summarize(rows, TODAY).total_balance, Decimal("380.05"))

    def test_unknown_kind_is_ignored(self):
        stats = summarize([tx(None, "99", date(2024, 3, 3)), tx(INCOME, "1", date(2024, 3, 3))], TODAY)
        self.assertEqual(stats.total_balance, Decimal("1"))
        self.assertEqual(stats.monthly_expenses, Decimal("0"))

    def test_january_rolls_back_to_december(self):
        first, prev_first, prev_last = month_bounds(date(2024, 1, 20))
        self.assertEqual(first, date(2024, 1, 1))
        self.assertEqual(prev_first, date(2023, 12, 1))
        self.assertEqual(prev_last, date(2023, 12, 31))


class CategoryTests(unittest.TestCase):
    def test_sums_expenses_exactly_per_category(self):
        totals = expenses_by_category([
            tx(EXPENSE, "0.10", TODAY, "Lazer"),
            tx(EXPENSE, "0.20", TODAY, "Lazer"),
            tx(EXPENSE, "45.99", TODAY, "Saúde"),
            tx(INCOME, "1000", TODAY, "Outros"),
        ])
        self.assertEqual([(c.category, c.total) for c in totals],
                         [("Lazer", Decimal("0.30")), ("Saúde", Decimal("45.99"))])

    def test_income_only_categories_never_appear(self):
        self.assertEqual(expenses_by_category([tx(INCOME, "10", TODAY, "Outros")]), [])

    def test_percentages(self):
        rows = category_percentages(expenses_by_category([
            tx(EXPENSE, "75", TODAY, "Habitação"),
            tx(EXPENSE, "25", TODAY, "Lazer"),
        ]))
        self.assertEqual(rows[0], {"category": "Habitação", "total": "75.00", "percent": 75.0})
        self.assertEqual(rows[1]["percent"], 25.0)


class TimeRangeTests(unittest.TestCase):
    def test_named_ranges(self):
        # 2024-03-15 is a Friday
        self.assertEqual(time_range("today", TODAY), (TODAY, TODAY))
        self.assertEqual(time_range("week", TODAY), (date(2024, 3, 11), TODAY))
        self.assertEqual(time_range("month", TODAY), (date(2024, 3, 1), TODAY))
        self.assertEqual(time_range("year", TODAY), (date(2024, 1, 1), TODAY))

    def test_unknown_range(self):
        with self.assertRaises(ValueError):
            time_range("decade", TODAY)


if __name__ == "__main__":
    unittest.main()
