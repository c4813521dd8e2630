# tests/test_transactions_api.py
import unittest
from unittest import mock

from tests.fakes import OTHER_USER_ID, ApiTestCase
from walletwise.repository import TransactionStore, like_escape

MARCH = {"start": "2024-03-01", "end": "2024-03-31"}


class TransactionRoutesTests(ApiTestCase):
    def test_create_transaction(self):
        r = self.post("/transactions", json={
            "description": "Supermercado", "amount": "42.5", "type": "expense",
            "category": "Alimentação", "date": "2024-03-10",
        })
        self.assertEqual(r.status_code, 201)
        created = r.get_json()["transaction"]
        self.assertEqual(created["amount"], "42.50")
        row = self.db.tables["transactions"][0]
        self.assertEqual(row["user_id"], "user-1")
        self.assertEqual(row["amount"], "42.5")

    def test_create_rejects_bad_input(self):
        r = self.post("/transactions", json={"description": "", "amount": "-1", "type": "transfer",
                                             "category": "Outros", "date": "nope"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(len(r.get_json()["details"]), 4)
        self.assertEqual(self.db.tables["transactions"], [])

    def test_create_rejects_amounts_the_column_cannot_hold(self):
        body = {"description": "Carro", "type": "expense", "category": "Transportes", "date": "2024-03-10"}
        for amount, problem in [("12.345", "Amount cannot have more than 2 decimal places"),
                                ("99999999999", "Amount is too large"),
                                (1e16, "Amount is too large"),
                                ("1e3", "Invalid amount format")]:
            r = self.post("/transactions", json=dict(body, amount=amount))
            self.assertEqual(r.status_code, 400, amount)
            self.assertEqual(r.get_json()["details"], [problem])
        self.assertEqual(self.db.tables["transactions"], [])
        self.assertNotIn(("transactions", "insert"), self.db.calls)

    def test_list_is_paged_newest_first(self):
        for day in range(1, 8):
            self.db.add_transaction(date=f"2024-03-0{day}", description=f"dia {day}")
        r = self.get("/transactions", query_string=dict(MARCH, page=1))
        payload = r.get_json()
        self.assertEqual(payload["total"], 7)
        self.assertEqual(payload["page_count"], 2)
        self.assertEqual([t["date"] for t in payload["transactions"]], ["2024-03-02", "2024-03-01"])

    def test_list_filters(self):
        self.db.add_transaction(description="Cinema", category="Lazer", date="2024-03-05")
        self.db.add_transaction(description="Farmácia", category="Saúde", date="2024-03-06")
        self.db.add_transaction(description="Cinema antigo", category="Lazer", date="2024-01-06")
        self.db.add_transaction(user_id=OTHER_USER_ID, description="Cinema", category="Lazer", date="2024-03-05")

        r = self.get("/transactions", query_string=dict(MARCH, category="Lazer"))
        self.assertEqual([t["description"] for t in r.get_json()["transactions"]], ["Cinema"])

        r = self.get("/transactions", query_string=dict(MARCH, category="all", search="FARM"))
        self.assertEqual([t["description"] for t in r.get_json()["transactions"]], ["Farmácia"])

    def test_search_wildcards_match_literally(self):
        self.db.add_transaction(description="Desconto 50%", date="2024-03-05")
        self.db.add_transaction(description="Desconto 500", date="2024-03-06")
        self.db.add_transaction(description="conta_luz", date="2024-03-07")
        self.db.add_transaction(description="contaxluz", date="2024-03-08")

        r = self.get("/transactions", query_string=dict(MARCH, search="50%"))
        self.assertEqual([t["description"] for t in r.get_json()["transactions"]], ["Desconto 50%"])

        r = self.get("/transactions", query_string=dict(MARCH, search="a_l"))
        self.assertEqual([t["description"] for t in r.get_json()["transactions"]], ["conta_luz"])

    def test_list_rejects_inverted_range(self):
        r = self.get("/transactions", query_string={"start": "2024-03-31", "end": "2024-03-01"})
        self.assertEqual(r.status_code, 400)

    def test_update_and_delete(self):
        row = self.db.add_transaction(description="Renda", amount="600.00", category="Habitação")
        r = self.put(f"/transactions/{row['id']}", json={
            "description": "Renda", "amount": "650", "type": "expense",
            "category": "Habitação", "date": "2024-03-01",
        })
        self.assertEqual(r.status_code, 200)
        self.assertEqual(self.db.tables["transactions"][0]["amount"], "650")

        r = self.delete(f"/transactions/{row['id']}")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(self.db.tables["transactions"], [])

    def test_get_single_transaction(self):
        row = self.db.add_transaction(description="Ginásio", amount="35")
        r = self.get(f"/transactions/{row['id']}")
        self.assertEqual(r.get_json()["transaction"]["description"], "Ginásio")
        self.assertEqual(self.get("/transactions/missing").status_code, 404)

    def test_cannot_touch_another_users_transaction(self):
        row = self.db.add_transaction(user_id=OTHER_USER_ID)
        self.assertEqual(self.get(f"/transactions/{row['id']}").status_code, 404)
        r = self.delete(f"/transactions/{row['id']}")
        self.assertEqual(r.status_code, 404)
        self.assertEqual(len(self.db.tables["transactions"]), 1)

    def test_stats_use_full_history(self):
        self.db.add_transaction(type="income", amount="1000", date="2024-03-05")
        self.db.add_transaction(type="expense", amount="300", date="2024-03-06")
        self.db.add_transaction(type="income", amount="900", date="2024-02-10")
        self.db.add_transaction(type="expense", amount="250", date="2024-02-11")
        self.db.add_transaction(type="income", amount="100", date="2023-06-01")
        r = self.get("/transactions/stats", query_string={"today": "2024-03-15"})
        stats = r.get_json()["stats"]
        self.assertEqual(stats["total_balance"], "1450.00")
        self.assertEqual(stats["monthly_income"], "1000.00")
        self.assertEqual(stats["previous_month_expenses"], "250.00")
        self.assertEqual(r.get_json()["transaction_count"], 5)

    def test_stats_read_past_the_server_row_cap(self):
        self.db.max_rows = 2
        for day in range(1, 6):
            self.db.add_transaction(type="income", amount="100", date=f"2024-03-0{day}")
        with mock.patch.object(TransactionStore, "BATCH_SIZE", 2):
            r = self.get("/transactions/stats", query_string={"today": "2024-03-15"})
        payload = r.get_json()
        self.assertEqual(payload["transaction_count"], 5)
        self.assertEqual(payload["stats"]["total_balance"], "500.00")
        self.assertEqual(self.db.calls.count(("transactions", "select")), 3)

    def test_export_reads_past_the_server_row_cap(self):
        self.db.max_rows = 2
        for day in range(1, 5):
            self.db.add_transaction(description=f"Compra {day}", date=f"2024-03-0{day}")
        with mock.patch.object(TransactionStore, "BATCH_SIZE", 2):
            r = self.get("/transactions/export", query_string=MARCH)
        # header plus four rows
        self.assertEqual(len(r.get_data(as_text=True).splitlines()), 5)

    def test_category_breakdown(self):
        self.db.add_transaction(amount="30", category="Lazer", date="2024-03-05")
        self.db.add_transaction(amount="10", category="Lazer", date="2024-03-06")
        self.db.add_transaction(type="income", amount="500", category="Outros", date="2024-03-06")
        r = self.get("/transactions/categories", query_string=MARCH)
        self.assertEqual(r.get_json()["by_category"], [{"category": "Lazer", "total": "40.00", "percent": 100.0}])

    def test_export_csv(self):
        self.db.add_transaction(description="Passe", amount="40", category="Transportes", date="2024-03-02")
        r = self.get("/transactions/export", query_string=MARCH)
        self.assertEqual(r.status_code, 200)
        self.assertIn("transacoes_2024-03-01.csv", r.headers["Content-Disposition"])
        self.assertIn('02/03/2024,Passe,Transportes,Despesa,"40,00 €"', r.get_data(as_text=True))

    def test_empty_export_is_refused(self):
        r = self.get("/transactions/export", query_string=MARCH)
        self.assertEqual(r.status_code, 404)
        self.assertIn("No transactions", r.get_json()["error"])

    def test_store_failure_is_reported(self):
        self.db.failing_tables.add("transactions")
        r = self.get("/transactions", query_string=MARCH)
        self.assertEqual(r.status_code, 502)

    def test_time_ranges(self):
        r = self.client.get("/transactions/time-ranges/year")
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r.get_json()["start"].endswith("-01-01"))
        self.assertEqual(self.client.get("/transactions/time-ranges/decade").status_code, 400)


class LikeEscapeTests(unittest.TestCase):
    def test_escapes_wildcards(self):
        self.assertEqual(like_escape("50%_off\\"), "50\\%\\_off\\\\")
        self.assertEqual(like_escape("Renda"), "Renda")


if __name__ == "__main__":
    unittest.main()
