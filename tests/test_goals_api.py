# tests/test_goals_api.py
import unittest

from tests.fakes import USER_ID, ApiTestCase


class GoalRoutesTests(ApiTestCase):
    def test_goal_lifecycle(self):
        r = self.post("/goals", json={"name": "Férias", "target_amount": "200", "current_amount": "50",
                                      "color": "bg-green-500"})
        self.assertEqual(r.status_code, 201)
        goal = r.get_json()["goal"]
        self.assertEqual(goal["progress"], 25.0)

        r = self.put(f"/goals/{goal['id']}", json={"name": "Férias", "target_amount": "200",
                                                   "current_amount": "250", "color": "bg-green-500"})
        self.assertEqual(r.get_json()["goal"]["progress"], 125.0)

        goals = self.get("/goals").get_json()["goals"]
        self.assertEqual([g["name"] for g in goals], ["Férias"])

        self.assertEqual(self.delete(f"/goals/{goal['id']}").status_code, 200)
        self.assertEqual(self.get("/goals").get_json()["goals"], [])

    def test_goal_validation(self):
        r = self.post("/goals", json={"name": "", "target_amount": "0", "current_amount": "-5"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(len(r.get_json()["details"]), 3)

    def test_goal_amounts_must_fit_the_column(self):
        r = self.post("/goals", json={"name": "Casa", "target_amount": "12.345", "current_amount": "99999999999"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.get_json()["details"], [
            "Target amount cannot have more than 2 decimal places",
            "Current amount is too large",
        ])
        self.assertEqual(self.db.tables["financial_goals"], [])

    def test_missing_goal(self):
        self.assertEqual(self.delete("/goals/missing").status_code, 404)


class ProfileRoutesTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.db.tables["user_profiles"].append({"id": USER_ID, "first_name": "Ana", "theme": "light"})

    def test_read_profile(self):
        profile = self.get("/profile").get_json()["profile"]
        self.assertEqual(profile["first_name"], "Ana")
        self.assertEqual(profile["preferred_currency"], "EUR")

    def test_update_profile(self):
        r = self.put("/profile", json={"theme": "dark", "preferred_currency": "usd", "monthly_budget": "1500",
                                       "login_count": 99})
        self.assertEqual(r.status_code, 200)
        profile = r.get_json()["profile"]
        self.assertEqual(profile["theme"], "dark")
        self.assertEqual(profile["preferred_currency"], "USD")
        self.assertEqual(profile["monthly_budget"], "1500.00")
        self.assertEqual(profile["login_count"], 0)

    def test_invalid_profile_changes(self):
        r = self.put("/profile", json={"theme": "neon", "email_notifications": "yes"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(self.put("/profile", json={"login_count": 5}).status_code, 400)
        r = self.put("/profile", json={"monthly_budget": "1500.505"})
        self.assertEqual(r.get_json()["details"], ["Monthly budget cannot have more than 2 decimal places"])


if __name__ == "__main__":
    unittest.main()
