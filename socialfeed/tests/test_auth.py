import unittest

from socialfeed.tests.helpers import ApiTestMixin


class AuthApiTests(ApiTestMixin, unittest.TestCase):
    def test_signup_returns_token_and_public_fields(self):
        response = self.client.post(
            "/api/auth/signup",
            json={"name": "Ann", "email": "a@x.com", "password": "secret1"},
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["token"])
        self.assertEqual(set(payload["user"]), {"id", "name", "email", "avatar"})
        self.assertEqual(payload["user"]["email"], "a@x.com")
        self.assertNotIn("secret1", response.text)

        stored = self.db.get_user(payload["user"]["id"])
        self.assertNotEqual(stored.password_hash, "secret1")

    def test_signup_validation(self):
        missing = self.client.post("/api/auth/signup", json={"email": "a@x.com"})
        self.assertEqual(missing.status_code, 400)
        self.assertEqual(missing.json(), {"msg": "Name, email, and password are required"})

        bad_email = self.client.post(
            "/api/auth/signup",
            json={"name": "Ann", "email": "not-an-email", "password": "secret1"},
        )
        self.assertEqual(bad_email.status_code, 400)
        self.assertEqual(bad_email.json()["msg"], "Invalid email format")

    def test_signup_sanitizes_name(self):
        response = self.client.post(
            "/api/auth/signup",
            json={"name": "  <b>Ann</b> ", "email": "a@x.com", "password": "secret1"},
        )
        self.assertEqual(response.json()["user"]["name"], "&lt;b&gt;Ann&lt;&#x2F;b&gt;")

    def test_duplicate_email_conflicts(self):
        self.signup()
        response = self.client.post(
            "/api/auth/signup",
            json={"name": "Other", "email": "a@x.com", "password": "secret2"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["msg"], "User already exists with this email")

    def test_login_errors_do_not_reveal_which_part_was_wrong(self):
        self.signup()
        wrong_password = self.client.post(
            "/api/auth/login", json={"email": "a@x.com", "password": "wrong"}
        )
        unknown_email = self.client.post(
            "/api/auth/login", json={"email": "nobody@x.com", "password": "secret1"}
        )
        self.assertEqual(wrong_password.status_code, 400)
        self.assertEqual(wrong_password.status_code, unknown_email.status_code)
        self.assertEqual(wrong_password.json(), {"msg": "Invalid credentials"})
        self.assertEqual(wrong_password.json(), unknown_email.json())

    def test_login_success(self):
        _, user_id = self.signup()
        response = self.client.post(
            "/api/auth/login", json={"email": "a@x.com", "password": "secret1"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["id"], user_id)
        self.assertNotIn("password_hash", response.json()["user"])

    def test_email_is_case_and_whitespace_insensitive(self):
        _, user_id = self.signup(email="  Ann@X.com ")
        response = self.client.post(
            "/api/auth/login", json={"email": "ANN@x.COM", "password": "secret1"}
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["user"]["id"], user_id)
        self.assertEqual(response.json()["user"]["email"], "ann@x.com")

        duplicate = self.client.post(
            "/api/auth/signup",
            json={"name": "Other", "email": "ann@x.com", "password": "secret2"},
        )
        self.assertEqual(duplicate.status_code, 400)
        self.assertEqual(duplicate.json()["msg"], "User already exists with this email")

    def test_login_requires_both_fields(self):
        response = self.client.post("/api/auth/login", json={"email": "a@x.com"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["msg"], "Email and password are required")

    def test_me_and_protected_routes(self):
        token, user_id = self.signup()
        me = self.client.get("/api/auth/me", headers=self.auth(token))
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["id"], user_id)
        self.assertEqual(me.json()["postCount"], 0)

        protected = self.client.get("/api/protected", headers=self.auth(token))
        self.assertEqual(protected.json()["user"], {"id": user_id})

    def test_missing_or_bad_bearer_token(self):
        no_header = self.client.get("/api/protected")
        self.assertEqual(no_header.status_code, 401)
        self.assertEqual(no_header.json(), {"msg": "No token"})

        wrong_scheme = self.client.get(
            "/api/protected", headers={"Authorization": "Token abc"}
        )
        self.assertEqual(wrong_scheme.status_code, 401)
        self.assertEqual(wrong_scheme.json(), {"msg": "Token invalid"})

        garbage = self.client.get("/api/protected", headers=self.auth("abc.def.ghi"))
        self.assertEqual(garbage.status_code, 401)

    def test_health_and_root(self):
        self.assertEqual(
            self.client.get("/api/health").json(),
            {"status": "OK", "message": "Server is running"},
        )
        self.assertEqual(
            self.client.get("/").json(), {"message": "Backend API is running"}
        )

    def test_unknown_route_uses_error_envelope(self):
        response = self.client.get("/api/nope")
        self.assertEqual(response.status_code, 404)
        self.assertIn("msg", response.json())


if __name__ == "__main__":
    unittest.main()
