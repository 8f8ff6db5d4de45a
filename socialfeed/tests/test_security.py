import unittest
from datetime import timedelta

from socialfeed.errors import ServerError, Unauthenticated
from socialfeed.security import DEV_JWT_SECRET, PasswordHashing, TokenService
from socialfeed.tests.helpers import make_settings


class PasswordHashingTests(unittest.TestCase):
    def setUp(self):
        self.passwords = PasswordHashing(time_cost=1, memory_cost=1024)

    def test_hash_is_salted_and_verifies(self):
        first = self.passwords.hash("secret1")
        second = self.passwords.hash("secret1")
        self.assertNotEqual(first, second)
        self.assertNotIn("secret1", first)
        self.assertTrue(self.passwords.verify("secret1", first))
        self.assertFalse(self.passwords.verify("wrong", first))

    def test_garbage_digest_does_not_verify(self):
        self.assertFalse(self.passwords.verify("secret1", "not-a-hash"))


class TokenServiceTests(unittest.TestCase):
    def setUp(self):
        self.tokens = TokenService(secret="test-secret", expires_minutes=5)

    def test_issue_and_verify(self):
        token = self.tokens.issue("abc123")
        self.assertEqual(self.tokens.verify(token), "abc123")

    def test_expired_token_is_rejected(self):
        token = self.tokens.issue("abc123", expires_delta=timedelta(seconds=-10))
        with self.assertRaises(Unauthenticated):
            self.tokens.verify(token)

    def test_token_signed_with_other_secret_is_rejected(self):
        other = TokenService(secret="other-secret").issue("abc123")
        with self.assertRaises(Unauthenticated):
            self.tokens.verify(other)

    def test_missing_and_malformed_tokens(self):
        with self.assertRaises(Unauthenticated) as ctx:
            self.tokens.verify(None)
        self.assertEqual(ctx.exception.message, "No token")
        with self.assertRaises(Unauthenticated):
            self.tokens.verify("not.a.jwt")

    def test_missing_secret_is_a_server_error(self):
        with self.assertRaises(ServerError):
            TokenService(secret=None).issue("abc123")


class TokenServiceSettingsTests(unittest.TestCase):
    def test_dev_secret_when_database_falls_back_to_memory(self):
        settings = make_settings(
            use_in_memory_backends=False, jwt_secret=None, database_url=None
        )
        tokens = TokenService.from_settings(settings)
        self.assertEqual(tokens.secret, DEV_JWT_SECRET)
        self.assertEqual(tokens.verify(tokens.issue("abc123")), "abc123")

    def test_no_dev_secret_with_a_real_database(self):
        settings = make_settings(
            use_in_memory_backends=False,
            jwt_secret=None,
            database_url="sqlite:///:memory:",
        )
        self.assertIsNone(TokenService.from_settings(settings).secret)

    def test_configured_secret_wins(self):
        self.assertEqual(TokenService.from_settings(make_settings()).secret, "test-secret")


if __name__ == "__main__":
    unittest.main()
