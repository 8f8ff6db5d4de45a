from fastapi.testclient import TestClient

from socialfeed.app import create_app
from socialfeed.config import Settings
from socialfeed.db import InMemoryDbClient
from socialfeed.storage import InMemoryStorageClient


def make_settings(**overrides) -> Settings:
    values = {
        "use_in_memory_backends": True,
        "jwt_secret": "test-secret",
        "password_hash_time_cost": 1,
        "password_hash_memory_cost": 1024,
        "migrate_legacy_image_urls_on_startup": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class ApiTestMixin:
    """Builds an app wired to fresh in-memory backends for each test."""

    def setUp(self):
        self.settings = make_settings()
        self.db = InMemoryDbClient()
        self.storage = InMemoryStorageClient()
        self.client = TestClient(
            create_app(settings=self.settings, db=self.db, storage=self.storage)
        )

    def signup(self, name="Ann", email="a@x.com", password="secret1"):
        response = self.client.post(
            "/api/auth/signup",
            json={"name": name, "email": email, "password": password},
        )
        self.assertEqual(response.status_code, 200, response.text)
        payload = response.json()
        return payload["token"], payload["user"]["id"]

    @staticmethod
    def auth(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}

    def create_post(self, token: str, text: str = "hello", **extra):
        response = self.client.post(
            "/api/posts", json={"text": text, **extra}, headers=self.auth(token)
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()
