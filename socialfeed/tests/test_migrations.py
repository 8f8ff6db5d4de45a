import unittest

from fastapi.testclient import TestClient

from socialfeed.app import create_app
from socialfeed.db import InMemoryDbClient
from socialfeed.errors import StorageError
from socialfeed.migrations import migrate_legacy_image_urls
from socialfeed.storage import InMemoryStorageClient
from socialfeed.tests.helpers import make_settings


class LegacyImageUrlMigrationTests(unittest.TestCase):
    def setUp(self):
        self.settings = make_settings(s3_bucket="images")
        self.db = InMemoryDbClient()
        user = self.db.create_user("Ann", "a@x.com", "hash")
        self.legacy = self.db.create_post(
            user.id, "old", image="http://localhost:9000/images/1700000000000-abcd1234.png"
        )
        self.current = self.db.create_post(
            user.id, "new", image="/api/posts/image/1700000000001-ffff0000.png"
        )
        self.external = self.db.create_post(
            user.id, "ext", image="https://example.com/other-bucket/pic.png"
        )

    def test_rewrites_only_legacy_urls(self):
        self.assertEqual(migrate_legacy_image_urls(self.db, self.settings), 1)
        self.assertEqual(
            self.db.get_post(self.legacy.id).image,
            "/api/posts/image/1700000000000-abcd1234.png",
        )
        self.assertEqual(self.db.get_post(self.current.id).image, self.current.image)
        self.assertEqual(self.db.get_post(self.external.id).image, self.external.image)

    def test_second_run_is_a_no_op(self):
        migrate_legacy_image_urls(self.db, self.settings)
        self.assertEqual(migrate_legacy_image_urls(self.db, self.settings), 0)

    def test_dry_run_leaves_data_alone(self):
        self.assertEqual(
            migrate_legacy_image_urls(self.db, self.settings, dry_run=True), 1
        )
        self.assertEqual(self.db.get_post(self.legacy.id).image, self.legacy.image)

    def test_without_bucket_nothing_happens(self):
        settings = make_settings(s3_bucket=None)
        self.assertEqual(migrate_legacy_image_urls(self.db, settings), 0)


class FailingBucketStorage(InMemoryStorageClient):
    def ensure_bucket(self) -> None:
        raise StorageError("Storage configuration error")


class StartupTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        user = self.db.create_user("Ann", "a@x.com", "hash")
        self.post = self.db.create_post(
            user.id, "old", image="http://minio:9000/images/a.png"
        )

    def start(self, **overrides):
        settings = make_settings(s3_bucket="images", **overrides)
        return create_app(settings=settings, db=self.db, storage=FailingBucketStorage())

    def test_startup_migrates_and_survives_bucket_failure(self):
        app = self.start(migrate_legacy_image_urls_on_startup=True)
        with self.assertLogs("socialfeed.app", level="ERROR") as logs:
            with TestClient(app) as client:
                self.assertEqual(
                    self.db.get_post(self.post.id).image, "/api/posts/image/a.png"
                )
                self.assertEqual(client.get("/api/health").status_code, 200)
        self.assertIn("Object storage initialization failed", logs.output[0])

    def test_startup_migration_can_be_disabled(self):
        app = self.start(migrate_legacy_image_urls_on_startup=False)
        with self.assertLogs("socialfeed.app", level="ERROR"):
            with TestClient(app) as client:
                self.assertEqual(client.get("/api/health").status_code, 200)
        self.assertEqual(self.db.get_post(self.post.id).image, self.post.image)


if __name__ == "__main__":
    unittest.main()
