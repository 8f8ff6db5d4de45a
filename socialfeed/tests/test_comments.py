import unittest

from socialfeed.tests.helpers import ApiTestMixin


class CommentsApiTests(ApiTestMixin, unittest.TestCase):
    def setUp(self):
        super().setUp()
        self.ann_token, self.ann_id = self.signup()
        self.bob_token, self.bob_id = self.signup(name="Bob", email="b@x.com")
        self.post = self.create_post(self.ann_token)

    def comment(self, token, text="nice"):
        return self.client.post(
            f"/api/posts/{self.post['id']}/comments",
            json={"text": text},
            headers=self.auth(token),
        )

    def comments_count(self):
        return self.client.get(f"/api/posts/{self.post['id']}").json()["commentsCount"]

    def test_create_and_list(self):
        created = self.comment(self.bob_token, "first")
        self.assertEqual(created.status_code, 201)
        body = created.json()
        self.assertEqual(body["post"], self.post["id"])
        self.assertEqual(body["user"]["id"], self.bob_id)
        self.comment(self.ann_token, "second")

        listed = self.client.get(f"/api/posts/{self.post['id']}/comments")
        self.assertEqual(listed.status_code, 200)
        self.assertEqual([c["text"] for c in listed.json()], ["first", "second"])

    def test_counter_is_n_minus_m_and_never_negative(self):
        ids = [self.comment(self.bob_token, f"c{i}").json()["id"] for i in range(4)]
        self.assertEqual(self.comments_count(), 4)

        for comment_id in ids[:3]:
            response = self.client.delete(
                f"/api/comments/{comment_id}", headers=self.auth(self.bob_token)
            )
            self.assertEqual(response.json(), {"msg": "Comment removed"})
        self.assertEqual(self.comments_count(), 1)

        # Simulate drift; the decrement floors at zero.
        self.db.posts[self.post["id"]].comments_count = 0
        self.client.delete(f"/api/comments/{ids[3]}", headers=self.auth(self.bob_token))
        self.assertEqual(self.comments_count(), 0)

    def test_comment_text_rules(self):
        empty = self.comment(self.bob_token, "")
        self.assertEqual(empty.status_code, 400)
        self.assertEqual(empty.json()["msg"], "Text is required")
        too_long = self.comment(self.bob_token, "x" * 301)
        self.assertEqual(too_long.status_code, 400)
        self.assertEqual(
            too_long.json()["msg"], "Comment must be 300 characters or less"
        )
        self.assertEqual(self.comments_count(), 0)

    def test_comment_on_missing_post(self):
        missing = self.client.post(
            f"/api/posts/{'f' * 32}/comments",
            json={"text": "hi"},
            headers=self.auth(self.bob_token),
        )
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(
            self.client.get(f"/api/posts/{'f' * 32}/comments").status_code, 404
        )

    def test_edit_and_delete_are_owner_only(self):
        comment_id = self.comment(self.bob_token).json()["id"]

        edit = self.client.put(
            f"/api/comments/{comment_id}",
            json={"text": "changed"},
            headers=self.auth(self.ann_token),
        )
        self.assertEqual(edit.status_code, 403)
        delete = self.client.delete(
            f"/api/comments/{comment_id}", headers=self.auth(self.ann_token)
        )
        self.assertEqual(delete.status_code, 403)
        self.assertEqual(self.comments_count(), 1)

        own_edit = self.client.put(
            f"/api/comments/{comment_id}",
            json={"text": "changed"},
            headers=self.auth(self.bob_token),
        )
        self.assertEqual(own_edit.status_code, 200)
        self.assertEqual(own_edit.json()["text"], "changed")
        self.assertTrue(own_edit.json()["edited"])

    def test_unknown_comment(self):
        response = self.client.delete(
            f"/api/comments/{'f' * 32}", headers=self.auth(self.bob_token)
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"msg": "Comment not found"})


if __name__ == "__main__":
    unittest.main()
