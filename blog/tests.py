import json

from django.contrib.auth import get_user_model
from django.test import TestCase

from .models import Blog


def make_post(**kwargs):
    defaults = {
        "title": "Choosing the Right Zipper",
        "excerpt": "Coil, metal or plastic?",
        "content": "<p>It depends on the garment.</p>",
        "category": "Zippers",
    }
    defaults.update(kwargs)
    return Blog.objects.create(**defaults)


class BlogModelTests(TestCase):
    def test_slug_is_generated_and_deduplicated(self):
        first = make_post()
        second = make_post()
        self.assertEqual(first.slug, "choosing-the-right-zipper")
        self.assertEqual(second.slug, "choosing-the-right-zipper-1")

    def test_published_at_stamped_on_first_publish(self):
        post = make_post()
        self.assertIsNone(post.published_at)

        post.status = Blog.STATUS_PUBLISHED
        post.save()
        stamped = post.published_at
        self.assertIsNotNone(stamped)

        post.status = Blog.STATUS_DRAFT
        post.save()
        post.status = Blog.STATUS_PUBLISHED
        post.save()
        self.assertEqual(post.published_at, stamped)


class BlogViewTests(TestCase):
    def setUp(self):
        self.admin = get_user_model().objects.create_user("admin", password="s3cret-pass", is_staff=True)

    def post_json(self, url, payload):
        return self.client.post(url, json.dumps(payload), content_type="application/json")

    def test_public_list_hides_drafts_and_content(self):
        make_post(title="Live", status=Blog.STATUS_PUBLISHED)
        make_post(title="Draft")
        response = self.client.get("/api/blogs/")
        self.assertEqual(response.status_code, 200)
        blogs = response.json()["blogs"]
        self.assertEqual([b["title"] for b in blogs], ["Live"])
        self.assertNotIn("content", blogs[0])

    def test_public_detail_requires_published(self):
        live = make_post(title="Live", status=Blog.STATUS_PUBLISHED)
        draft = make_post(title="Draft")
        self.assertEqual(self.client.get(f"/api/blogs/{live.slug}/").status_code, 200)
        self.assertEqual(self.client.get(f"/api/blogs/{draft.slug}/").status_code, 404)

    def test_admin_required(self):
        self.assertEqual(self.client.get("/api/admin/blogs/").status_code, 401)

    def test_admin_create_and_duplicate_slug(self):
        self.client.force_login(self.admin)
        payload = {
            "title": "Elastic Care",
            "excerpt": "Keep the stretch",
            "content": "<p>Wash cold.</p>",
            "category": "Elastic",
            "status": "published",
            "slug": "elastic-care",
        }
        response = self.post_json("/api/admin/blogs/", payload)
        self.assertEqual(response.status_code, 201)
        body = response.json()["blog"]
        self.assertEqual(body["slug"], "elastic-care")
        self.assertIsNotNone(body["publishedAt"])

        response = self.post_json("/api/admin/blogs/", payload)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "A blog post with this slug already exists")

    def test_admin_create_requires_content(self):
        self.client.force_login(self.admin)
        response = self.post_json("/api/admin/blogs/", {"title": "Empty", "excerpt": "x"})
        self.assertEqual(response.status_code, 400)

    def test_admin_update_and_delete(self):
        self.client.force_login(self.admin)
        post = make_post()
        response = self.client.put(
            f"/api/admin/blogs/{post.pk}/",
            json.dumps({"title": "Zippers 101", "tags": ["zippers"]}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 200)
        post.refresh_from_db()
        self.assertEqual(post.title, "Zippers 101")
        self.assertEqual(post.tags, ["zippers"])

        response = self.client.delete(f"/api/admin/blogs/{post.pk}/")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Blog.objects.exists())
