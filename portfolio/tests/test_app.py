import unittest

from fastapi.testclient import TestClient

from portfolio.app import create_app
from portfolio.auth import InMemoryAuthClient
from portfolio.db import InMemoryStoreClient, SiteConfig
from portfolio.dependencies import (
    get_auth_client,
    get_storage_client,
    get_store_client,
)
from portfolio.site_config import FALLBACK_CONTACT_EMAIL, FALLBACK_HERO_TITLE
from portfolio.storage import InMemoryStorageClient


class PortfolioApiTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryStoreClient()
        self.storage = InMemoryStorageClient()
        self.auth = InMemoryAuthClient()

        app = create_app()
        app.dependency_overrides[get_store_client] = lambda: self.store
        app.dependency_overrides[get_storage_client] = lambda: self.storage
        app.dependency_overrides[get_auth_client] = lambda: self.auth
        self.client = TestClient(app)

        self.owner = self.auth.create_user("owner@example.com", "s3cret")
        token = self.auth.add_session(self.owner.id).access_token
        self.headers = {"Authorization": f"Bearer {token}"}

    def _create_project(self, title="Portfolio A", headers=None):
        response = self.client.post(
            "/dashboard/projects",
            json={"title": title, "description": "desc", "canva_url": "https://canva.com/x"},
            headers=headers or self.headers,
        )
        self.assertEqual(response.status_code, 201, response.text)
        return next(p for p in response.json()["projects"] if p["title"] == title)

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

    def test_landing_page_uses_fallbacks_without_config(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["config"]["hero_title"], FALLBACK_HERO_TITLE)
        self.assertEqual(payload["mailto_link"], f"mailto:{FALLBACK_CONTACT_EMAIL}")
        self.assertEqual(payload["projects"], [])
        self.assertEqual(payload["project_count"], 0)

    def test_landing_page_uses_stored_config(self):
        self.store.insert_site_config(
            SiteConfig(hero_title="Hello", contact_email="me@example.com")
        )
        payload = self.client.get("/").json()
        self.assertEqual(payload["config"]["hero_title"], "Hello")
        self.assertEqual(payload["config"]["contact_email"], "me@example.com")
        # Missing fields still fall back.
        self.assertTrue(payload["config"]["about_text"])

    def test_dashboard_redirects_to_login_without_session(self):
        response = self.client.get("/dashboard", follow_redirects=False)
        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers["location"], "/login")

        response = self.client.post(
            "/dashboard/projects", json={"title": "x"}, follow_redirects=False
        )
        self.assertEqual(response.status_code, 303)
        self.assertEqual(self.store.list_projects(), [])

    def test_login_sets_session_cookie(self):
        response = self.client.post(
            "/login", data={"email": "owner@example.com", "password": "wrong"}
        )
        self.assertEqual(response.status_code, 401)

        response = self.client.post(
            "/login", data={"email": "owner@example.com", "password": "s3cret"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["owner_email"], "owner@example.com")

        logout = self.client.post("/logout")
        self.assertEqual(logout.status_code, 200)
        response = self.client.get("/dashboard", follow_redirects=False)
        self.assertEqual(response.status_code, 303)

    def test_create_project_is_listed_for_owner_and_public(self):
        project = self._create_project()
        self.assertEqual(project["user_id"], self.owner.id)

        dashboard = self.client.get("/dashboard", headers=self.headers).json()
        self.assertEqual([p["title"] for p in dashboard["projects"]], ["Portfolio A"])

        public = self.client.get("/").json()
        self.assertEqual([p["id"] for p in public["projects"]], [project["id"]])

    def test_blank_title_is_rejected(self):
        response = self.client.post(
            "/dashboard/projects", json={"title": "   "}, headers=self.headers
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(self.store.list_projects(), [])

    def test_other_owner_cannot_update_or_delete(self):
        project = self._create_project()
        intruder = self.auth.create_user("intruder@example.com", "pw")
        token = self.auth.add_session(intruder.id).access_token
        headers = {"Authorization": f"Bearer {token}"}

        response = self.client.put(
            f"/dashboard/projects/{project['id']}",
            json={"title": "Hijacked"},
            headers=headers,
        )
        self.assertEqual(response.status_code, 403)
        response = self.client.delete(
            f"/dashboard/projects/{project['id']}", headers=headers
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(self.store.get_project(project["id"]).title, "Portfolio A")

        # The intruder's own dashboard stays empty.
        dashboard = self.client.get("/dashboard", headers=headers).json()
        self.assertEqual(dashboard["projects"], [])

    def test_update_and_delete_project(self):
        project = self._create_project()
        response = self.client.put(
            f"/dashboard/projects/{project['id']}",
            json={"title": "Renamed", "description": None, "canva_url": None},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 200)
        updated = response.json()["projects"][0]
        self.assertEqual(updated["title"], "Renamed")
        self.assertIsNone(updated["canva_url"])
        self.assertEqual(updated["created_at"], project["created_at"])

        response = self.client.delete(
            f"/dashboard/projects/{project['id']}", headers=self.headers
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["projects"], [])

    def test_missing_project_redirects(self):
        response = self.client.get("/projects/zzz", follow_redirects=False)
        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers["location"], "/")

        response = self.client.get(
            "/dashboard/files/zzz", headers=self.headers, follow_redirects=False
        )
        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers["location"], "/dashboard")

    def test_upload_list_and_delete_file(self):
        project = self._create_project()
        response = self.client.post(
            f"/dashboard/files/{project['id']}",
            files={"file": ("report.pdf", b"%PDF-1.4 report", "application/pdf")},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 201, response.text)
        files = response.json()["files"]
        self.assertEqual(len(files), 1)
        self.assertEqual(files[0]["file_name"], "report.pdf")
        file_url = files[0]["file_url"]
        self.assertEqual(self.storage.get_bytes_by_url(file_url), b"%PDF-1.4 report")

        detail = self.client.get(f"/projects/{project['id']}").json()
        self.assertEqual([f["file_name"] for f in detail["files"]], ["report.pdf"])

        response = self.client.delete(
            f"/dashboard/files/{project['id']}/{files[0]['id']}", headers=self.headers
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["files"], [])
        # Blob deletion does not cascade.
        self.assertEqual(self.storage.get_bytes_by_url(file_url), b"%PDF-1.4 report")

    def test_delete_file_from_another_project_is_not_found(self):
        project = self._create_project("A")
        other = self._create_project("B")
        response = self.client.post(
            f"/dashboard/files/{other['id']}",
            files={"file": ("keep.pdf", b"%PDF", "application/pdf")},
            headers=self.headers,
        )
        file_id = response.json()["files"][0]["id"]

        response = self.client.delete(
            f"/dashboard/files/{project['id']}/{file_id}", headers=self.headers
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(
            [f.id for f in self.store.list_project_files(other["id"])], [file_id]
        )

    def test_failed_blob_upload_creates_no_record(self):
        project = self._create_project()
        self.storage.fail_uploads = "bucket unavailable"
        response = self.client.post(
            f"/dashboard/files/{project['id']}",
            files={"file": ("report.pdf", b"data", "application/pdf")},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["detail"], "bucket unavailable")
        self.assertEqual(self.store.list_project_files(project["id"]), [])

    def test_settings_show_empty_fields_when_unseeded(self):
        response = self.client.get("/dashboard/settings", headers=self.headers)
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["hero_title"], "")
        self.assertIsNone(payload["profile_image_url"])

    def test_update_settings_keeps_or_replaces_image(self):
        self.store.insert_site_config(
            SiteConfig(hero_title="Old", profile_image_url="https://cdn.test/old.png")
        )
        form = {
            "hero_title": "New title",
            "hero_subtitle": "Sub",
            "about_text": "About",
            "contact_email": "me@example.com",
        }
        response = self.client.put(
            "/dashboard/settings", data=form, headers=self.headers
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["hero_title"], "New title")
        self.assertEqual(
            response.json()["profile_image_url"], "https://cdn.test/old.png"
        )

        response = self.client.put(
            "/dashboard/settings",
            data=form,
            files={"image": ("me.png", b"\x89PNG new", "image/png")},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 200, response.text)
        new_url = response.json()["profile_image_url"]
        self.assertNotEqual(new_url, "https://cdn.test/old.png")
        self.assertEqual(self.storage.get_bytes_by_url(new_url), b"\x89PNG new")
        self.assertEqual(self.store.get_site_config().profile_image_url, new_url)

    def test_partial_settings_update_keeps_other_fields(self):
        self.store.insert_site_config(
            SiteConfig(
                hero_title="Old",
                hero_subtitle="Sub",
                about_text="About me",
                contact_email="me@example.com",
            )
        )
        response = self.client.put(
            "/dashboard/settings", data={"hero_title": "New"}, headers=self.headers
        )
        self.assertEqual(response.status_code, 200, response.text)

        stored = self.store.get_site_config()
        self.assertEqual(stored.hero_title, "New")
        self.assertEqual(stored.hero_subtitle, "Sub")
        self.assertEqual(stored.about_text, "About me")
        self.assertEqual(stored.contact_email, "me@example.com")

    def test_settings_require_session(self):
        response = self.client.put(
            "/dashboard/settings",
            data={"hero_title": "x"},
            follow_redirects=False,
        )
        self.assertEqual(response.status_code, 303)


if __name__ == "__main__":
    unittest.main()
