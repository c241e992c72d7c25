import tempfile
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from researchflow.config import Settings
from researchflow.gui.app import app
from researchflow.gui.state import state
from researchflow.services.doi_resolver import select_record
from researchflow.services.export_service import EXPORT_MESSAGES


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        Settings.reset()
        self.addCleanup(Settings.reset)
        Settings.load(base_dir=self._tmp.name).update(
            ai_mode="mock",
            mock_delay=(0.0, 0.0),
            resolve_delay=0.0,
            export_delay=0.0,
            anthropic_api_key=None,
            openai_api_key=None,
        )
        self.client = TestClient(app)
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)


class TestAiRoute(ApiTestCase):
    def test_missing_task(self):
        res = self.client.post("/api/ai", json={"content": "text"})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json(), {"error": "Missing task"})

    def test_unknown_task(self):
        res = self.client.post("/api/ai", json={"task": "translate", "content": "text"})
        self.assertEqual(res.status_code, 400)
        self.assertIn("translate", res.json()["error"])

    def test_replacement_task_returns_revised(self):
        res = self.client.post("/api/ai", json={"task": "proofread", "sectionText": "hello  world"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {"revised": "Hello world."})

    def test_word_target_out_of_range(self):
        for target in (0, -3, 10**6):
            res = self.client.post("/api/ai", json={"task": "expand", "content": "text", "wordTarget": target})
            self.assertEqual(res.status_code, 400)
            self.assertIn("wordTarget", res.json()["error"])

    def test_word_target_at_cap(self):
        res = self.client.post("/api/ai", json={"task": "expand", "content": "Short text.", "wordTarget": 5000})
        self.assertEqual(res.status_code, 200)
        self.assertIn("revised", res.json())

    def test_analytical_task(self):
        res = self.client.post("/api/ai", json={"task": "rqs", "field": "Ecology", "notes": "pollinators"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.json()["suggestions"]), 4)

    def test_relay_without_keys(self):
        Settings.load().update(ai_mode="relay")
        res = self.client.post("/api/ai", json={"task": "critique", "content": "text"})
        self.assertEqual(
            res.json(),
            {"result": "No API key set. Please add ANTHROPIC_API_KEY or OPENAI_API_KEY.", "fallback": True},
        )


class TestUnexpectedFailures(ApiTestCase):
    def test_ai_route_hides_exception(self):
        with patch.object(state.ai, "run", side_effect=RuntimeError("provider exploded")):
            with self.assertLogs("researchflow.gui.routers.ai", level="ERROR") as logs:
                res = self.client.post("/api/ai", json={"task": "critique", "content": "text"})
        self.assertEqual(res.status_code, 500)
        self.assertEqual(res.json(), {"error": "Failed to get AI response"})
        self.assertIs(logs.records[0].exc_info[0], RuntimeError)

    def test_resolve_route_hides_exception(self):
        with patch.object(state.resolver, "resolve", side_effect=RuntimeError("crossref down")):
            with self.assertLogs("researchflow.gui.routers.citations", level="ERROR") as logs:
                res = self.client.post("/api/citations/resolve", json={"doi": "10.1000/182"})
        self.assertEqual(res.status_code, 500)
        self.assertEqual(res.json(), {"error": "Failed to resolve DOI"})
        self.assertIs(logs.records[0].exc_info[0], RuntimeError)

    def test_missing_provider_is_a_server_error(self):
        Settings.load().update(ai_mode="relay", openai_api_key="k")
        with patch("researchflow.services.ai_service.model_for_family", return_value=None):
            with self.assertLogs("researchflow.gui.routers.ai", level="ERROR"):
                res = self.client.post("/api/ai", json={"task": "rewrite", "content": "text"})
        self.assertEqual(res.status_code, 500)
        self.assertEqual(res.json(), {"error": "Failed to get AI response"})


class TestCitationAndExportRoutes(ApiTestCase):
    def test_resolve(self):
        res = self.client.post("/api/citations/resolve", json={"doi": "10.1000/182"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {"metadata": select_record("10.1000/182")})

    def test_resolve_missing_doi(self):
        for body in ({}, {"doi": "  "}):
            res = self.client.post("/api/citations/resolve", json=body)
            self.assertEqual(res.status_code, 400)
            self.assertEqual(res.json(), {"error": "Missing DOI"})

    def test_export_stubs(self):
        for fmt in ("pdf", "docx"):
            res = self.client.post(f"/api/export/{fmt}")
            self.assertEqual(res.json(), {"ok": True, "message": EXPORT_MESSAGES[fmt]})

    def test_source_crud_and_format(self):
        res = self.client.post(
            "/api/papers/1/sources",
            json={"type": "book", "title": "Writing Well", "author": "Zinsser, W.", "year": "1976", "publisher": "Harper"},
        )
        self.assertEqual(res.status_code, 201)
        source = res.json()
        self.assertEqual(source["citationKey"], "zinsser1976writing")

        listing = self.client.get("/api/papers/1/sources", params={"q": "writing"}).json()
        self.assertEqual([s["id"] for s in listing], [source["id"]])
        self.assertEqual(listing[0]["formatted"], "Zinsser, W. (1976). *Writing Well*. Harper.")

        formatted = self.client.get(f"/api/papers/1/sources/{source['id']}/format", params={"style": "mla"}).json()
        self.assertEqual(formatted["citation"], "Zinsser, W. *Writing Well*. Harper, 1976.")
        self.assertEqual(formatted["inline"], "(Zinsser)")

        res = self.client.put(f"/api/papers/1/sources/{source['id']}", json={"year": "2006"})
        self.assertEqual(res.json()["citationKey"], "zinsser2006writing")

        self.assertEqual(self.client.delete(f"/api/papers/1/sources/{source['id']}").status_code, 200)
        self.assertEqual(self.client.delete(f"/api/papers/1/sources/{source['id']}").status_code, 404)

    def test_source_validation(self):
        res = self.client.post("/api/papers/1/sources", json={"title": "Only a title"})
        self.assertEqual(res.status_code, 400)
        self.assertIn("error", res.json())
        self.assertEqual(self.client.get("/api/papers/nope/sources").status_code, 404)


class TestPaperRoutes(ApiTestCase):
    def test_list_seeded_and_create(self):
        self.assertEqual(len(self.client.get("/api/papers").json()), 2)
        res = self.client.post("/api/papers", json={"title": "New", "topic": "Law", "type": "Essay", "dueDate": "2030-02-01"})
        self.assertEqual(res.status_code, 201)
        paper = res.json()
        self.assertEqual(paper["progress"], 0)
        self.assertEqual(paper["dueDate"], "2030-02-01")
        self.assertEqual(self.client.get("/api/papers").json()[0]["id"], paper["id"])
        self.assertEqual(self.client.post("/api/papers", json={"title": "x"}).status_code, 400)

    def test_get_update_and_missing(self):
        self.assertEqual(self.client.get("/api/papers/1").json()["title"], "The Impact of AI on Modern Education Systems")
        res = self.client.put("/api/papers/1", json={"topic": "EdTech"})
        self.assertEqual(res.json()["topic"], "EdTech")
        self.assertEqual(self.client.get("/api/papers/404").status_code, 404)

    def test_section_save_versions_restore(self):
        url = "/api/papers/1/sections/abstract"
        first = self.client.put(url, json={"content": "First abstract draft text."}).json()
        self.assertIsNotNone(first["version"])
        self.client.put(url, json={"content": "Second abstract draft."})
        self.assertEqual(self.client.get(url).json()["content"], "Second abstract draft.")
        self.assertEqual(self.client.get("/api/papers/1").json()["wordCount"], 3)

        versions = self.client.get(url + "/versions").json()
        self.assertEqual(len(versions), 2)
        self.assertEqual(versions[0]["content"], "Second abstract draft.")

        res = self.client.post(f"{url}/versions/{first['version']['id']}/restore")
        self.assertEqual(res.json(), {"content": "First abstract draft text."})
        self.assertEqual(self.client.get(url).json()["content"], "First abstract draft text.")

    def test_unknown_section(self):
        self.assertEqual(self.client.get("/api/papers/1/sections/appendix").status_code, 404)

    def test_sections_and_outline(self):
        sections = self.client.get("/api/sections").json()
        self.assertEqual(sections[0]["id"], "abstract")
        self.assertEqual(len(sections[1]["children"]), 3)
        outline = self.client.get("/api/papers/1/outline").json()
        self.assertEqual(outline["target_words"], 8000)


class TestSessionAndPages(ApiTestCase):
    def test_login_me_logout(self):
        self.assertEqual(self.client.get("/api/auth/me").json(), {"user": None})
        user = self.client.post("/api/auth/login", json={"email": "ada@example.org", "password": "pw"}).json()
        self.assertEqual(user, {"id": "1", "email": "ada@example.org", "name": "ada", "subscription": "free"})
        self.assertEqual(self.client.get("/api/auth/me").json()["user"]["name"], "ada")
        self.client.post("/api/auth/logout")
        self.assertEqual(self.client.get("/api/auth/me").json(), {"user": None})

    def test_signup_requires_terms(self):
        body = {"email": "a@b.c", "password": "pw", "name": "Ada"}
        self.assertEqual(self.client.post("/api/auth/signup", json=body).status_code, 400)
        res = self.client.post("/api/auth/signup", json={**body, "acceptTerms": True})
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.json()["name"], "Ada")

    def test_theme_toggle_persists(self):
        self.assertEqual(self.client.post("/api/theme/toggle").json(), {"theme": "dark"})
        self.assertEqual(self.client.get("/api/theme").json(), {"theme": "dark"})
        self.assertEqual(self.client.post("/api/theme/toggle").json(), {"theme": "light"})

    def test_pages_render(self):
        res = self.client.get("/")
        self.assertEqual(res.status_code, 200)
        self.assertIn("Climate Change Adaptation Strategies", res.text)
        res = self.client.get("/editor/1")
        self.assertEqual(res.status_code, 200)
        self.assertIn("Literature Review", res.text)
        self.assertEqual(self.client.get("/editor/404").status_code, 404)

    def test_editor_page_carries_ai_rules(self):
        page = self.client.get("/editor/1").text
        self.assertIn('const NO_TEXT_TASKS = ["contributions", "hypotheses", "rqs", "suggest_citations"];', page)
        self.assertIn('"Please write some content in this section first."', page)
        self.assertIn('"AI request failed. Please try again."', page)

    def test_llm_registry(self):
        data = self.client.get("/api/llm-models").json()
        self.assertEqual(data["mode"], "mock")
        self.assertEqual({m["provider_id"] for m in data["models"]}, {"openai", "anthropic"})


if __name__ == "__main__":
    unittest.main()
