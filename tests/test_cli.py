import json
import tempfile
import unittest

import httpx
from fastapi.testclient import TestClient
from rich.console import Console

from researchflow.cli import ResearchFlowCLI, create_parser, main
from researchflow.config import Settings
from researchflow.console import ConsoleUI
from researchflow.gui.app import app


class CLITestCase(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        Settings.reset()
        self.addCleanup(Settings.reset)
        self.settings = Settings.load(base_dir=tmp.name)
        self.settings.update(resolve_delay=0.0, doi_resolver="mock")
        self.cli = ResearchFlowCLI(self.settings)
        self.cli.ui = ConsoleUI(Console(record=True, width=200))

    def output(self):
        return self.cli.ui.console.export_text()


class TestCommands(CLITestCase):
    def test_papers_lists_samples(self):
        self.cli.cmd_papers()
        self.assertIn("Climate Change Adaptation Strategies", self.output())

    def test_save_show_versions(self):
        self.cli.cmd_save("2", "results", "Adaptation funding rose sharply.")
        self.assertIn("4 words in paper", self.output())
        self.cli.cmd_show("2", "results")
        self.assertIn("Adaptation funding rose sharply.", self.output())
        versions = self.cli.drafts.list_versions("2", "results")
        self.assertEqual(len(versions), 1)
        self.cli.cmd_restore("2", "results", versions[0].id)
        self.assertIn("Restored Results", self.output())

    def test_cite_and_add_reference(self):
        self.cli.cmd_cite("1", "2", style="mla", add_reference=True)
        self.assertIn("Brown, A. *Modern Educational Approaches*. Academic Press, 2022.", self.output())
        self.assertEqual(
            self.cli.drafts.load("1", "references"),
            "Brown, A. *Modern Educational Approaches*. Academic Press, 2022.",
        )

    def test_inline_citation(self):
        self.cli.cmd_cite("1", "1", inline=True)
        self.assertIn("(Smith et al., 2023)", self.output())

    def test_ai_refuses_empty_section_without_calling_server(self):
        self.cli.cmd_ai("1", "abstract", "rewrite")
        self.assertIn("Please write some content in this section first.", self.output())

    def test_theme_and_login(self):
        self.cli.cmd_theme()
        self.assertIn("Theme: dark", self.output())
        self.cli.cmd_login("ada@example.org", "pw")
        self.assertIn("Signed in as ada", self.output())


class TestImportDoi(CLITestCase):
    def use_server(self, handler):
        http = httpx.Client(base_url="http://testserver", transport=httpx.MockTransport(handler))
        self.addCleanup(http.close)
        self.cli._http = http

    def test_import_doi_and_save(self):
        client = TestClient(app)
        client.__enter__()
        self.addCleanup(client.__exit__, None, None, None)
        self.cli._http = client

        self.cli.cmd_import_doi("1", "10.1000/182", save=True)
        self.assertIn("Added source", self.output())
        sources = self.cli._citations("1").list()
        self.assertEqual(len(sources), 3)
        self.assertEqual(sources[0].notes, "Imported from DOI: 10.1000/182")

    def test_doi_is_posted_to_resolver_route(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={"metadata": {"title": "Served Title", "authors": ["Roe, J."], "year": "2020"}})

        self.use_server(handler)
        self.cli.cmd_import_doi("1", "10.5555/abc")
        self.assertEqual(seen, [("POST", "/api/citations/resolve", {"doi": "10.5555/abc"})])
        self.assertIn("Served Title", self.output())
        self.assertEqual(len(self.cli._citations("1").list()), 2)

    def test_server_error_is_reported(self):
        self.use_server(lambda request: httpx.Response(500, json={"error": "Failed to resolve DOI"}))
        with self.assertLogs("researchflow.cli", level="WARNING"):
            self.cli.cmd_import_doi("1", "10.1000/182", save=True)
        self.assertIn("Failed to resolve DOI.", self.output())
        self.assertEqual(len(self.cli._citations("1").list()), 2)

    def test_unreachable_server_is_reported(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        self.use_server(handler)
        with self.assertLogs("researchflow.cli", level="WARNING"):
            self.cli.cmd_import_doi("1", "10.1000/182")
        self.assertIn("Failed to resolve DOI.", self.output())


class TestMain(CLITestCase):
    def test_exit_codes(self):
        self.assertEqual(main(["new", "Essay on Soil", "--topic", "Ecology", "--type", "Essay"]), 0)
        self.assertEqual(self.cli.repo.search("soil")[0].topic, "Ecology")
        self.assertEqual(main(["show", "404", "abstract"]), 1)
        self.assertEqual(main(["remove-source", "1", "nope"]), 1)

    def test_parser_rejects_unknown_task(self):
        with self.assertRaises(SystemExit):
            create_parser().parse_args(["ai", "1", "abstract", "translate"])


if __name__ == "__main__":
    unittest.main()
