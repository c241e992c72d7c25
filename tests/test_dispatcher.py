import json
import tempfile
import unittest

import httpx
from fastapi.testclient import TestClient

from researchflow.config import Settings
from researchflow.errors import UnsupportedTaskError, ValidationError
from researchflow.gui.app import app
from researchflow.services.ai_tasks import MAX_WORD_TARGET
from researchflow.services.dispatcher import EMPTY_TEXT_NOTICE, FAILURE_NOTICE, AIDispatcher


def mock_client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler), base_url="http://testserver")


class TestLocalValidation(unittest.TestCase):
    def setUp(self):
        self.calls = []

        def handler(request):
            self.calls.append(request)
            return httpx.Response(200, json={})

        self.http = mock_client(handler)
        self.addCleanup(self.http.close)
        self.dispatcher = AIDispatcher(self.http)

    def test_unknown_task_sends_nothing(self):
        with self.assertRaises(UnsupportedTaskError):
            self.dispatcher.invoke("translate", "text")
        self.assertEqual(self.calls, [])

    def test_empty_text_sends_nothing(self):
        for text in (None, "", "   \n"):
            with self.assertRaises(ValidationError) as ctx:
                self.dispatcher.invoke("rewrite", text)
            self.assertEqual(str(ctx.exception), EMPTY_TEXT_NOTICE)
        self.assertEqual(self.calls, [])

    def test_word_target_out_of_range_sends_nothing(self):
        for target in (0, MAX_WORD_TARGET + 1):
            with self.assertRaises(ValidationError):
                self.dispatcher.invoke("expand", "text", word_target=target)
        self.assertEqual(self.calls, [])

    def test_no_text_tasks_allowed_empty(self):
        result = self.dispatcher.invoke("rqs", "", field="Ecology")
        self.assertTrue(result.ok)
        self.assertEqual(len(self.calls), 1)


class TestRequestShape(unittest.TestCase):
    def test_body_fields(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"revised": "Short."})

        with mock_client(handler) as http:
            result = AIDispatcher(http).invoke("shorten", "A long text.", word_target=50, field="Law")

        self.assertEqual(bodies, [{"task": "shorten", "sectionText": "A long text.", "wordTarget": 50, "field": "Law"}])
        self.assertEqual(result.kind, "replace")
        self.assertEqual(result.revised, "Short.")

    def test_panel_result(self):
        with mock_client(lambda r: httpx.Response(200, json={"summary": "S."})) as http:
            result = AIDispatcher(http).invoke("summarize", "Some text.")
        self.assertEqual(result.kind, "panel")
        self.assertIsNone(result.revised)
        self.assertEqual(result.data, {"summary": "S."})

    def test_relay_answer_with_revised(self):
        with mock_client(lambda r: httpx.Response(200, json={"result": "Relayed.", "revised": "Relayed."})) as http:
            result = AIDispatcher(http).invoke("proofread", "text")
        self.assertEqual(result.revised, "Relayed.")

    def test_replacement_without_revised_is_a_failure(self):
        with mock_client(lambda r: httpx.Response(200, json={"result": "Relayed."})) as http:
            with self.assertLogs("researchflow.services.dispatcher", level="WARNING"):
                result = AIDispatcher(http).invoke("proofread", "text")
        self.assertFalse(result.ok)
        self.assertIsNone(result.revised)
        self.assertEqual(result.notice, FAILURE_NOTICE)

    def test_placeholder_answer_becomes_notice(self):
        body = {"result": "No API key set.", "fallback": True}
        with mock_client(lambda r: httpx.Response(200, json=body)) as http:
            with self.assertLogs("researchflow.services.dispatcher", level="WARNING"):
                result = AIDispatcher(http).invoke("critique", "text")
        self.assertFalse(result.ok)
        self.assertEqual(result.notice, "No API key set.")


class TestFailures(unittest.TestCase):
    def assertFailed(self, handler):
        with mock_client(handler) as http:
            dispatcher = AIDispatcher(http)
            with self.assertLogs("researchflow.services.dispatcher", level="WARNING"):
                result = dispatcher.invoke("critique", "text")
            self.assertFalse(dispatcher.busy)
        self.assertFalse(result.ok)
        self.assertEqual(result.notice, FAILURE_NOTICE)
        return result

    def test_server_error(self):
        self.assertFailed(lambda r: httpx.Response(500, json={"error": "Failed to get AI response"}))

    def test_bad_json(self):
        self.assertFailed(lambda r: httpx.Response(200, content=b"not json"))

    def test_non_object_body(self):
        self.assertFailed(lambda r: httpx.Response(200, json=["a"]))

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        self.assertFailed(handler)


class TestPendingTracking(unittest.TestCase):
    def test_pending_during_request(self):
        seen = []

        def handler(request):
            seen.append((dispatcher.busy, dispatcher.pending))
            return httpx.Response(200, json={"summary": "ok"})

        with mock_client(handler) as http:
            dispatcher = AIDispatcher(http)
            self.assertFalse(dispatcher.busy)
            dispatcher.invoke("summarize", "text")
            self.assertEqual(seen, [(True, ["summarize"])])
            self.assertEqual(dispatcher.pending, [])

    def test_overlapping_requests_tracked_separately(self):
        seen = []

        def handler(request):
            task = json.loads(request.content)["task"]
            if task == "critique":
                dispatcher.invoke("summarize", "text")
            seen.append(sorted(dispatcher.pending))
            return httpx.Response(200, json={"result": task})

        with mock_client(handler) as http:
            dispatcher = AIDispatcher(http)
            dispatcher.invoke("critique", "text")

        self.assertEqual(seen, [["critique", "summarize"], ["critique"]])
        self.assertFalse(dispatcher.busy)


class TestAgainstServer(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        Settings.reset()
        self.addCleanup(Settings.reset)
        Settings.load(base_dir=tmp.name).update(
            ai_mode="mock", mock_delay=(0.0, 0.0), anthropic_api_key=None, openai_api_key=None
        )

    def test_round_trip_through_app(self):
        with TestClient(app) as client:
            dispatcher = AIDispatcher(client)
            result = dispatcher.invoke("rewrite", "We don't have a lot of data.")
            self.assertTrue(result.ok)
            self.assertEqual(result.revised, "We do not have a substantial number of data.")

            result = dispatcher.invoke("hypotheses", "", field="Ecology")
            self.assertEqual(len(result.data["suggestions"]), 3)


if __name__ == "__main__":
    unittest.main()
