import unittest

from researchflow.errors import UnsupportedTaskError
from researchflow.services.ai_tasks import (
    ANALYTICAL_TASKS,
    MAX_WORD_TARGET,
    REPLACEMENT_TASKS,
    mock_response,
    requires_text,
    task_family,
)
from researchflow.utils.text import word_count

SAMPLE = (
    "Artificial intelligence is changing how students write. "
    "Recent studies report gains in drafting speed (Chen, 2020). "
    "However, the effect on argument quality is less clear. "
    "This section reviews that evidence."
)


class TestCatalogue(unittest.TestCase):
    def test_families(self):
        for task in REPLACEMENT_TASKS:
            self.assertEqual(task_family(task), "rewrite")
        for task in ANALYTICAL_TASKS:
            self.assertEqual(task_family(task), "analysis")
        with self.assertRaises(UnsupportedTaskError):
            task_family("translate")

    def test_text_requirement(self):
        self.assertFalse(requires_text("rqs"))
        self.assertFalse(requires_text("suggest_citations"))
        self.assertTrue(requires_text("summarize"))
        self.assertTrue(requires_text("rewrite"))


class TestReplacementTasks(unittest.TestCase):
    def test_rewrite_formal_register(self):
        out = mock_response("rewrite", "We don't have a lot of data.")
        self.assertEqual(out, {"revised": "We do not have a substantial number of data."})

    def test_proofread(self):
        out = mock_response("proofread", "this is  a test ,with the the error")
        self.assertEqual(out["revised"], "This is a test, with the error.")

    def test_shorten_keeps_whole_sentences(self):
        text = "One two three four five. Six seven eight nine ten. Eleven twelve thirteen fourteen fifteen."
        out = mock_response("shorten", text, word_target=10)
        self.assertEqual(out["revised"], "One two three four five. Six seven eight nine ten.")

    def test_expand_reaches_target(self):
        out = mock_response("expand", "A short claim.", word_target=120, field="education")
        self.assertTrue(out["revised"].startswith("A short claim."))
        self.assertGreaterEqual(word_count(out["revised"]), 120)
        self.assertIn("education", out["revised"])

    def test_word_target_is_capped(self):
        out = mock_response("expand", "Short text.", word_target=2_000_000)
        self.assertLess(word_count(out["revised"]), MAX_WORD_TARGET + 100)

    def test_non_positive_word_target(self):
        text = "One two three four five. Six seven eight nine ten."
        self.assertEqual(mock_response("shorten", text, word_target=-5)["revised"], "One...")

    def test_list_conversions(self):
        self.assertEqual(
            mock_response("bullets_to_paragraph", "- first point\n* second point\n1. third")["revised"],
            "First point. Second point. Third.",
        )
        self.assertEqual(
            mock_response("paragraph_to_bullets", "First idea. Second idea here.")["revised"],
            "- First idea.\n- Second idea here.",
        )


class TestAnalyticalTasks(unittest.TestCase):
    def test_critique_shape(self):
        feedback = mock_response("critique", SAMPLE)["feedback"]
        self.assertEqual(set(feedback), {"strengths", "weaknesses", "suggestions"})
        self.assertIn("Claims are supported with in-text citations.", feedback["strengths"])
        self.assertTrue(any("brief" in w for w in feedback["weaknesses"]))

    def test_ideation_without_text(self):
        out = mock_response("rqs", "", field="Climate Science", notes="coastal flooding")
        self.assertEqual(len(out["suggestions"]), 4)
        self.assertIn("coastal flooding", out["suggestions"][0])
        self.assertIn("Climate Science", out["suggestions"][0])
        self.assertEqual(len(mock_response("hypotheses", "")["suggestions"]), 3)
        self.assertEqual(len(mock_response("contributions", "")["suggestions"]), 3)

    def test_suggest_citations(self):
        citations = mock_response("suggest_citations", field="AI in education")["citations"]
        self.assertEqual(len(citations), 3)
        for c in citations:
            self.assertTrue(c["doi"].startswith("10."))
            self.assertEqual(c["url"], "https://doi.org/" + c["doi"])
            self.assertIn("AI in education", c["relevance"])

    def test_text_payloads(self):
        summary = mock_response("summarize", SAMPLE)["summary"]
        self.assertEqual(
            summary,
            "Artificial intelligence is changing how students write. "
            "Recent studies report gains in drafting speed (Chen, 2020).",
        )
        self.assertIn("(Chen, 2020)", mock_response("synthesize_sources", SAMPLE)["synthesis"])
        self.assertTrue(mock_response("organize", SAMPLE + "\n\nSecond paragraph here.")["outline"].startswith("## Suggested structure\n1. "))
        gaps = mock_response("spot_gaps", SAMPLE)["gaps"]
        self.assertIn("The text notes conflicting findings but does not explain why they conflict.", gaps)


if __name__ == "__main__":
    unittest.main()
