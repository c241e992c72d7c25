import unittest
from datetime import date

from researchflow.database.repository import PaperRepository
from researchflow.database.store import PAPERS_KEY, MemoryKeyValueStore, get_json
from researchflow.errors import NotFoundError, ValidationError


class TestPaperRepository(unittest.TestCase):
    def setUp(self):
        self.store = MemoryKeyValueStore()
        self.repo = PaperRepository(self.store)

    def test_samples_seeded_when_key_absent(self):
        papers = self.repo.list()
        self.assertEqual([p.id for p in papers], ["1", "2"])
        self.assertEqual(papers[0].progress, 65)
        self.assertEqual(len(get_json(self.store, PAPERS_KEY)), 2)

    def test_no_seed_when_disabled(self):
        self.assertEqual(PaperRepository(MemoryKeyValueStore(), seed_samples=False).list(), [])

    def test_create_prepends_one_paper(self):
        paper = self.repo.create("My Thesis", "Linguistics", "Thesis", due_date="2030-01-01")
        papers = self.repo.list()
        self.assertEqual(len(papers), 3)
        self.assertEqual(papers[0].id, paper.id)
        self.assertEqual(paper.progress, 0)
        self.assertEqual(paper.word_count, 0)
        self.assertEqual(paper.created_at, date.today().isoformat())
        self.assertEqual(papers[0].to_dict()["dueDate"], "2030-01-01")

    def test_create_requires_title_topic_type(self):
        for args in (("", "t", "x"), ("a", " ", "x"), ("a", "t", "")):
            with self.assertRaises(ValidationError):
                self.repo.create(*args)
        self.assertEqual(len(self.repo.list()), 2)

    def test_ids_are_unique_for_quick_creates(self):
        a = self.repo.create("A", "T", "Essay")
        b = self.repo.create("B", "T", "Essay")
        self.assertNotEqual(a.id, b.id)
        self.assertTrue(a.id.isdigit())

    def test_get_unknown(self):
        with self.assertRaises(NotFoundError):
            self.repo.get("999")

    def test_update_persists_settings(self):
        self.repo.update("2", title="Adaptation Strategies", due_date="2031-05-05")
        paper = self.repo.get("2")
        self.assertEqual(paper.title, "Adaptation Strategies")
        self.assertEqual(paper.due_date, "2031-05-05")
        with self.assertRaises(ValidationError):
            self.repo.update("2", title="   ")

    def test_record_save_updates_word_count_only(self):
        self.repo.record_save("1", 4200)
        paper = self.repo.get("1")
        self.assertEqual(paper.word_count, 4200)
        self.assertEqual(paper.progress, 65)
        self.assertIsNone(self.repo.record_save("nope", 1))

    def test_search_title_and_topic(self):
        self.assertEqual([p.id for p in self.repo.search("climate")], ["2"])
        self.assertEqual([p.id for p in self.repo.search("educational tech")], ["1"])
        self.assertEqual(len(self.repo.search("")), 2)


if __name__ == "__main__":
    unittest.main()
