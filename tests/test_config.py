import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from researchflow.config import Settings, load_llm_models, model_for_family, save_api_keys

CLEAN_ENV = {"ANTHROPIC_API_KEY": "", "OPENAI_API_KEY": "", "RESEARCHFLOW_AI_MODE": ""}


class SettingsTestCase(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.base = Path(tmp.name)
        (self.base / ".metadata").mkdir()
        Settings.reset()
        self.addCleanup(Settings.reset)

    def write(self, name, text):
        (self.base / ".metadata" / name).write_text(text, encoding="utf-8")

    def load(self, **env):
        with patch.dict(os.environ, {**CLEAN_ENV, **env}):
            return Settings.load(base_dir=self.base)


class TestDefaults(SettingsTestCase):
    def test_defaults_without_files(self):
        settings = self.load()
        self.assertEqual(settings.ai_mode, "mock")
        self.assertEqual(settings.doi_resolver, "mock")
        self.assertEqual(settings.mock_delay, (1.0, 2.5))
        self.assertEqual(settings.resolve_delay, 1.5)
        self.assertEqual(settings.autosave_delay, 0.8)
        self.assertIsNone(settings.anthropic_api_key)
        self.assertEqual(settings.db_path, self.base / "researchflow.db")
        self.assertEqual(settings.server_url, "http://127.0.0.1:8000")

    def test_singleton(self):
        first = self.load()
        self.assertIs(Settings.load(), first)
        first.update(ai_mode="relay")
        self.assertEqual(Settings.load().ai_mode, "relay")

    def test_update_rejects_unknown_field(self):
        with self.assertRaises(AttributeError):
            self.load().update(colour="blue")

    def test_example_files_are_copied(self):
        example = self.base / ".metadata.example"
        example.mkdir()
        (example / "settings.yaml").write_text("ai_mode: relay\n", encoding="utf-8")
        (self.base / ".metadata").rmdir()
        settings = self.load()
        self.assertTrue((self.base / ".metadata" / "settings.yaml").exists())
        self.assertEqual(settings.ai_mode, "relay")


class TestYaml(SettingsTestCase):
    def test_values_read(self):
        self.write(
            "settings.yaml",
            "ai_mode: relay\n"
            "doi_resolver: crossref\n"
            "contact_email: me@example.org\n"
            "mock_delay: [3, 1]\n"
            "export_delay: 0\n"
            "seed_samples: false\n"
            "port: 9000\n"
            "log_level: debug\n",
        )
        settings = self.load()
        self.assertEqual(settings.ai_mode, "relay")
        self.assertEqual(settings.doi_resolver, "crossref")
        self.assertEqual(settings.contact_email, "me@example.org")
        self.assertEqual(settings.mock_delay, (1.0, 3.0))
        self.assertEqual(settings.export_delay, 0.0)
        self.assertFalse(settings.seed_samples)
        self.assertEqual(settings.port, 9000)
        self.assertEqual(settings.log_level, "DEBUG")

    def test_bad_values_ignored(self):
        self.write("settings.yaml", "ai_mode: magic\nmock_delay: [a, b]\nport: eighty\nresolve_delay: -4\n")
        settings = self.load()
        self.assertEqual(settings.ai_mode, "mock")
        self.assertEqual(settings.mock_delay, (1.0, 2.5))
        self.assertEqual(settings.port, 8000)
        self.assertEqual(settings.resolve_delay, 0.0)

    def test_unparseable_file(self):
        self.write("settings.yaml", "ai_mode: [unclosed\n")
        with self.assertLogs("researchflow.config", level="WARNING"):
            settings = self.load()
        self.assertEqual(settings.ai_mode, "mock")

    def test_api_keys_and_env_override(self):
        save_api_keys(self.base / ".metadata" / "api_keys.yaml", "sk-ant-file", None)
        settings = self.load(OPENAI_API_KEY="sk-env", RESEARCHFLOW_AI_MODE="relay")
        self.assertEqual(settings.anthropic_api_key, "sk-ant-file")
        self.assertEqual(settings.openai_api_key, "sk-env")
        self.assertEqual(settings.api_key_for("anthropic"), "sk-ant-file")
        self.assertEqual(settings.api_key_for("openai"), "sk-env")
        self.assertIsNone(settings.api_key_for("mistral"))
        self.assertEqual(settings.ai_mode, "relay")

    def test_env_key_beats_file(self):
        self.write("api_keys.yaml", "anthropic_api_key: from-file\nopenai_api_key: ''\n")
        settings = self.load(ANTHROPIC_API_KEY="from-env")
        self.assertEqual(settings.anthropic_api_key, "from-env")
        self.assertIsNone(settings.openai_api_key)


class TestModelRegistry(unittest.TestCase):
    def test_registry(self):
        models = {m.provider_id: m for m in load_llm_models()}
        self.assertEqual(models["anthropic"].family, "analysis")
        self.assertEqual(models["anthropic"].max_output, 500)
        self.assertEqual(models["openai"].family, "rewrite")
        self.assertTrue(models["openai"].base_url.startswith("https://api.openai.com/"))

    def test_model_for_family(self):
        self.assertEqual(model_for_family("rewrite").provider_id, "openai")
        self.assertEqual(model_for_family("analysis").provider_id, "anthropic")
        self.assertIsNone(model_for_family("vision"))


if __name__ == "__main__":
    unittest.main()
