import os
import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

from lingualive.configuration import (
    _format_validation_errors,
    _validate_settings,
    clear_cached_settings,
    get_settings,
)
from lingualive.errors import TranslationProviderConfigurationError


def settings(**overrides):
    values = {
        "LINGUALIVE_PROVIDER": "google",
        "LINGUALIVE_ENDPOINT": None,
        "LINGUALIVE_TIMEOUT": 10.0,
        "LINGUALIVE_SOURCE_LANGUAGE": "auto",
        "LINGUALIVE_DEFAULT_LANGUAGE": "es",
        "LINGUALIVE_PAGE_LANGUAGE": "es",
        "LINGUALIVE_STATE_FILE": None,
        "LINGUALIVE_PROVIDER_DEBUG": False,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class ValidateSettingsTests(unittest.TestCase):
    def test_defaults_are_valid(self):
        _validate_settings(settings())
        _validate_settings(settings(LINGUALIVE_ENDPOINT="https://oracle.example.test/t"))

    def test_collects_every_problem(self):
        with self.assertRaises(TranslationProviderConfigurationError) as ctx:
            _validate_settings(
                settings(
                    LINGUALIVE_ENDPOINT="ftp://oracle",
                    LINGUALIVE_TIMEOUT=0,
                    LINGUALIVE_PAGE_LANGUAGE=" ",
                )
            )
        message = str(ctx.exception)
        self.assertIn("LINGUALIVE_ENDPOINT", message)
        self.assertIn("LINGUALIVE_TIMEOUT", message)
        self.assertIn("LINGUALIVE_PAGE_LANGUAGE must not be empty.", message)


class FormatValidationErrorsTests(unittest.TestCase):
    def test_formats_paths_and_sources(self):
        text = _format_validation_errors(
            [
                {"path": ["LINGUALIVE_TIMEOUT"], "message": "not a number", "source": "env:process"},
                {"path": [], "msg": "broken"},
            ]
        )
        self.assertEqual(
            text,
            "Configuration validation errors detected:\n"
            "- LINGUALIVE_TIMEOUT: not a number (source: env:process)\n"
            "- broken",
        )


class GetSettingsTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.app_dir = Path(self._tmp.name)
        environ = {k: v for k, v in os.environ.items() if not k.startswith("LINGUALIVE_")}
        env_patch = patch.dict(os.environ, environ, clear=True)
        env_patch.start()
        self.addCleanup(env_patch.stop)
        clear_cached_settings()
        self.addCleanup(clear_cached_settings)

    def write_env(self, text):
        (self.app_dir / ".env").write_text(text, encoding="utf-8")

    def test_reads_dotenv_and_normalises_provider(self):
        self.write_env("LINGUALIVE_PROVIDER=gtx\nLINGUALIVE_PAGE_LANGUAGE=en\n")
        loaded = get_settings(app_dir=self.app_dir)
        self.assertEqual(loaded.LINGUALIVE_PROVIDER, "google")
        self.assertEqual(loaded.LINGUALIVE_PAGE_LANGUAGE, "en")
        self.assertEqual(loaded.LINGUALIVE_DEFAULT_LANGUAGE, "es")

    def test_settings_are_cached_until_cleared(self):
        self.write_env("LINGUALIVE_PAGE_LANGUAGE=en\n")
        self.assertEqual(get_settings(app_dir=self.app_dir).LINGUALIVE_PAGE_LANGUAGE, "en")

        self.write_env("LINGUALIVE_PAGE_LANGUAGE=fr\n")
        self.assertEqual(get_settings(app_dir=self.app_dir).LINGUALIVE_PAGE_LANGUAGE, "en")

        clear_cached_settings()
        self.assertEqual(get_settings(app_dir=self.app_dir).LINGUALIVE_PAGE_LANGUAGE, "fr")


if __name__ == "__main__":
    unittest.main()
