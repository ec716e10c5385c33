"""
Tests for configuration loading.
"""
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from demand_forecasting.config import Config


class TestConfig(unittest.TestCase):

    def setUp(self):
        self.directory = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.directory, True)
        self.saved_instance = Config._instance
        Config._instance = None

    def tearDown(self):
        Config._instance = self.saved_instance

    def _load(self, ini_text=None, **env):
        path = Path(self.directory) / 'settings.ini'
        if ini_text is not None:
            path.write_text(ini_text)
        env['DEMAND_FORECASTING_CONFIG'] = str(path)
        with patch.dict(os.environ, env, clear=False):
            for name in ('DATABASE_URL', 'OPENAI_API_KEY', 'FORECAST_MODEL', 'ARCHIVE_DIRECTORY'):
                if name not in env:
                    os.environ.pop(name, None)
            return Config()

    def test_defaults_without_file(self):
        loaded = self._load()

        self.assertEqual(loaded.business_rules['default_forecast_days'], 30)
        self.assertEqual(loaded.business_rules['max_prompt_records'], 0)
        self.assertEqual(loaded.archive_config['prefix'], 'uploads')
        self.assertEqual(loaded.model_config['api_key'], '')

    def test_file_then_environment(self):
        ini = "[DATABASE]\nurl = sqlite:///from-file.db\n\n[BUSINESS_RULES]\nmax_prompt_records = 90\n"

        loaded = self._load(ini, DATABASE_URL='sqlite:///from-env.db', OPENAI_API_KEY='sk-test')

        self.assertEqual(loaded.get_db_url(), 'sqlite:///from-env.db')
        self.assertEqual(loaded.business_rules['max_prompt_records'], 90)
        self.assertEqual(loaded.model_config['api_key'], 'sk-test')

    def test_bad_number_falls_back_to_default(self):
        loaded = self._load("[FORECAST_MODEL]\nmax_tokens = lots\n")

        self.assertEqual(loaded.model_config['max_tokens'], 4000)


if __name__ == '__main__':
    unittest.main()
