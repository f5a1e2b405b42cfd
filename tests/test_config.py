import importlib
import os
import unittest
import warnings
from pathlib import Path
from unittest import mock

import utils.config as config
from utils.config import Settings


class SettingsTestCase(unittest.TestCase):
    def test_module_loads_without_deprecation_warnings(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            importlib.reload(config)

        self.assertEqual([w for w in caught if issubclass(w.category, DeprecationWarning)], [])

    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            s = Settings(_env_file=None)

        self.assertEqual(s.API_URL, "http://localhost:4000/api")
        self.assertEqual(s.LOW_STOCK_POLL_SECONDS, 300)
        self.assertEqual(s.SESSION_FILE.name, "session.json")
        self.assertFalse(s.DEBUG)

    def test_environment_overrides_and_unknown_keys_are_ignored(self):
        env = {"API_URL": "https://mart.example.com/api", "PAGE_SIZE": "25", "SESSION_FILE": "/tmp/s.json", "UNRELATED": "x"}
        with mock.patch.dict(os.environ, env, clear=True):
            s = Settings(_env_file=None)

        self.assertEqual(s.API_URL, "https://mart.example.com/api")
        self.assertEqual(s.PAGE_SIZE, 25)
        self.assertEqual(s.SESSION_FILE, Path("/tmp/s.json"))
        self.assertFalse(hasattr(s, "UNRELATED"))


if __name__ == "__main__":
    unittest.main()
