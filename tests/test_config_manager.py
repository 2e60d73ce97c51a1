"""
Tests for the ConfigManager.
"""
import json
import os
import tempfile
import unittest

import yaml

from quantum_gate_emulator.utils.config_manager import ConfigManager
from quantum_gate_emulator.utils.error_handler import ConfigurationError


class TestConfigManager(unittest.TestCase):
    """
    Test cases for the ConfigManager class.
    """

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config = ConfigManager()

    def tearDown(self):
        self.temp_dir.cleanup()

    def _path(self, name):
        return os.path.join(self.temp_dir.name, name)

    def test_defaults(self):
        self.assertEqual(self.config.get("backend"), "auto")
        self.assertEqual(self.config.get("precision"), "double")
        self.assertTrue(self.config.get("validate_inputs"))
        self.assertEqual(self.config.get("output.decimals"), 3)
        self.assertEqual(self.config.get("performance.dispatch_order"), "sequential")
        self.assertIsNone(self.config.get("performance.missing"))
        self.assertEqual(self.config.get("performance.missing", 5), 5)

    def test_load_yaml(self):
        path = self._path("config.yaml")
        with open(path, 'w') as f:
            yaml.safe_dump({"backend": "host", "performance": {"lanes": 2, "dispatch_order": "reversed"}}, f)

        config = ConfigManager(path)
        self.assertEqual(config.get("backend"), "host")
        self.assertEqual(config.get("performance.lanes"), 2)
        # Sibling defaults survive the merge
        self.assertEqual(config.get("performance.memory_limit_mb"), None)
        self.assertIn("performance.lanes", config.modified_keys)

    def test_load_json(self):
        path = self._path("config.json")
        with open(path, 'w') as f:
            json.dump({"precision": "single", "output": {"decimals": 5}}, f)

        config = ConfigManager(path)
        self.assertEqual(config.get("precision"), "single")
        self.assertEqual(config.get("output.decimals"), 5)

    def test_missing_file(self):
        with self.assertRaises(ConfigurationError):
            ConfigManager(self._path("missing.yaml"))

    def test_unsupported_format(self):
        path = self._path("config.ini")
        with open(path, 'w') as f:
            f.write("[section]\n")
        with self.assertRaises(ConfigurationError):
            ConfigManager(path)

    def test_malformed_file(self):
        path = self._path("config.json")
        with open(path, 'w') as f:
            f.write("{not json")
        with self.assertRaises(ConfigurationError):
            ConfigManager(path)

    def test_validation_errors(self):
        invalid = [
            {"backend": "tpu"},
            {"precision": "half"},
            {"group_size": 0},
            {"group_size": True},
            {"validate_inputs": "yes"},
            {"device": {"id": -1}},
            {"output": {"decimals": 40}},
            {"logging": {"level": "VERBOSE"}},
            {"performance": {"lanes": 0}},
            {"performance": {"dispatch_order": "random"}},
            {"performance": 4},
            {"unknown_key": 1},
        ]
        for config_dict in invalid:
            with self.subTest(config=config_dict):
                self.assertTrue(self.config.validate_config(config_dict))
                with self.assertRaises(ConfigurationError):
                    self.config.load_from_dict(config_dict)

    def test_set_and_reset(self):
        self.config.set("performance.lanes", 8)
        self.assertEqual(self.config.get("performance.lanes"), 8)

        with self.assertRaises(ConfigurationError):
            self.config.set("backend", "opencl")
        self.assertEqual(self.config.get("backend"), "auto")

        self.config.reset("performance.lanes")
        self.assertIsNone(self.config.get("performance.lanes"))

        self.config.set("backend", "host")
        self.config.reset()
        self.assertEqual(self.config.get("backend"), "auto")
        self.assertEqual(self.config.modified_keys, set())

    def test_save_and_reload(self):
        self.config.set("group_size", 64)
        for fmt, name in (("json", "saved.json"), ("yaml", "saved.yaml")):
            path = self._path(name)
            self.config.save_config(path, format=fmt)
            reloaded = ConfigManager(path)
            self.assertEqual(reloaded.get("group_size"), 64)
            self.assertEqual(reloaded.as_dict(), self.config.as_dict())


if __name__ == '__main__':
    unittest.main()
