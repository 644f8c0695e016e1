"""Tests for the oss-management-system.yml reader."""

import os
import tempfile
import unittest

from oss_review.config import CONFIG_FILE_NAME, config_exists, read_config


class TestReadConfig(unittest.TestCase):
    """Tests for reading oss-management-system.yml."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.repo_root = self.tmpdir.name

    def _write_config(self, content):
        with open(os.path.join(self.repo_root, CONFIG_FILE_NAME), "w", encoding="utf-8") as f:
            f.write(content)

    def test_missing_file(self):
        """Test the missing file result."""
        self.assertFalse(config_exists(self.repo_root))
        result = read_config(self.repo_root)
        self.assertFalse(result.success)
        self.assertEqual(result.error, "File not found")
        self.assertTrue(result.file_path.endswith(CONFIG_FILE_NAME))
        self.assertIsNone(result.config)

    def test_valid_file(self):
        """Test reading pre-project-version."""
        self._write_config("pre-project-version: v1.0.0\n")
        self.assertTrue(config_exists(self.repo_root))
        result = read_config(self.repo_root)
        self.assertTrue(result.success)
        self.assertEqual(result.config.pre_project_version, "v1.0.0")
        self.assertIsNone(result.error)

    def test_missing_key(self):
        """Test a file without pre-project-version."""
        self._write_config("other-setting: true\n")
        result = read_config(self.repo_root)
        self.assertTrue(result.success)
        self.assertIsNone(result.config.pre_project_version)

    def test_numeric_version_kept_as_string(self):
        """Test that a numeric YAML version becomes a string."""
        self._write_config("pre-project-version: 1.5\n")
        result = read_config(self.repo_root)
        self.assertEqual(result.config.pre_project_version, "1.5")

    def test_invalid_yaml(self):
        """Test the YAML syntax error result."""
        self._write_config("pre-project-version: [unclosed\n")
        result = read_config(self.repo_root)
        self.assertFalse(result.success)
        self.assertTrue(result.error.startswith("Invalid YAML: "))

    def test_not_a_mapping(self):
        """Test a document that is not a mapping."""
        self._write_config("- v1.0.0\n- v2.0.0\n")
        result = read_config(self.repo_root)
        self.assertFalse(result.success)
        self.assertEqual(result.error, "Invalid YAML: Expected an object")

    def test_empty_file(self):
        """Test an empty config file."""
        self._write_config("")
        result = read_config(self.repo_root)
        self.assertFalse(result.success)
        self.assertEqual(result.error, "Invalid YAML: Expected an object")


if __name__ == "__main__":
    unittest.main()
