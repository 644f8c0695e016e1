"""Tests for the Click CLI interface."""

import json
import os
import sys
import tempfile
import unittest
from importlib import import_module
from pathlib import Path
from unittest.mock import patch

import requests
from click.testing import CliRunner

from oss_review import __version__
from oss_review._guidelines import DEFAULT_GUIDELINE
from oss_review._review import APPROVAL_LABEL, render_review_request
from oss_review.cli.main import cli, main
from oss_review.models import SBOM, Added, ComparisonInfo, Component, DiffResult, License, Updated

# oss_review.cli re-exports the `main` function, so import the module object explicitly for patching.
cli_main_module = import_module("oss_review.cli.main")

GUIDELINES_FILE = str(Path(__file__).parent / "data" / "license-guidelines.yml")


def _bom(components, version=None):
    data = {"bomFormat": "CycloneDX", "specVersion": "1.6", "components": components}
    if version is not None:
        data["version"] = version
    return data


def _diff_result():
    return DiffResult(
        comparison_info=ComparisonInfo("2", "1", "2024-01-01T00:00:00Z"),
        diffs=[
            Added(
                Component(name="log4j-core", version="2.17.1", group="org.apache", licenses=[License(id="Apache-2.0")])
            ),
            Updated(Component(name="lib", version="2.0", licenses=[License(id="MIT")]), previous_version="1.0"),
        ],
    )


def _read_outputs(path):
    with open(path, encoding="utf-8") as f:
        return dict(line.rstrip("\n").split("=", 1) for line in f if "=" in line)


class CLITestCase(unittest.TestCase):
    """Base class with a CliRunner and a scratch directory."""

    def setUp(self):
        self.runner = CliRunner()
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.output_file = os.path.join(self.tmpdir.name, "github_output")

    def path(self, name):
        return os.path.join(self.tmpdir.name, name)

    def write(self, name, content):
        path = self.path(name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content if isinstance(content, str) else json.dumps(content))
        return path


class TestCLIHelp(CLITestCase):
    """Tests for help and version output."""

    def test_help_option(self):
        """Test that --help lists every command."""
        result = self.runner.invoke(cli, ["--help"])
        self.assertEqual(result.exit_code, 0)
        for command in ("config", "resolve-version", "diff", "dt", "issue", "parse", "comment"):
            self.assertIn(command, result.output)

    def test_short_help_option(self):
        """Test the -h alias."""
        result = self.runner.invoke(cli, ["-h"])
        self.assertEqual(result.exit_code, 0)

    def test_version_option(self):
        """Test that --version prints the package version."""
        result = self.runner.invoke(cli, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn(__version__, result.output)


class TestMainEntryPoint(unittest.TestCase):
    """Tests for the console script entry point."""

    def test_missing_arguments_exit_1(self):
        """Test that a usage error exits 1."""
        with patch.object(sys, "argv", ["oss-review", "diff"]):
            with self.assertRaises(SystemExit) as ctx:
                main()
        self.assertEqual(ctx.exception.code, 1)

    def test_unknown_command_exit_1(self):
        """Test that an unknown command exits 1."""
        with patch.object(sys, "argv", ["oss-review", "frobnicate"]):
            with self.assertRaises(SystemExit) as ctx:
                main()
        self.assertEqual(ctx.exception.code, 1)


class TestConfigCommand(CLITestCase):
    """Tests for the config command."""

    def test_config_found(self):
        """Test printing the configured pre-project-version."""
        self.write("oss-management-system.yml", "pre-project-version: v1.0.0\n")
        result = self.runner.invoke(cli, ["config", "--repo-root", self.tmpdir.name])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("pre-project-version: v1.0.0", result.output)

    def test_config_key_not_set(self):
        """Test the placeholder for an unset pre-project-version."""
        self.write("oss-management-system.yml", "other: 1\n")
        result = self.runner.invoke(cli, ["config", "--repo-root", self.tmpdir.name])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("(not set)", result.output)

    def test_config_missing(self):
        """Test that a missing config file exits 1."""
        result = self.runner.invoke(cli, ["config", "--repo-root", self.tmpdir.name])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("File not found", result.output)


class TestResolveVersionCommand(CLITestCase):
    """Tests for the resolve-version command."""

    def test_no_config_and_no_api_key(self):
        """Test that a first release resolves without Dependency-Track credentials."""
        result = self.runner.invoke(
            cli,
            ["resolve-version", "app", "v1.0.0", "--repo-root", self.tmpdir.name],
            env={"GITHUB_OUTPUT": self.output_file},
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(
            _read_outputs(self.output_file),
            {"previous_version": "", "is_first_version": "true", "version_source": "first-version"},
        )

    def test_config_without_api_key_falls_back(self):
        """Test that a configured baseline without DT_API_KEY degrades to dt-not-found."""
        self.write("oss-management-system.yml", "pre-project-version: v1.0.0\n")
        result = self.runner.invoke(
            cli,
            ["resolve-version", "app", "v2.0.0", "--repo-root", self.tmpdir.name],
            env={"GITHUB_OUTPUT": self.output_file},
        )
        self.assertEqual(result.exit_code, 0, result.output)
        outputs = _read_outputs(self.output_file)
        self.assertEqual(outputs["is_first_version"], "true")
        self.assertEqual(outputs["version_source"], "dt-not-found")

    def test_resolved_from_config(self):
        """Test that a baseline found in Dependency-Track is used."""
        self.write("oss-management-system.yml", "pre-project-version: v1.0.0\n")
        with patch.object(cli_main_module, "DependencyTrackClient") as client_class:
            client_class.return_value.get_sbom.return_value = SBOM.empty()
            result = self.runner.invoke(
                cli,
                ["resolve-version", "app", "v2.0.0", "--repo-root", self.tmpdir.name],
                env={"DT_API_KEY": "key", "GITHUB_OUTPUT": self.output_file},
            )
        self.assertEqual(result.exit_code, 0, result.output)
        client_class.return_value.get_sbom.assert_called_once_with("app", "v1.0.0")
        self.assertEqual(
            _read_outputs(self.output_file),
            {"previous_version": "v1.0.0", "is_first_version": "false", "version_source": "config-file"},
        )

    def test_first_version_without_config(self):
        """Test that no service call is made without a config file."""
        with patch.object(cli_main_module, "DependencyTrackClient") as client_class:
            result = self.runner.invoke(
                cli,
                ["resolve-version", "app", "v1.0.0", "--repo-root", self.tmpdir.name],
                env={"DT_API_KEY": "key", "GITHUB_OUTPUT": self.output_file},
            )
        self.assertEqual(result.exit_code, 0, result.output)
        client_class.return_value.get_sbom.assert_not_called()
        outputs = _read_outputs(self.output_file)
        self.assertEqual(outputs["previous_version"], "")
        self.assertEqual(outputs["is_first_version"], "true")
        self.assertEqual(outputs["version_source"], "first-version")


class TestDiffCommand(CLITestCase):
    """Tests for the diff command."""

    def test_diff_written(self):
        """Test the diff file and the step outputs."""
        current = self.write("current.json", _bom([{"name": "a", "version": "2"}, {"name": "b", "version": "1"}], 2))
        previous = self.write("previous.json", _bom([{"name": "a", "version": "1"}, {"name": "c", "version": "1"}], 1))
        output = self.path("diff-result.json")

        result = self.runner.invoke(cli, ["diff", current, previous, output], env={"GITHUB_OUTPUT": self.output_file})

        self.assertEqual(result.exit_code, 0, result.output)
        with open(output, encoding="utf-8") as f:
            data = json.load(f)
        self.assertEqual(data["comparisonInfo"]["currentVersion"], "2")
        self.assertEqual([d["changeType"] for d in data["diffs"]], ["updated", "added", "removed"])
        outputs = _read_outputs(self.output_file)
        self.assertEqual(outputs["has_changes"], "true")
        self.assertEqual(outputs["added_count"], "1")
        self.assertEqual(outputs["updated_count"], "1")
        self.assertEqual(outputs["removed_count"], "1")

    def test_default_output_path(self):
        """Test that diff-result.json is the default output."""
        with self.runner.isolated_filesystem(temp_dir=self.tmpdir.name):
            Path("current.json").write_text(json.dumps(_bom([])), encoding="utf-8")
            Path("previous.json").write_text(json.dumps(_bom([])), encoding="utf-8")
            result = self.runner.invoke(cli, ["diff", "current.json", "previous.json"])
            self.assertEqual(result.exit_code, 0, result.output)
            self.assertTrue(Path("diff-result.json").exists())

    def test_invalid_sbom(self):
        """Test that an invalid SBOM exits 1 naming the SBOM."""
        current = self.write("current.json", {"bomFormat": "SPDX", "components": []})
        previous = self.write("previous.json", _bom([]))
        result = self.runner.invoke(cli, ["diff", current, previous, self.path("out.json")])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Invalid current SBOM", result.output)

    def test_missing_file(self):
        """Test that a missing SBOM file exits 1."""
        result = self.runner.invoke(cli, ["diff", self.path("nope.json"), self.path("nope2.json")])
        self.assertEqual(result.exit_code, 1)


class TestDtCommands(CLITestCase):
    """Tests for the dt command group."""

    def test_get_sbom_not_found(self):
        """Test that a missing SBOM exits 1 without writing a file."""
        with patch.object(cli_main_module, "DependencyTrackClient") as client_class:
            client_class.return_value.get_sbom.return_value = None
            result = self.runner.invoke(
                cli, ["dt", "get-sbom", "app", "v1", self.path("sbom.json")], env={"DT_API_KEY": "key"}
            )
        self.assertEqual(result.exit_code, 1)
        self.assertFalse(os.path.exists(self.path("sbom.json")))

    def test_get_sbom_non_json_response(self):
        """Test that an HTML answer from Dependency-Track is a handled failure."""
        response = requests.Response()
        response.status_code = 200
        response._content = b"<html>Sign in</html>"
        response.encoding = "utf-8"
        with patch("oss_review._dtrack.client.requests.request", return_value=response):
            result = self.runner.invoke(
                cli, ["dt", "get-sbom", "app", "v1", self.path("sbom.json")], env={"DT_API_KEY": "key"}
            )
        self.assertEqual(result.exit_code, 1)
        self.assertIsInstance(result.exception, SystemExit)
        self.assertIn("unexpected response", result.output)

    def test_get_sbom(self):
        """Test writing a downloaded SBOM."""
        with patch.object(cli_main_module, "DependencyTrackClient") as client_class:
            client_class.return_value.get_sbom.return_value = SBOM.from_dict(_bom([{"name": "a", "version": "1"}], 3))
            result = self.runner.invoke(
                cli, ["dt", "get-sbom", "app", "v1", self.path("sbom.json")], env={"DT_API_KEY": "key"}
            )
        self.assertEqual(result.exit_code, 0, result.output)
        with open(self.path("sbom.json"), encoding="utf-8") as f:
            self.assertEqual(json.load(f)["version"], 3)

    def test_upload_sbom(self):
        """Test that the project UUID is written as a step output."""
        sbom_file = self.write("sbom.json", _bom([{"name": "a", "version": "1"}]))
        with patch.object(cli_main_module, "DependencyTrackClient") as client_class:
            client_class.return_value.upload_sbom.return_value = "p-1"
            result = self.runner.invoke(
                cli,
                ["dt", "upload-sbom", "app", "v1", sbom_file],
                env={"DT_API_KEY": "key", "GITHUB_OUTPUT": self.output_file},
            )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(_read_outputs(self.output_file), {"project_uuid": "p-1"})

    def test_set_property(self):
        """Test that the component JSON is passed to the client."""
        with patch.object(cli_main_module, "DependencyTrackClient") as client_class:
            client = client_class.return_value
            client.get_project.return_value.uuid = "p-1"
            result = self.runner.invoke(
                cli,
                ["dt", "set-property", "app", "v1", '{"group": "org", "name": "lib", "version": "1.0"}', "k", "v"],
                env={"DT_API_KEY": "key"},
            )
        self.assertEqual(result.exit_code, 0, result.output)
        project_uuid, component, name, value = client.set_component_property.call_args[0]
        self.assertEqual(project_uuid, "p-1")
        self.assertEqual((component.group, component.name, component.version), ("org", "lib", "1.0"))
        self.assertEqual((name, value), ("k", "v"))

    def test_set_property_invalid_json(self):
        """Test that malformed component JSON exits 1."""
        result = self.runner.invoke(
            cli, ["dt", "set-property", "app", "v1", "{not json", "k", "v"], env={"DT_API_KEY": "key"}
        )
        self.assertEqual(result.exit_code, 1)

    def test_set_property_project_not_found(self):
        """Test that an unknown project exits 1."""
        with patch.object(cli_main_module, "DependencyTrackClient") as client_class:
            client_class.return_value.get_project.return_value = None
            result = self.runner.invoke(
                cli, ["dt", "set-property", "app", "v1", '{"name": "lib"}', "k", "v"], env={"DT_API_KEY": "key"}
            )
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Project not found", result.output)


class TestIssueCommands(CLITestCase):
    """Tests for the issue command group."""

    def setUp(self):
        super().setUp()
        self.diff_file = self.write("diff-result.json", _diff_result().to_dict())

    def test_review_written_locally(self):
        """Test that the review documents are written outside GitHub Actions."""
        result = self.runner.invoke(
            cli,
            ["issue", "review", "v2.0.0", self.diff_file, "https://example.com/sbom", GUIDELINES_FILE,
             "--output-dir", self.tmpdir.name, "--modified"],
        )
        self.assertEqual(result.exit_code, 0, result.output)
        body = Path(self.path("review-issue.md")).read_text(encoding="utf-8")
        self.assertIn("### org.apache:log4j-core (Apache-2.0)", body)
        self.assertIn("#### Modification summary", body)
        self.assertIn("> Keep the NOTICE file contents when redistributing.", body)
        self.assertTrue(os.path.exists(self.path("review-issue-form.yml")))

    def test_review_creates_issue_in_github_actions(self):
        """Test issue creation in GitHub Actions."""
        env = {
            "GITHUB_ACTIONS": "true",
            "GITHUB_TOKEN": "t",
            "GITHUB_REPOSITORY": "acme/widgets",
            "GITHUB_OUTPUT": self.output_file,
        }
        with patch.object(cli_main_module, "GitHubClient") as client_class:
            client_class.return_value.create_issue.return_value = 5
            result = self.runner.invoke(
                cli,
                ["issue", "review", "v2.0.0", self.diff_file, "https://example.com/sbom", GUIDELINES_FILE, "alice",
                 "--output-dir", self.tmpdir.name],
                env=env,
            )
        self.assertEqual(result.exit_code, 0, result.output)
        title, body, labels, assignees = client_class.return_value.create_issue.call_args[0]
        self.assertEqual(title, "[Review] OSS review v2.0.0")
        self.assertEqual(labels, ["oss-review"])
        self.assertEqual(assignees, ["alice"])
        self.assertIn("| Change | Component | Version | License |", body)
        self.assertEqual(_read_outputs(self.output_file), {"issue_created": "true", "issue_number": "5"})

    def test_review_without_github_credentials(self):
        """Test that GitHub Actions without a token exits 1."""
        result = self.runner.invoke(
            cli,
            ["issue", "review", "v2.0.0", self.diff_file, "https://example.com/sbom", GUIDELINES_FILE,
             "--output-dir", self.tmpdir.name],
            env={"GITHUB_ACTIONS": "true"},
        )
        self.assertEqual(result.exit_code, 1)
        self.assertIn("GITHUB_TOKEN", result.output)

    def test_review_no_changes(self):
        """Test that no review is rendered without changes."""
        empty = DiffResult(ComparisonInfo("1", "1", "2024-01-01T00:00:00Z"), [])
        diff_file = self.write("empty.json", empty.to_dict())
        result = self.runner.invoke(
            cli,
            ["issue", "review", "v1", diff_file, "https://example.com/sbom", GUIDELINES_FILE,
             "--output-dir", self.tmpdir.name],
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertFalse(os.path.exists(self.path("review-issue.md")))

    def test_review_bad_diff_file(self):
        """Test that an unreadable diff file exits 1."""
        bad = self.write("bad.json", "{")
        result = self.runner.invoke(cli, ["issue", "review", "v1", bad, "https://example.com/sbom"])
        self.assertEqual(result.exit_code, 1)

    def test_approval(self):
        """Test rendering the approval issue from review results."""
        results = {
            "version": "v2.0.0",
            "reviewedAt": "2024-01-01T00:00:00Z",
            "reviewer": "octocat",
            "results": [{"component": {"name": "lib", "version": "2.0"}, "license": "MIT", "actions": {"A": "Done"}}],
        }
        results_file = self.write("review-results.json", results)
        result = self.runner.invoke(
            cli,
            ["issue", "approval", "v2.0.0", results_file, "https://example.com/sbom", "https://example.com/r.json",
             "--output-dir", self.tmpdir.name],
        )
        self.assertEqual(result.exit_code, 0, result.output)
        body = Path(self.path("approval-issue.md")).read_text(encoding="utf-8")
        self.assertIn("| lib | 2.0 | MIT | 1 action |", body)
        self.assertIn(f"- [ ] {APPROVAL_LABEL}", body)


class TestParseCommands(CLITestCase):
    """Tests for the parse command group."""

    def test_parse_review(self):
        """Test writing review results from an issue body file."""
        diffs = _diff_result().diffs
        body = render_review_request("v2.0.0", diffs, {}, "https://example.com/sbom").to_markdown()
        body_file = self.write("issue.md", body)
        output = self.path("review-results.json")

        result = self.runner.invoke(cli, ["parse", "review", body_file, "octocat", "v2.0.0", output])

        self.assertEqual(result.exit_code, 0, result.output)
        with open(output, encoding="utf-8") as f:
            data = json.load(f)
        self.assertEqual(data["reviewer"], "octocat")
        self.assertEqual([r["component"]["name"] for r in data["results"]], ["log4j-core", "lib"])

    def test_parse_approval(self):
        """Test the exit codes of parse approval."""
        approved = self.write("approved.md", f"- [x] {APPROVAL_LABEL}\n")
        pending = self.write("pending.md", f"- [ ] {APPROVAL_LABEL}\n")
        self.assertEqual(self.runner.invoke(cli, ["parse", "approval", approved]).exit_code, 0)
        self.assertEqual(self.runner.invoke(cli, ["parse", "approval", pending]).exit_code, 1)

    def test_parse_approval_from_stdin(self):
        """Test reading the issue body from stdin."""
        result = self.runner.invoke(
            cli, ["parse", "approval", "-"], input=f"- [x] {APPROVAL_LABEL}\n", env={"GITHUB_OUTPUT": self.output_file}
        )
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(_read_outputs(self.output_file), {"approved": "true"})

    def test_parse_approval_request(self):
        """Test the exit codes of parse approval-request."""
        requested = self.write("requested.md", "- [x] Request administrator approval\n")
        self.assertEqual(self.runner.invoke(cli, ["parse", "approval-request", requested]).exit_code, 0)
        self.assertEqual(self.runner.invoke(cli, ["parse", "approval-request", self.write("no.md", "")]).exit_code, 1)

    def test_parse_approval_from_issue_number(self):
        """Test that "#N" reads the issue body from GitHub."""
        env = {"GITHUB_TOKEN": "t", "GITHUB_REPOSITORY": "acme/widgets"}
        with patch.object(cli_main_module, "GitHubClient") as client_class:
            client_class.return_value.get_issue_body.return_value = f"- [x] {APPROVAL_LABEL}\n"
            result = self.runner.invoke(cli, ["parse", "approval", "#7"], env=env)
        self.assertEqual(result.exit_code, 0, result.output)
        client_class.return_value.get_issue_body.assert_called_once_with(7)

    def test_parse_issue_number_requires_credentials(self):
        """Test that "#N" without GitHub credentials exits 1."""
        result = self.runner.invoke(cli, ["parse", "approval-request", "#7"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("GITHUB_TOKEN", result.output)

    def test_parse_missing_file(self):
        """Test that an unreadable issue body file exits 1."""
        result = self.runner.invoke(cli, ["parse", "review", self.path("missing.md"), "octocat", "v1"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Failed to read issue body", result.output)


class TestCommentCommand(CLITestCase):
    """Tests for the comment command."""

    def test_comment_posted(self):
        """Test posting the rendered comment."""
        diff_file = self.write("diff-result.json", _diff_result().to_dict())
        env = {"GITHUB_TOKEN": "t", "GITHUB_REPOSITORY": "acme/widgets"}
        with self.runner.isolated_filesystem(temp_dir=self.tmpdir.name):
            with patch.object(cli_main_module, "GitHubClient") as client_class:
                result = self.runner.invoke(
                    cli, ["comment", "12", diff_file, "https://example.com/sbom", GUIDELINES_FILE], env=env
                )
            self.assertEqual(result.exit_code, 0, result.output)
            self.assertTrue(Path("pr-comment.md").exists())
        number, body = client_class.return_value.post_comment.call_args[0]
        self.assertEqual(number, 12)
        self.assertIn("### License guidelines", body)
        self.assertIn("Include the Apache-2.0 license text", body)

    def test_comment_uses_default_guidelines_path(self):
        """Test that the comment falls back to the default guideline when no guidelines file is found."""
        diff_file = self.write("diff-result.json", _diff_result().to_dict())
        env = {"GITHUB_TOKEN": "t", "GITHUB_REPOSITORY": "acme/widgets"}
        with self.runner.isolated_filesystem(temp_dir=self.tmpdir.name):
            with patch.object(cli_main_module, "GitHubClient") as client_class:
                result = self.runner.invoke(cli, ["comment", "12", diff_file, "https://example.com/sbom"], env=env)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Could not load", result.output)
        _, body = client_class.return_value.post_comment.call_args[0]
        self.assertIn("### License guidelines", body)
        self.assertIn(DEFAULT_GUIDELINE.message, body)

    def test_comment_reads_default_guidelines_file(self):
        """Test that config/license-guidelines.yml is read when GUIDELINES is omitted."""
        diff_file = self.write("diff-result.json", _diff_result().to_dict())
        env = {"GITHUB_TOKEN": "t", "GITHUB_REPOSITORY": "acme/widgets"}
        with self.runner.isolated_filesystem(temp_dir=self.tmpdir.name):
            Path("config").mkdir()
            guidelines = Path(GUIDELINES_FILE).read_text(encoding="utf-8")
            Path("config/license-guidelines.yml").write_text(guidelines, encoding="utf-8")
            with patch.object(cli_main_module, "GitHubClient") as client_class:
                result = self.runner.invoke(cli, ["comment", "12", diff_file, "https://example.com/sbom"], env=env)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertNotIn("Could not load", result.output)
        _, body = client_class.return_value.post_comment.call_args[0]
        self.assertIn("Include the Apache-2.0 license text", body)

    def test_comment_requires_credentials(self):
        """Test that a missing GitHub token exits 1."""
        diff_file = self.write("diff-result.json", _diff_result().to_dict())
        with self.runner.isolated_filesystem(temp_dir=self.tmpdir.name):
            result = self.runner.invoke(cli, ["comment", "12", diff_file, "https://example.com/sbom"])
        self.assertEqual(result.exit_code, 1)


if __name__ == "__main__":
    unittest.main()
