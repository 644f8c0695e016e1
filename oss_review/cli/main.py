"""oss-review command line.

Each command is one step of the OSS review workflow. Commands exit 0 on
success and 1 on any handled failure; `parse approval` and
`parse approval-request` use the exit code as their answer.
"""

import json
import os
import sys
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import click

from .. import __version__
from .._dtrack import DependencyTrackClient, DependencyTrackConfig
from .._github import GitHubClient, GitHubConfig, split_assignees
from .._guidelines import (
    DEFAULT_GUIDELINES_PATH,
    ComponentContext,
    Guideline,
    LicenseGuideProvider,
    LoadState,
    build_guidelines_map,
)
from .._review import (
    APPROVAL_ISSUE_LABEL,
    ReviewResultsDocument,
    approval_issue_title,
    parse_approval_decision,
    parse_approval_request_flag,
    parse_review_response,
    render_approval_issue,
    render_pr_comment,
    render_review_request,
)
from ..config import PRE_PROJECT_VERSION_KEY, read_config
from ..console import console, gha_error, gha_warning, print_diff_summary, print_resolution, print_success
from ..diff import build_diff_result
from ..exceptions import ConfigurationError, DTClientError, FileProcessingError, OssReviewError
from ..logging_config import logger
from ..models import SBOM, Component, DiffResult
from ..validation import load_sbom_file
from ..version_resolver import SBOMSource, resolve_previous_version

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

REVIEW_FORM_FILE = "review-issue-form.yml"
REVIEW_MARKDOWN_FILE = "review-issue.md"
APPROVAL_MARKDOWN_FILE = "approval-issue.md"
PR_COMMENT_FILE = "pr-comment.md"


def handle_errors(func: Callable) -> Callable:
    """Report OssReviewError as a diagnostic and exit 1."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except OssReviewError as e:
            logger.error(str(e))
            gha_error(str(e), title=type(e).__name__)
            sys.exit(1)

    return wrapper


def write_github_output(values: Dict[str, Any]) -> None:
    """Append step outputs to $GITHUB_OUTPUT when running in GitHub Actions."""
    output_path = os.getenv("GITHUB_OUTPUT")
    if not output_path:
        return
    with open(output_path, "a", encoding="utf-8") as f:
        for key, value in values.items():
            if isinstance(value, bool):
                value = "true" if value else "false"
            f.write(f"{key}={value}\n")


def is_github_actions() -> bool:
    return os.getenv("GITHUB_ACTIONS") == "true"


def _load_json(path: str, what: str) -> Any:
    try:
        with Path(path).open("r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        raise FileProcessingError(f"{what} file not found: {path}")
    except json.JSONDecodeError as e:
        raise FileProcessingError(f"{what} file is not valid JSON: {e}")
    except OSError as e:
        raise FileProcessingError(f"Failed to read {what} file: {e}")


def _write_text(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise FileProcessingError(f"Failed to write {path}: {e}")
    logger.info(f"Wrote {path}")


def _write_json(path: Path, data: Any) -> None:
    _write_text(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def _load_diff_result(path: str) -> DiffResult:
    data = _load_json(path, "Diff result")
    try:
        return DiffResult.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise FileProcessingError(f"Invalid diff result file {path}: {e}")


def dt_client() -> DependencyTrackClient:
    config = DependencyTrackConfig.from_env()
    if config is None:
        raise ConfigurationError("DT_API_KEY is not set")
    return DependencyTrackClient(config)


class _UnconfiguredDependencyTrack:
    """Baseline lookup used without DT_API_KEY; the resolver reports the failure as dt-not-found."""

    def get_sbom(self, project_name: str, version: str) -> Optional[SBOM]:
        raise ConfigurationError("DT_API_KEY is not set")


def baseline_source() -> SBOMSource:
    config = DependencyTrackConfig.from_env()
    if config is None:
        return _UnconfiguredDependencyTrack()
    return DependencyTrackClient(config)


def github_client() -> GitHubClient:
    config = GitHubConfig.from_env()
    if config is None:
        raise ConfigurationError("GITHUB_TOKEN and GITHUB_REPOSITORY (owner/repo) must be set")
    return GitHubClient(config)


def context_options(func: Callable) -> Callable:
    """Options describing how the changed components are used."""
    func = click.option(
        "--distributed/--not-distributed",
        "is_distributed",
        default=None,
        help="Whether the components are distributed to third parties.",
    )(func)
    func = click.option(
        "--link-type",
        type=click.Choice(["static", "dynamic"]),
        default=None,
        help="How the components are linked.",
    )(func)
    func = click.option(
        "--modified/--not-modified",
        "is_modified",
        default=None,
        help="Whether the components are modified.",
    )(func)
    return func


def _common_instructions(provider: LicenseGuideProvider, license_ids) -> Dict[str, str]:
    instructions: Dict[str, str] = {}
    for license_id in license_ids:
        text = provider.get_common_instructions(license_id)
        if text:
            instructions[license_id] = text
    return instructions


def _guidelines_for(diffs, provider: LicenseGuideProvider, context: ComponentContext) -> Dict[str, List[Guideline]]:
    guidelines_map = build_guidelines_map(diffs, provider, context)
    if provider.state is LoadState.FAILED:
        gha_warning(
            f"Could not load {provider.config_path}; every license gets the default guideline",
            title="License guidelines",
        )
    return guidelines_map


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, prog_name="oss-review")
def cli() -> None:
    """SBOM diffing and OSS license review for releases."""


@cli.command("config")
@click.option("--repo-root", default=".", show_default=True, help="Repository root holding the config file.")
def config_command(repo_root: str) -> None:
    """Show the oss-management-system.yml settings."""
    result = read_config(repo_root)
    if not result.success:
        gha_error(result.error or "Unknown error", title="Config")
        sys.exit(1)

    value = result.config.pre_project_version if result.config else None
    console.print(f"Config file: {result.file_path}")
    console.print(f"{PRE_PROJECT_VERSION_KEY}: {value or '(not set)'}")


@cli.command("resolve-version")
@click.argument("project_name")
@click.argument("current_version")
@click.option("--repo-root", default=".", show_default=True, help="Repository root holding the config file.")
@handle_errors
def resolve_version_command(project_name: str, current_version: str, repo_root: str) -> None:
    """Decide which earlier release CURRENT_VERSION is compared against."""
    resolution = resolve_previous_version(read_config(repo_root), project_name, current_version, baseline_source())
    print_resolution(resolution)
    write_github_output(
        {
            "previous_version": resolution.previous_version or "",
            "is_first_version": resolution.is_first_version,
            "version_source": resolution.source,
        }
    )


@cli.command("diff")
@click.argument("current_sbom")
@click.argument("previous_sbom")
@click.argument("output", default="diff-result.json")
@handle_errors
def diff_command(current_sbom: str, previous_sbom: str, output: str) -> None:
    """Compare two CycloneDX SBOM files and write the diff as JSON."""
    current = load_sbom_file(current_sbom, label="current")
    previous = load_sbom_file(previous_sbom, label="previous")
    result = build_diff_result(current, previous)

    _write_json(Path(output), result.to_dict())
    print_diff_summary(result)

    counts = result.counts()
    write_github_output(
        {
            "has_changes": bool(result.diffs),
            "added_count": counts["added"],
            "updated_count": counts["updated"],
            "removed_count": counts["removed"],
            "diff_file": output,
        }
    )


@cli.group("dt")
def dt_group() -> None:
    """Dependency-Track operations."""


@dt_group.command("get-sbom")
@click.argument("project_name")
@click.argument("version")
@click.argument("output", default="sbom.json")
@handle_errors
def dt_get_sbom_command(project_name: str, version: str, output: str) -> None:
    """Download the SBOM of a project version."""
    sbom = dt_client().get_sbom(project_name, version)
    if sbom is None:
        raise DTClientError(f"SBOM not found in Dependency-Track: {project_name}:{version}")
    _write_json(Path(output), sbom.to_dict())
    print_success(f"SBOM saved to {output} ({len(sbom.components)} components)")


@dt_group.command("upload-sbom")
@click.argument("project_name")
@click.argument("version")
@click.argument("sbom_file")
@handle_errors
def dt_upload_sbom_command(project_name: str, version: str, sbom_file: str) -> None:
    """Register an SBOM file as a project version."""
    sbom = load_sbom_file(sbom_file)
    project_uuid = dt_client().upload_sbom(project_name, version, sbom)
    print_success(f"SBOM uploaded, project UUID: {project_uuid}")
    write_github_output({"project_uuid": project_uuid})


@dt_group.command("set-property")
@click.argument("project_name")
@click.argument("version")
@click.argument("component_json")
@click.argument("property_name")
@click.argument("property_value")
@handle_errors
def dt_set_property_command(
    project_name: str,
    version: str,
    component_json: str,
    property_name: str,
    property_value: str,
) -> None:
    """Set a property on one component of a project version.

    COMPONENT_JSON is a JSON object with name, version and optional group.
    """
    try:
        data = json.loads(component_json)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"COMPONENT_JSON is not valid JSON: {e}")
    if not isinstance(data, dict) or not data.get("name"):
        raise ConfigurationError("COMPONENT_JSON must be an object with at least a name")
    component = Component.from_dict(data)

    client = dt_client()
    project = client.get_project(project_name, version)
    if project is None:
        raise DTClientError(f"Project not found: {project_name}:{version}")
    client.set_component_property(project.uuid, component, property_name, property_value)
    print_success(f"Set {property_name} on {component.full_name}")


@cli.group("issue")
def issue_group() -> None:
    """Create review and approval issues."""


@issue_group.command("review")
@click.argument("version")
@click.argument("diff_result")
@click.argument("sbom_url")
@click.argument("guidelines", default=DEFAULT_GUIDELINES_PATH)
@click.argument("assignee", required=False)
@click.option("--output-dir", default=".", show_default=True, help="Where to write the rendered documents.")
@context_options
@handle_errors
def issue_review_command(
    version: str,
    diff_result: str,
    sbom_url: str,
    guidelines: str,
    assignee: Optional[str],
    output_dir: str,
    is_modified: Optional[bool],
    link_type: Optional[str],
    is_distributed: Optional[bool],
) -> None:
    """Render the review request for a release and open it as an issue."""
    result = _load_diff_result(diff_result)
    if not result.diffs:
        console.print("No component changes; no review is needed.")
        write_github_output({"issue_created": False})
        return

    provider = LicenseGuideProvider(guidelines)
    context = ComponentContext(is_modified=is_modified, link_type=link_type, is_distributed=is_distributed)
    guidelines_map = _guidelines_for(result.diffs, provider, context)
    request = render_review_request(
        version,
        result.diffs,
        guidelines_map,
        sbom_url,
        common_instructions=_common_instructions(provider, guidelines_map),
    )

    out = Path(output_dir)
    body = request.to_markdown()
    _write_text(out / REVIEW_FORM_FILE, request.to_issue_form())
    _write_text(out / REVIEW_MARKDOWN_FILE, body)

    if not is_github_actions():
        print_success(f"Review request written to {out / REVIEW_MARKDOWN_FILE}")
        return

    issue_number = github_client().create_issue(request.title, body, request.labels, split_assignees(assignee))
    print_success(f"Review issue #{issue_number} created")
    write_github_output({"issue_created": True, "issue_number": issue_number})


@issue_group.command("approval")
@click.argument("version")
@click.argument("review_results")
@click.argument("sbom_url")
@click.argument("review_json_url")
@click.argument("assignee", required=False)
@click.option("--output-dir", default=".", show_default=True, help="Where to write the rendered document.")
@handle_errors
def issue_approval_command(
    version: str,
    review_results: str,
    sbom_url: str,
    review_json_url: str,
    assignee: Optional[str],
    output_dir: str,
) -> None:
    """Render the approval request for a completed review and open it as an issue."""
    data = _load_json(review_results, "Review results")
    try:
        document = ReviewResultsDocument.from_dict(data)
    except (KeyError, TypeError, AttributeError) as e:
        raise FileProcessingError(f"Invalid review results file {review_results}: {e}")
    body = render_approval_issue(version, document.results, sbom_url, review_json_url)

    path = Path(output_dir) / APPROVAL_MARKDOWN_FILE
    _write_text(path, body)

    if not is_github_actions():
        print_success(f"Approval request written to {path}")
        return

    issue_number = github_client().create_issue(
        approval_issue_title(version), body, [APPROVAL_ISSUE_LABEL], split_assignees(assignee)
    )
    print_success(f"Approval issue #{issue_number} created")
    write_github_output({"issue_number": issue_number})


@cli.group("parse")
def parse_group() -> None:
    """Read decisions back from issue bodies.

    ISSUE_BODY is a file, "-" for stdin, or "#N" to fetch issue N from
    GITHUB_REPOSITORY.
    """


def _read_issue_body(source: str) -> str:
    if source.startswith("#") and source[1:].isdigit():
        return github_client().get_issue_body(int(source[1:]))
    try:
        with click.open_file(source, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise FileProcessingError(f"Failed to read issue body {source}: {e}")


@parse_group.command("review")
@click.argument("issue_body")
@click.argument("reviewer")
@click.argument("version")
@click.argument("output", default="review-results.json")
@handle_errors
def parse_review_command(issue_body: str, reviewer: str, version: str, output: str) -> None:
    """Extract the reviewer's answers from a review issue body."""
    document = parse_review_response(_read_issue_body(issue_body), reviewer, version)
    _write_json(Path(output), document.to_dict())
    print_success(f"Parsed {len(document.results)} component reviews into {output}")
    write_github_output({"results_file": output})


@parse_group.command("approval")
@click.argument("issue_body")
@handle_errors
def parse_approval_command(issue_body: str) -> None:
    """Exit 0 if the approval checkbox is checked, 1 otherwise."""
    approved = parse_approval_decision(_read_issue_body(issue_body))
    write_github_output({"approved": approved})
    console.print("Approved" if approved else "Not approved")
    sys.exit(0 if approved else 1)


@parse_group.command("approval-request")
@click.argument("issue_body")
@handle_errors
def parse_approval_request_command(issue_body: str) -> None:
    """Exit 0 if administrator approval was requested, 1 otherwise."""
    requested = parse_approval_request_flag(_read_issue_body(issue_body))
    write_github_output({"approval_requested": requested})
    console.print("Approval requested" if requested else "Approval not requested")
    sys.exit(0 if requested else 1)


@cli.command("comment")
@click.argument("pr_number", type=int)
@click.argument("diff_result")
@click.argument("sbom_url")
@click.argument("guidelines", default=DEFAULT_GUIDELINES_PATH)
@context_options
@handle_errors
def comment_command(
    pr_number: int,
    diff_result: str,
    sbom_url: str,
    guidelines: str,
    is_modified: Optional[bool],
    link_type: Optional[str],
    is_distributed: Optional[bool],
) -> None:
    """Post the SBOM diff and license guidelines on a pull request."""
    result = _load_diff_result(diff_result)
    context = ComponentContext(is_modified=is_modified, link_type=link_type, is_distributed=is_distributed)
    guidelines_map = _guidelines_for(result.diffs, LicenseGuideProvider(guidelines), context)

    body = render_pr_comment(result.diffs, guidelines_map, sbom_url)
    _write_text(Path(PR_COMMENT_FILE), body)
    github_client().post_comment(pr_number, body)
    print_success(f"Commented on #{pr_number}")


def main() -> None:
    """Console script entry point; usage errors exit 1 like any other failure."""
    try:
        cli.main(prog_name="oss-review", standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(1)
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
