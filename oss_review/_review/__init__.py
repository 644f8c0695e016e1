"""Review document transform.

Renders component diffs and license guidelines into review requests, PR
comments and approval issues, and parses reviewer responses back into
structured results.
"""

from .approval import APPROVAL_ISSUE_LABEL, APPROVAL_LABEL, approval_issue_title, render_approval_issue
from .comment import NO_CHANGES_COMMENT, render_pr_comment
from .markdown import escape_markdown
from .models import DONE, NOT_DONE, ComponentReviewResult, ReviewedComponent, ReviewField, ReviewResultsDocument
from .parser import (
    parse_approval_decision,
    parse_approval_request_flag,
    parse_checkbox_state,
    parse_review_response,
)
from .request import (
    APPROVAL_REQUEST_LABEL,
    REVIEW_LABEL,
    ComponentSection,
    ReviewRequest,
    render_review_request,
    review_issue_title,
)

__all__ = [
    "APPROVAL_ISSUE_LABEL",
    "APPROVAL_LABEL",
    "APPROVAL_REQUEST_LABEL",
    "ComponentReviewResult",
    "ComponentSection",
    "DONE",
    "NOT_DONE",
    "NO_CHANGES_COMMENT",
    "REVIEW_LABEL",
    "ReviewField",
    "ReviewRequest",
    "ReviewResultsDocument",
    "ReviewedComponent",
    "approval_issue_title",
    "escape_markdown",
    "parse_approval_decision",
    "parse_approval_request_flag",
    "parse_checkbox_state",
    "parse_review_response",
    "render_approval_issue",
    "render_pr_comment",
    "render_review_request",
    "review_issue_title",
]
