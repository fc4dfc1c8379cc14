"""GitHub GraphQL client exceptions."""

from typing import Any


class GitHubError(Exception):
    """Base exception for GitHub API errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: dict[str, Any] | None = None,
    ):
        """Initialize GitHub error.

        Args:
            message: Error message
            status_code: HTTP status code
            response_data: Response data from GitHub API
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}


class GitHubNotAuthenticatedError(GitHubError):
    """Raised when no credential is available for a request."""

    def __init__(self, message: str = "GitHub client not authenticated"):
        super().__init__(message)


class GitHubInvalidResponseError(GitHubError):
    """Raised when the transport response cannot be interpreted."""

    pass


class GitHubHTTPError(GitHubError):
    """Raised when GitHub answers with a non-2xx status."""

    pass


class GitHubAuthenticationError(GitHubHTTPError):
    """Raised when the credential is rejected."""

    pass


class GitHubNotFoundError(GitHubHTTPError):
    """Raised when resource is not found."""

    pass


class GitHubServerError(GitHubHTTPError):
    """Raised when GitHub server returns 5xx error."""

    pass


class GitHubConnectionError(GitHubError):
    """Raised when connection to GitHub fails."""

    pass


class GitHubTimeoutError(GitHubError):
    """Raised when request times out."""

    pass


class GitHubGraphQLError(GitHubError):
    """Raised when a query or mutation reports errors in its payload.

    A response carrying both ``data`` and a non-empty ``errors`` array is
    still a failure.
    """

    def __init__(
        self,
        messages: list[str],
        response_data: dict[str, Any] | None = None,
    ):
        """Initialize GraphQL error.

        Args:
            messages: Error messages reported by the API
            response_data: Full response payload
        """
        self.messages = messages or ["Unknown GraphQL error"]
        super().__init__("; ".join(self.messages), response_data=response_data)


class GitHubMergeQueuedError(GitHubError):
    """Sentinel raised when a PR was enqueued instead of merged directly.

    Not a real failure: the merge is in progress on the remote side.
    """

    def __init__(
        self,
        message: str = "PR has been added to the merge queue",
        position: int | None = None,
    ):
        super().__init__(message)
        self.position = position


class PullRequestMutationError(GitHubError):
    """User-visible failure of an approve/merge/enqueue mutation."""

    def __init__(
        self,
        action: str,
        pr_id: int,
        pr_number: int,
        pr_title: str,
        message: str,
    ):
        """Initialize mutation error.

        Args:
            action: Mutation that failed (approve, merge, enqueue)
            pr_id: Local PR identity
            pr_number: PR number within its repository
            pr_title: PR title
            message: Underlying error message
        """
        super().__init__(f"Failed to {action} PR #{pr_number} ({pr_title}): {message}")
        self.action = action
        self.pr_id = pr_id
        self.pr_number = pr_number
        self.pr_title = pr_title
        self.reason = message
