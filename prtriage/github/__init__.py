"""GitHub GraphQL client package."""

from .auth import AuthProvider, AuthToken, TokenAuth, TokenResolver
from .client import GitHubGraphQLClient, GraphQLClientConfig
from .exceptions import (
    GitHubAuthenticationError,
    GitHubConnectionError,
    GitHubError,
    GitHubGraphQLError,
    GitHubHTTPError,
    GitHubInvalidResponseError,
    GitHubMergeQueuedError,
    GitHubNotAuthenticatedError,
    GitHubNotFoundError,
    GitHubServerError,
    GitHubTimeoutError,
    PullRequestMutationError,
)

__all__ = [
    "AuthProvider",
    "AuthToken",
    "GitHubAuthenticationError",
    "GitHubConnectionError",
    "GitHubError",
    "GitHubGraphQLClient",
    "GitHubGraphQLError",
    "GitHubHTTPError",
    "GitHubInvalidResponseError",
    "GitHubMergeQueuedError",
    "GitHubNotAuthenticatedError",
    "GitHubNotFoundError",
    "GitHubServerError",
    "GitHubTimeoutError",
    "GraphQLClientConfig",
    "PullRequestMutationError",
    "TokenAuth",
    "TokenResolver",
]
