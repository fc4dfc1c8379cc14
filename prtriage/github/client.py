"""GitHub GraphQL client with authentication, retries, and error mapping."""

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any

import aiohttp

from .auth import AuthProvider
from .exceptions import (
    GitHubAuthenticationError,
    GitHubConnectionError,
    GitHubError,
    GitHubGraphQLError,
    GitHubHTTPError,
    GitHubInvalidResponseError,
    GitHubNotAuthenticatedError,
    GitHubNotFoundError,
    GitHubServerError,
    GitHubTimeoutError,
)
from .queries import operation_name

logger = logging.getLogger(__name__)


@dataclass
class GraphQLClientConfig:
    """Configuration for GitHub GraphQL client."""

    graphql_url: str = "https://api.github.com/graphql"
    timeout: int = 30
    max_retries: int = 2
    retry_backoff_factor: float = 2.0
    user_agent: str = "prtriage/1.0"
    max_concurrent_requests: int = 4


class GitHubGraphQLClient:
    """Async client for the single GitHub GraphQL endpoint."""

    def __init__(
        self,
        auth: AuthProvider | None = None,
        config: GraphQLClientConfig | None = None,
    ) -> None:
        """Initialize GraphQL client.

        Args:
            auth: Authentication provider, may be set later with set_auth
            config: Client configuration
        """
        self.auth = auth
        self.config = config or GraphQLClientConfig()

        # HTTP session will be initialized on first use
        self._session: aiohttp.ClientSession | None = None
        self._session_lock = asyncio.Lock()
        self._request_semaphore = asyncio.Semaphore(self.config.max_concurrent_requests)

    async def __aenter__(self) -> "GitHubGraphQLClient":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def set_auth(self, auth: AuthProvider | None) -> None:
        """Replace the credential used for subsequent requests."""
        self.auth = auth

    @property
    def is_authenticated(self) -> bool:
        return self.auth is not None

    async def _ensure_session(self) -> None:
        """Ensure HTTP session is initialized."""
        if self._session is None or self._session.closed:
            async with self._session_lock:
                if self._session is None or self._session.closed:
                    timeout = aiohttp.ClientTimeout(total=self.config.timeout)
                    self._session = aiohttp.ClientSession(
                        timeout=timeout,
                        headers={
                            "User-Agent": self.config.user_agent,
                            "Content-Type": "application/json",
                        },
                    )

    async def close(self) -> None:
        """Close HTTP session and cleanup resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        *,
        idempotent: bool = True,
    ) -> dict[str, Any]:
        """Run a query or mutation and return its ``data`` object.

        Args:
            query: GraphQL document
            variables: Query variables
            idempotent: Whether transport failures may be retried. Mutations
                pass False so an approval is never submitted twice.

        Returns:
            The ``data`` member of the response

        Raises:
            GitHubNotAuthenticatedError: No credential configured
            GitHubGraphQLError: Response carried a non-empty ``errors`` array
            GitHubError: Transport, HTTP, or decoding failure
        """
        if self.auth is None:
            raise GitHubNotAuthenticatedError()

        body: dict[str, Any] = {"query": query}
        if variables:
            body["variables"] = variables

        auth_token = await self.auth.get_token()
        payload = await self._post(
            body, auth_token.to_header(), operation_name(query), idempotent
        )
        return self._extract_data(payload)

    async def _post(
        self,
        body: dict[str, Any],
        headers: dict[str, str],
        operation: str,
        idempotent: bool,
    ) -> dict[str, Any]:
        correlation_id = str(uuid.uuid4())[:8]

        await self._ensure_session()
        if not self._session:
            raise GitHubConnectionError("Failed to initialize HTTP session")

        attempts = self.config.max_retries + 1 if idempotent else 1
        last_exception: GitHubError | None = None

        for attempt in range(attempts):
            try:
                async with self._request_semaphore:
                    start_time = time.time()
                    logger.debug(
                        f"GraphQL request [{correlation_id}] {operation} "
                        f"(attempt {attempt + 1})"
                    )

                    async with self._session.post(
                        self.config.graphql_url, json=body, headers=headers
                    ) as response:
                        logger.debug(
                            f"GraphQL response [{correlation_id}] {response.status} "
                            f"in {time.time() - start_time:.2f}s"
                        )
                        if response.status != 200:
                            await self._handle_error_response(response, correlation_id)
                        return await self._read_json(response)

            except TimeoutError:
                last_exception = GitHubTimeoutError(f"Request timeout for {operation}")
            except aiohttp.ClientError as e:
                last_exception = GitHubConnectionError(
                    f"Connection error for {operation}: {e}"
                )
            except GitHubServerError as e:
                last_exception = e

            if attempt < attempts - 1:
                backoff_time = self.config.retry_backoff_factor**attempt
                logger.warning(
                    f"Request [{correlation_id}] failed (attempt {attempt + 1}), "
                    f"retrying in {backoff_time:.1f}s: {last_exception}"
                )
                await asyncio.sleep(backoff_time)

        if last_exception:
            raise last_exception
        raise GitHubError(f"Request failed after {attempts} attempts")

    async def _read_json(self, response: aiohttp.ClientResponse) -> dict[str, Any]:
        try:
            payload = await response.json(content_type=None)
        except (json.JSONDecodeError, aiohttp.ContentTypeError, ValueError) as e:
            raise GitHubInvalidResponseError(
                f"Invalid response from GitHub API: {e}", response.status
            ) from e

        if not isinstance(payload, dict):
            raise GitHubInvalidResponseError(
                "Invalid response from GitHub API: expected a JSON object",
                response.status,
            )
        return payload

    async def _handle_error_response(
        self, response: aiohttp.ClientResponse, correlation_id: str
    ) -> None:
        """Raise the error matching a non-200 response.

        Args:
            response: HTTP response
            correlation_id: Request correlation ID

        Raises:
            GitHubHTTPError: Appropriate error based on status code
        """
        try:
            error_data = await response.json(content_type=None)
            if not isinstance(error_data, dict):
                error_data = {"message": str(error_data)}
        except (json.JSONDecodeError, aiohttp.ContentTypeError, ValueError):
            error_data = {"message": await response.text()}

        error_message = error_data.get("message") or f"HTTP error: {response.status}"

        logger.warning(
            f"GitHub API error [{correlation_id}] {response.status}: {error_message}"
        )

        if response.status in (401, 403):
            raise GitHubAuthenticationError(error_message, response.status, error_data)
        elif response.status == 404:
            raise GitHubNotFoundError(error_message, response.status, error_data)
        elif 500 <= response.status < 600:
            raise GitHubServerError(error_message, response.status, error_data)
        else:
            raise GitHubHTTPError(error_message, response.status, error_data)

    @staticmethod
    def _extract_data(payload: dict[str, Any]) -> dict[str, Any]:
        errors = payload.get("errors")
        if errors:
            messages = [
                str(err.get("message", "Unknown GraphQL error"))
                if isinstance(err, dict)
                else str(err)
                for err in errors
            ]
            logger.warning(f"GraphQL errors: {'; '.join(messages)}")
            raise GitHubGraphQLError(messages, response_data=payload)

        data = payload.get("data")
        if not isinstance(data, dict):
            raise GitHubInvalidResponseError(
                "Invalid response from GitHub API: missing data", 200, payload
            )
        return data
