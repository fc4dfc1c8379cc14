"""GitHub credential handling.

The sync engine only ever sees an opaque bearer token. ``TokenResolver``
is the boundary that finds one, trying in order:

1. ``gh auth token`` from the GitHub CLI
2. An environment variable (``GITHUB_TOKEN`` by default)
3. A token file written by ``save_token``
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from .exceptions import GitHubNotAuthenticatedError

logger = logging.getLogger(__name__)


@dataclass
class AuthToken:
    """Authentication token with metadata."""

    token: str
    token_type: str = "Bearer"

    def to_header(self) -> dict[str, str]:
        """Convert to authorization header."""
        return {"Authorization": f"{self.token_type} {self.token}"}


class AuthProvider(ABC):
    """Abstract base class for authentication providers."""

    @abstractmethod
    async def get_token(self) -> AuthToken:
        """Get authentication token."""
        pass


class TokenAuth(AuthProvider):
    """Static bearer token authentication."""

    DEFAULT_TOKEN_TYPE = "Bearer"  # nosec B105

    def __init__(self, token: str, token_type: str | None = None):
        """Initialize token authentication.

        Args:
            token: Authentication token
            token_type: Type of token. Uses Bearer by default.
        """
        if not token:
            raise GitHubNotAuthenticatedError("Token is required")
        self._token = AuthToken(token=token, token_type=token_type or self.DEFAULT_TOKEN_TYPE)

    async def get_token(self) -> AuthToken:
        """Get authentication token."""
        return self._token


class TokenResolver:
    """Resolve a GitHub token from the CLI, the environment, or a token file."""

    def __init__(
        self,
        use_gh_cli: bool = True,
        env_var: str = "GITHUB_TOKEN",
        token_file: str | Path | None = None,
        gh_timeout: float = 10.0,
    ):
        self.use_gh_cli = use_gh_cli
        self.env_var = env_var
        self.token_file = Path(token_file).expanduser() if token_file else None
        self.gh_timeout = gh_timeout

    async def resolve(self) -> str | None:
        """Return the first available token, or None if no source has one."""
        if self.use_gh_cli:
            token = await self._token_from_gh_cli()
            if token:
                logger.info("Got token from gh CLI")
                return token
            logger.debug("No token available from gh CLI")

        env_token = os.environ.get(self.env_var, "").strip()
        if env_token:
            logger.info(f"Got token from {self.env_var} environment variable")
            return env_token

        file_token = self._token_from_file()
        if file_token:
            logger.info("Got token from token file")
            return file_token

        logger.warning("No token available from any source")
        return None

    async def _token_from_gh_cli(self) -> str | None:
        try:
            process = await asyncio.create_subprocess_exec(
                "gh",
                "auth",
                "token",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.debug(f"gh CLI unavailable: {e}")
            return None

        try:
            stdout, _ = await asyncio.wait_for(
                process.communicate(), timeout=self.gh_timeout
            )
        except TimeoutError:
            process.kill()
            await process.wait()
            logger.warning("gh auth token timed out")
            return None

        if process.returncode != 0:
            return None

        token = stdout.decode("utf-8", errors="replace").strip()
        return token or None

    def _token_from_file(self) -> str | None:
        if self.token_file is None or not self.token_file.is_file():
            return None
        try:
            token = self.token_file.read_text(encoding="utf-8").strip()
        except OSError as e:
            logger.warning(f"Failed to read token file {self.token_file}: {e}")
            return None
        return token or None

    def save_token(self, token: str) -> None:
        """Persist a user-provided token to the token file (mode 0600)."""
        if self.token_file is None:
            raise GitHubNotAuthenticatedError("No token file configured")
        self.token_file.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.token_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(token.strip())

    def clear_token(self) -> bool:
        """Delete the stored token. Returns True if a file was removed."""
        if self.token_file is None or not self.token_file.exists():
            return False
        self.token_file.unlink()
        return True

    def has_stored_token(self) -> bool:
        """Check whether the token file holds a token."""
        return self._token_from_file() is not None
