"""
Unit tests for GitHub authentication.

Why: The engine can only work with a token, and the token may come from the
     gh CLI, the environment, or a file the user saved.

What: Tests AuthToken, TokenAuth and TokenResolver source order and token
      file management.

How: Patches the gh subprocess and environment; uses a temporary token file.
"""

import os
import stat
from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

import pytest

from prtriage.github.auth import AuthToken, TokenAuth, TokenResolver
from prtriage.github.exceptions import GitHubNotAuthenticatedError


def fake_process(stdout: bytes, returncode: int = 0) -> Mock:
    process = Mock()
    process.communicate = AsyncMock(return_value=(stdout, b""))
    process.returncode = returncode
    return process


class TestTokenAuth:
    """Test static token provider."""

    async def test_header(self) -> None:
        token = await TokenAuth("abc").get_token()

        assert token == AuthToken(token="abc", token_type="Bearer")
        assert token.to_header() == {"Authorization": "Bearer abc"}

    def test_empty_token_rejected(self) -> None:
        with pytest.raises(GitHubNotAuthenticatedError):
            TokenAuth("")


class TestTokenResolver:
    """Test token source order."""

    async def test_gh_cli_first(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """
        Why: The gh CLI token is the one the user already manages
        What: Tests gh output wins over the environment variable
        How: Patches the subprocess to print a token
        """
        monkeypatch.setenv("GITHUB_TOKEN", "from-env")
        with patch(
            "prtriage.github.auth.asyncio.create_subprocess_exec",
            new=AsyncMock(return_value=fake_process(b"from-gh\n")),
        ) as exec_mock:
            token = await TokenResolver().resolve()

        assert token == "from-gh"
        assert exec_mock.await_args.args[:3] == ("gh", "auth", "token")

    async def test_env_when_gh_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", " from-env ")
        with patch(
            "prtriage.github.auth.asyncio.create_subprocess_exec",
            new=AsyncMock(side_effect=FileNotFoundError("gh")),
        ):
            assert await TokenResolver().resolve() == "from-env"

    async def test_env_when_gh_fails(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_TOKEN", "custom")
        with patch(
            "prtriage.github.auth.asyncio.create_subprocess_exec",
            new=AsyncMock(return_value=fake_process(b"", returncode=1)),
        ):
            assert await TokenResolver(env_var="MY_TOKEN").resolve() == "custom"

    async def test_token_file_last(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        resolver = TokenResolver(use_gh_cli=False, token_file=tmp_path / "token")

        assert await resolver.resolve() is None

        resolver.save_token("saved\n")
        assert await resolver.resolve() == "saved"

    def test_save_token_permissions(self, tmp_path: Path) -> None:
        path = tmp_path / "dir" / "token"
        resolver = TokenResolver(use_gh_cli=False, token_file=path)

        resolver.save_token("secret")

        assert path.read_text() == "secret"
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
        assert resolver.has_stored_token()

    def test_clear_token(self, tmp_path: Path) -> None:
        resolver = TokenResolver(use_gh_cli=False, token_file=tmp_path / "token")
        resolver.save_token("secret")

        assert resolver.clear_token() is True
        assert resolver.clear_token() is False
        assert not resolver.has_stored_token()

    def test_save_without_file(self) -> None:
        with pytest.raises(GitHubNotAuthenticatedError):
            TokenResolver(token_file=None).save_token("x")
