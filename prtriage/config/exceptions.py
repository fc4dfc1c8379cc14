"""Errors raised while loading prtriage.yaml.

The CLI turns any of these into exit code 2 before the worker starts.
"""

from typing import Any


class ConfigurationError(Exception):
    """prtriage could not build an ``AppConfig``."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationFileError(ConfigurationError):
    """The YAML file is missing, is not a file, or does not hold a mapping.

    ``file_path`` names the offending file when known.
    """

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.file_path = file_path


class ConfigurationValidationError(ConfigurationError):
    """A section was rejected by its pydantic model or an env reference was unset.

    ``validation_errors`` holds pydantic's ``errors()`` entries, or the
    message of a failed ``${VAR}`` lookup.
    """

    def __init__(
        self,
        message: str,
        validation_errors: list[Any] | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.validation_errors = validation_errors or []
