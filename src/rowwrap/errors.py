"""Exception hierarchy for rowwrap."""

from __future__ import annotations


class RowwrapError(Exception):
    """Base exception for all rowwrap errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(RowwrapError):
    """Settings or wrap declarations failed validation."""


class MissingKeyError(RowwrapError):
    """A declared source key is absent from the record being wrapped."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        target_key: str,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.key = key
        self.target_key = target_key


class ModelBuildError(RowwrapError):
    """A model builder could not construct an object from a nested record."""

    def __init__(
        self, message: str, *, target_key: str, hint: str | None = None
    ) -> None:
        super().__init__(message, hint=hint)
        self.target_key = target_key
