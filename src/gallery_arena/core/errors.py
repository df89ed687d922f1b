"""Custom exceptions for configuration and engine errors."""

from __future__ import annotations


class ConfigurationError(Exception):
    """Base exception for configuration errors with optional suggestions."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[Configuration Error] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg


class MissingFieldError(ConfigurationError):
    """Error when a required field is missing from a seed or config file."""

    def __init__(self, field: str, config_path: str) -> None:
        super().__init__(
            f"Missing required field '{field}' in {config_path}",
            "Add the field to your file.",
        )


class ArenaError(Exception):
    """Base exception for rating engine errors."""

    label = "Arena Error"

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[{self.label}] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg


class InvalidReference(ArenaError):
    """A vote references an item that does not exist or is inactive."""

    label = "Invalid Reference"

    def __init__(self, item_id: str, reason: str = "item not found or inactive") -> None:
        self.item_id = item_id
        self.reason = reason
        super().__init__(f"{reason}: {item_id}", "Fetch a fresh matchup and vote again.")


class QuotaExceeded(ArenaError):
    """Anonymous caller has no matchup allowance left."""

    label = "Quota Exceeded"

    def __init__(self, remaining: int = 0) -> None:
        self.remaining = remaining
        super().__init__(
            "Anonymous matchup allowance used up",
            "Sign in to keep voting.",
        )


class StoreUnavailable(ArenaError):
    """The persistence layer failed mid-operation."""

    label = "Store Unavailable"

    def __init__(self, operation: str, detail: str | None = None) -> None:
        self.operation = operation
        message = f"Store failed during '{operation}'"
        if detail:
            message += f": {detail}"
        super().__init__(message, "Retry the whole operation.")
