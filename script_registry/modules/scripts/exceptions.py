"""Script domain specific exceptions."""

from __future__ import annotations

REQUIRED_MESSAGE = "The {field} field is required."
TITLE_TAKEN_MESSAGE = "This title has already been used."
KEY_TAKEN_MESSAGE = "The key has already been taken."
INVALID_LANGUAGE_MESSAGE = "The selected language is invalid."
INVALID_DATA_MESSAGE = "The given data was invalid."


class ScriptError(Exception):
    """Base class for script domain errors."""


class ScriptValidationError(ScriptError):
    """Raised when a write violates a field constraint; nothing is persisted."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        self.errors = errors
        first = next(iter(errors.values()), [INVALID_DATA_MESSAGE])
        super().__init__(first[0] if first else INVALID_DATA_MESSAGE)


class ScriptNotFoundError(ScriptError):
    """Raised when the requested script cannot be found."""


class ScriptDeleteError(ScriptError):
    """Raised when deleting a script that does not exist."""


class ScriptExecutionError(ScriptError):
    """Raised when a preview run cannot produce output."""
