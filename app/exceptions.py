"""Service-layer errors.

All of them subclass ValueError so callers that only care about
"the request was rejected" can keep catching ValueError.
"""


class NotFoundError(ValueError):
    """A goal, task, session or subtask id did not resolve."""


class ImportValidationError(ValueError):
    """An import document is malformed. The store is left untouched."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class InvalidSessionError(ValueError):
    """A focus session transition was requested from the wrong state."""
