"""
Engine Exceptions

Every error the engine raises derives from EngineError, so callers can
turn any of them into a user-facing message with one handler.

AlreadyConfirmedError means "nothing to do", not a failure: the month
already has its instance.
"""

from typing import Optional


class EngineError(Exception):
    """Base exception for engine operations."""
    pass


class NotFoundError(EngineError):
    """A referenced template or obligation is not in the working set."""

    def __init__(self, entity_type: str, entity_id):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.capitalize()} not found: {entity_id}")


class AlreadyConfirmedError(EngineError):
    """The template already has an instance for the requested month."""

    def __init__(self, template_id, month: str):
        self.template_id = template_id
        self.month = month
        super().__init__(f"Template {template_id} is already confirmed for {month}")


class InvalidInputError(EngineError, ValueError):
    """
    User input failed validation.

    `field` names the offending input; `issues` carries the full list of
    ValidationIssue objects when the error came from the validator.
    """

    def __init__(self, field: str, message: str, issues: Optional[list] = None):
        self.field = field
        self.issues = issues or []
        super().__init__(f"{field}: {message}")
