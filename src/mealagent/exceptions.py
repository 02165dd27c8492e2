"""Exceptions raised by the planning and pricing core."""


class MealAgentError(Exception):
    """Base exception for mealagent errors."""


class InvalidWeekPlanError(MealAgentError):
    """Raised when a week plan cannot be iterated day by day."""


class CollaboratorError(MealAgentError):
    """Raised by an external collaborator (cache, search, quota) that failed."""

    def __init__(self, message: str, collaborator: str | None = None):
        super().__init__(message)
        self.collaborator = collaborator
