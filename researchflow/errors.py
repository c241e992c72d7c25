"""Exception types shared by services and routes."""


class ResearchFlowError(Exception):
    """Base class for application errors."""


class ValidationError(ResearchFlowError):
    """Input rejected locally before any work is done (HTTP 400)."""


class UnsupportedTaskError(ResearchFlowError):
    """An AI task name that no handler knows about (HTTP 400)."""

    def __init__(self, task: str):
        super().__init__(f"Unsupported task: {task}")
        self.task = task


class NotFoundError(ResearchFlowError):
    """Unknown paper, section, source or version (HTTP 404)."""
