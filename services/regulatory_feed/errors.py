"""
Pipeline Errors
===============

Exceptions surfaced by the pipeline stages to the API layer.

Version: 0.1.0
"""


class PipelineError(Exception):
    """A stage failed in a way that aborts the whole request."""

    status_code = 500

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage


class CircularNotFoundError(PipelineError):
    """The requested circular does not exist."""

    status_code = 404

    def __init__(self, circular_id: object) -> None:
        super().__init__(f"Circular {circular_id} not found")
        self.circular_id = circular_id
