"""
Error types raised by the chapter pipeline.
"""


class ChapterGenError(Exception):
    """Base class for every error raised by chaptergen."""


class InvalidInput(ChapterGenError):
    """Empty or malformed transcript, or an unusable request."""


class LabelResponseError(ChapterGenError):
    """The labeling oracle answered with something we cannot use."""


class EmptyLabelResponse(LabelResponseError):
    """The labeling oracle returned no text."""

    def __init__(self, message: str = "Labeling oracle returned an empty response"):
        super().__init__(message)


class MalformedLabelResponse(LabelResponseError):
    """The oracle's text does not follow the "MM:SS title" line format."""

    def __init__(self, message: str, line: str | None = None):
        self.line = line
        super().__init__(message)


class JobNotFound(ChapterGenError):
    """A completion update was issued for a job that does not exist."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class CollaboratorFailure(ChapterGenError):
    """Wraps a transcript-source or oracle failure, keeping its message for display."""

    def __init__(self, collaborator: str, message: str):
        self.collaborator = collaborator
        self.message = message
        super().__init__(f"{collaborator} failed: {message}")
