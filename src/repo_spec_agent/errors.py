"""Exception taxonomy for repository analysis.

Only ``FetchError`` aborts an analysis. The others are raised inside one
file's processing and recovered by the orchestrator.
"""


class RepoSpecError(Exception):
    """Base class for analyzer errors."""


class FetchError(RepoSpecError):
    """The repository could not be cloned, even after the branch fallback."""

    def __init__(self, url: str, branch: str, reason: str):
        self.url = url
        self.branch = branch
        self.reason = reason
        super().__init__(f"Failed to clone {url} ({branch}): {reason}")


class ParseError(RepoSpecError):
    """A single file could not be turned into an OpenAPI document."""

    def __init__(self, file_path: str, reason: str):
        self.file_path = file_path
        self.reason = reason
        super().__init__(f"{file_path}: {reason}")


class DocCommentError(RepoSpecError):
    """No usable @swagger / @openapi block was found in a file."""


class EnrichmentError(RepoSpecError):
    """The AI collaborator returned nothing usable."""
