"""Shallow clone of a remote repository into a throwaway workspace."""

import logging
import shutil
import tempfile
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from git import Repo
from git.exc import GitCommandError
from pydantic import BaseModel

from repo_spec_agent.config import DEFAULT_CONFIG, AnalyzerConfig

logger = logging.getLogger("repo-spec-agent.fetcher")

CLONE_ENV = {"GIT_TERMINAL_PROMPT": "0"}


class FetchResult(BaseModel):
    success: bool
    path: Path | None = None
    branch: str | None = None  # the branch actually cloned
    error: str | None = None


def _clear(path: Path):
    if path.exists():
        shutil.rmtree(path, ignore_errors=True)


class RepositoryFetcher:
    """Clones repositories with ``git clone --depth 1 --single-branch``."""

    def __init__(self, config: AnalyzerConfig = DEFAULT_CONFIG):
        self.settings = config.settings

    def _clone_branch(self, url: str, dest: Path, branch: str):
        Repo.clone_from(url, str(dest), env=CLONE_ENV, depth=1, branch=branch, single_branch=True)

    def clone(self, url: str, dest: Path, branch: str | None = None) -> FetchResult:
        """Clone ``branch`` into ``dest``.

        When the requested branch is the default one and the clone fails, the
        fallback default (``master``) is tried once before giving up.
        """
        dest = Path(dest)
        branch = branch or self.settings.default_branch
        attempts = [branch]
        if branch == self.settings.default_branch and self.settings.fallback_branch != branch:
            attempts.append(self.settings.fallback_branch)

        error = None
        for attempt in attempts:
            _clear(dest)
            try:
                logger.info("Cloning %s (branch %s)", url, attempt)
                self._clone_branch(url, dest, attempt)
            except GitCommandError as exc:
                error = str(exc.stderr or exc).strip()
                logger.warning("Clone of %s on %s failed: %s", url, attempt, error)
                continue
            return FetchResult(success=True, path=dest, branch=attempt)

        _clear(dest)
        return FetchResult(success=False, branch=branch, error=error or "clone failed")

    @contextmanager
    def workspace(self, url: str, branch: str | None = None) -> Iterator[FetchResult]:
        """Clone into a fresh directory that is removed on every exit path."""
        root = Path(tempfile.mkdtemp(prefix=f"repo-spec-{uuid.uuid4().hex}-"))
        try:
            yield self.clone(url, root / "repo", branch)
        finally:
            shutil.rmtree(root, ignore_errors=True)
            logger.debug("Removed workspace %s", root)
