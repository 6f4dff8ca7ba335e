"""Find the source files of a checkout that are worth parsing."""

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from repo_spec_agent.config import DEFAULT_CONFIG, AnalyzerConfig
from repo_spec_agent.parser.triage import triage

logger = logging.getLogger("repo-spec-agent.scanner")


class RepoFile(BaseModel):
    """One candidate file; parsing and scoring fill in the rest."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    path: str  # relative to the repository root, forward slashes
    full_path: Path = Field(exclude=True)
    extension: str
    size: int = 0
    has_doc_comments: bool = False
    endpoint_count: int = 0
    spec: dict | None = None
    quality_score: int | None = None
    quality_level: str | None = None
    method: str | None = None  # how the document was produced
    preview: dict | None = None


class FileScanner:
    def __init__(self, config: AnalyzerConfig = DEFAULT_CONFIG, framework: str | None = None):
        self.config = config
        self.framework = framework
        self.extensions = config.extensions_for(framework)

    def _walk(self, directory: Path, depth: int):
        if depth > self.config.settings.max_scan_depth:
            return
        try:
            entries = sorted(directory.iterdir())
        except OSError as exc:
            logger.debug("Cannot list %s: %s", directory, exc)
            return
        for entry in entries:
            if entry.is_dir() and not entry.is_symlink():
                if entry.name not in self.config.skip_dirs:
                    yield from self._walk(entry, depth + 1)
            elif entry.is_file() and entry.suffix.lower() in self.extensions:
                yield entry

    def _candidate(self, root: Path, file_path: Path) -> RepoFile | None:
        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Skipping unreadable %s: %s", file_path, exc)
            return None
        found = triage(content, self.framework, self.config)
        if not found.relevant:
            return None
        return RepoFile(
            path=file_path.relative_to(root).as_posix(),
            full_path=file_path,
            extension=file_path.suffix.lower(),
            size=file_path.stat().st_size,
            has_doc_comments=found.has_doc_comments,
            endpoint_count=len(found.endpoints),
        )

    def _collect(self, root: Path, start: Path, files: list[RepoFile], seen: set[Path]):
        for file_path in self._walk(start, 0):
            if file_path in seen:
                continue
            seen.add(file_path)
            candidate = self._candidate(root, file_path)
            if candidate is not None:
                files.append(candidate)

    def scan(self, repo_path: Path) -> list[RepoFile]:
        """Candidates from the conventional directories, else from the whole tree."""
        root = Path(repo_path)
        files: list[RepoFile] = []
        seen: set[Path] = set()
        for name in self.config.priority_dirs:
            directory = root / name
            if directory.is_dir():
                self._collect(root, directory, files, seen)
        if not files:
            logger.info("No candidates in conventional directories, scanning the whole tree")
            self._collect(root, root, files, seen)
        logger.info("Found %d candidate files", len(files))
        return files
