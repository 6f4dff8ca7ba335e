"""Detect the web framework(s) a repository is built on."""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field

from repo_spec_agent.config import DEFAULT_CONFIG, AnalyzerConfig

logger = logging.getLogger("repo-spec-agent.detect")


class FrameworkDetection(BaseModel):
    frameworks: list[str] = Field(default_factory=list)
    type: str | None = None
    primary: str | None = None


def _read_json_deps(path: Path, *sections: str) -> dict | None:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValueError) as exc:
        logger.debug("Skipping manifest %s: %s", path, exc)
        return None
    if not isinstance(data, dict):
        return None
    deps = {}
    for section in sections:
        value = data.get(section)
        if isinstance(value, dict):
            deps.update(value)
    return deps


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def detect_framework(repo_path: Path, config: AnalyzerConfig = DEFAULT_CONFIG) -> FrameworkDetection:
    """Classify a checkout by reading its dependency manifests.

    Manifests are checked in a fixed order (package.json, composer.json,
    requirements.txt, pyproject.toml) and frameworks within one manifest in
    table order. The first framework found is ``primary``. A repository with
    no manifest yields an empty detection, not an error.
    """
    repo_path = Path(repo_path)
    found: list[str] = []

    def record(name: str):
        if name not in found:
            found.append(name)

    package = repo_path / "package.json"
    if package.is_file():
        deps = _read_json_deps(package, "dependencies", "devDependencies")
        if deps is not None:
            for name, sig in config.frameworks.items():
                if any(dep in deps for dep in sig.package_deps):
                    record(name)

    composer = repo_path / "composer.json"
    if composer.is_file():
        deps = _read_json_deps(composer, "require", "require-dev")
        if deps is not None:
            for name, sig in config.frameworks.items():
                if any(dep in deps for dep in sig.composer_deps):
                    record(name)

    for manifest in ("requirements.txt", "pyproject.toml"):
        text = _read_text(repo_path / manifest)
        if text is None:
            continue
        lowered = text.lower()
        for name, sig in config.frameworks.items():
            if any(dep.lower() in lowered for dep in sig.requirements_deps):
                record(name)

    detection = FrameworkDetection(frameworks=found)
    if found:
        detection.primary = found[0]
        detection.type = config.frameworks[found[0]].family
    logger.info("Detected frameworks %s (primary: %s)", found or "none", detection.primary)
    return detection
