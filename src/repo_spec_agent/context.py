"""Project-level context handed to the enrichment step."""

import json
import logging
import re
from pathlib import Path

from pydantic import BaseModel, Field

from repo_spec_agent.config import DEFAULT_CONFIG, AnalyzerConfig

logger = logging.getLogger("repo-spec-agent.context")

IMPORT_TARGET = re.compile(r"(?:require|import|use|from)\s*[({]?\s*['\"`]([^'\"`]+)['\"`]")
PHP_USE = re.compile(r"^use\s+([\w\\]+)\s*;", re.MULTILINE)
PY_FROM = re.compile(r"^from\s+([\w.]+)\s+import\s+([\w, ]+)", re.MULTILINE)
MODEL_EXTENSIONS = (".js", ".ts", ".php", ".py")
UNMATCHED_MODELS = 5  # models taken without an import match


class ProjectContext(BaseModel):
    name: str
    framework: str = "Unknown"
    dependencies: list[str] = Field(default_factory=list)
    structure: str = ""


class RelatedModel(BaseModel):
    name: str
    content: str
    prioritized: bool = False


def project_context(repo_path: Path, framework: str | None, config: AnalyzerConfig = DEFAULT_CONFIG) -> ProjectContext:
    """Name, framework, main dependencies and top-level layout of a checkout."""
    repo_path = Path(repo_path)
    context = ProjectContext(name=repo_path.name, framework=framework or "Unknown")
    limit = config.settings.context_dependencies

    for manifest, section in (("package.json", "dependencies"), ("composer.json", "require")):
        path = repo_path / manifest
        if not path.is_file():
            continue
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            logger.debug("Cannot read %s: %s", path, exc)
            continue
        if not isinstance(data, dict):
            continue
        if isinstance(data.get("name"), str) and data["name"]:
            context.name = data["name"]
        deps = data.get(section)
        if isinstance(deps, dict):
            context.dependencies = list(deps)[:limit]
        break

    try:
        dirs = sorted(e.name for e in repo_path.iterdir() if e.is_dir() and not e.name.startswith("."))
    except OSError:
        dirs = []
    context.structure = ", ".join(dirs)
    return context


def file_imports(content: str) -> list[str]:
    """Module names a JS, PHP or Python file pulls in."""
    imports = IMPORT_TARGET.findall(content) + PHP_USE.findall(content)
    for module, names in PY_FROM.findall(content):
        imports.append(module)
        imports.extend(f"{module}.{n.strip()}" for n in names.split(",") if n.strip())
    return imports


def _stem(target: str) -> str:
    last = re.split(r"[/\\.]", target.rstrip("/\\"))[-1]
    return last.lower()


def find_related_models(repo_path: Path, imports: list[str], config: AnalyzerConfig = DEFAULT_CONFIG) -> list[RelatedModel]:
    """Model files from the conventional model directories.

    Models whose file stem matches one of ``imports`` come first and are
    always included; others fill the remaining slots.
    """
    settings = config.settings
    imported = {_stem(target) for target in imports}
    models: list[RelatedModel] = []
    for name in config.model_dirs:
        directory = Path(repo_path) / name
        if not directory.is_dir():
            continue
        for path in sorted(directory.iterdir()):
            if not path.is_file() or path.suffix not in MODEL_EXTENSIONS:
                continue
            prioritized = path.stem.lower() in imported
            if not prioritized and len(models) >= UNMATCHED_MODELS:
                continue
            if any(m.name == path.name for m in models):
                continue
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                continue
            models.append(RelatedModel(name=path.name, content=content[: settings.related_model_chars], prioritized=prioritized))
    models.sort(key=lambda m: not m.prioritized)
    return models[: settings.max_related_models]
