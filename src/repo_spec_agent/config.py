"""Runtime configuration for the repository analyzer.

Static lookup tables are immutable module-level data. Tunable heuristics
live in ``AnalyzerSettings`` and are loaded from ``REPO_SPEC_AGENT_*``
environment variables. Components receive an ``AnalyzerConfig`` explicitly
instead of reading globals.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
import os
import re

PLACEHOLDER_MARKER = "[TODO]"

HTTP_METHODS = ("get", "post", "put", "delete", "patch", "options", "head")
BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

FILE_EXTENSIONS = MappingProxyType({
    "node": (".js", ".ts", ".mjs", ".cjs"),
    "php": (".php",),
    "python": (".py",),
})

SKIP_DIRS = frozenset({
    "node_modules", "vendor", ".git", "dist", "build", "__pycache__", ".next",
    ".venv", "venv", "coverage",
})

PRIORITY_DIRS = (
    "routes", "api", "controllers", "src/routes", "src/api", "src/controllers",
    "app/Http/Controllers", "app/routes",
    "src/Controller",
    "app/api", "pages/api", "src/app/api", "src/pages/api",
    "routers", "endpoints", "app/routers", "app/api/endpoints",
)

MODEL_DIRS = ("models", "entities", "schemas", "src/models", "app/Models", "app/Entities")

GENERIC_FILE_NAMES = frozenset({"index", "server", "app", "routes", "api", "main"})

STATUS_DESCRIPTIONS = MappingProxyType({
    "200": "Operación exitosa",
    "201": "Recurso creado exitosamente",
    "202": "Solicitud aceptada",
    "204": "Sin contenido",
    "400": "Solicitud inválida",
    "401": "No autenticado",
    "403": "Acceso denegado",
    "404": "Recurso no encontrado",
    "405": "Método no permitido",
    "409": "Conflicto",
    "422": "Entidad no procesable",
    "429": "Demasiadas solicitudes",
    "500": "Error interno del servidor",
    "503": "Servicio no disponible",
})


@dataclass(frozen=True)
class FrameworkSignature:
    """How a web framework shows up in manifests and in source files."""

    name: str
    family: str  # node / php / python
    package_deps: tuple[str, ...] = ()
    composer_deps: tuple[str, ...] = ()
    requirements_deps: tuple[str, ...] = ()
    code_patterns: tuple[re.Pattern, ...] = ()


# Insertion order is the detection order and therefore the tie-break for
# FrameworkDetection.primary.
FRAMEWORKS = MappingProxyType({
    "express": FrameworkSignature(
        name="express",
        family="node",
        package_deps=("express",),
        code_patterns=(re.compile(r"\w+\.(?:get|post|put|delete|patch)\s*\("),),
    ),
    "nestjs": FrameworkSignature(
        name="nestjs",
        family="node",
        package_deps=("@nestjs/core",),
        code_patterns=(
            re.compile(r"@(?:Get|Post|Put|Delete|Patch)\s*\("),
            re.compile(r"@Controller\s*\("),
        ),
    ),
    "fastify": FrameworkSignature(
        name="fastify",
        family="node",
        package_deps=("fastify",),
        code_patterns=(
            re.compile(r"fastify\.(?:get|post|put|delete|patch)\s*\("),
            re.compile(r"\.route\s*\(\s*\{"),
        ),
    ),
    "koa": FrameworkSignature(
        name="koa",
        family="node",
        package_deps=("koa", "@koa/router", "koa-router"),
        code_patterns=(re.compile(r"router\.(?:get|post|put|delete|patch|del)\s*\("),),
    ),
    "hapi": FrameworkSignature(
        name="hapi",
        family="node",
        package_deps=("@hapi/hapi", "hapi"),
        code_patterns=(re.compile(r"\.route\s*\(\s*[\[{]"),),
    ),
    "nextjs": FrameworkSignature(
        name="nextjs",
        family="node",
        package_deps=("next",),
        code_patterns=(
            re.compile(r"export\s+(?:async\s+)?(?:function|const)\s+(?:GET|POST|PUT|DELETE|PATCH)\b"),
            re.compile(r"export\s+default\s+(?:async\s+)?function"),
        ),
    ),
    "laravel": FrameworkSignature(
        name="laravel",
        family="php",
        composer_deps=("laravel/framework",),
        code_patterns=(
            re.compile(r"Route::(?:get|post|put|delete|patch|resource|apiResource)\s*\(", re.IGNORECASE),
            re.compile(r"class\s+\w+Controller\s+extends"),
        ),
    ),
    "symfony": FrameworkSignature(
        name="symfony",
        family="php",
        composer_deps=("symfony/framework-bundle",),
        code_patterns=(re.compile(r"#\[Route\s*\("), re.compile(r"@Route\s*\(")),
    ),
    "fastapi": FrameworkSignature(
        name="fastapi",
        family="python",
        requirements_deps=("fastapi",),
        code_patterns=(re.compile(r"@\w+\.(?:get|post|put|delete|patch)\s*\("),),
    ),
    "flask": FrameworkSignature(
        name="flask",
        family="python",
        requirements_deps=("flask",),
        code_patterns=(re.compile(r"@\w+\.route\s*\("), re.compile(r"@\w+\.(?:get|post|put|delete|patch)\s*\(")),
    ),
})


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class AnalyzerSettings:
    # Text windows (characters) scanned around a regex route match.
    router_window_before: int = 500
    router_window_after: int = 1000
    server_window_before: int = 100
    fastify_window: int = 800
    koa_window: int = 600
    socket_url_window: int = 400
    socket_case_window: int = 300
    attribute_lookbehind: int = 300
    block_scan_fallback: int = 500

    max_scan_depth: int = 5
    max_related_models: int = 8
    related_model_chars: int = 3000
    context_dependencies: int = 15

    default_branch: str = "main"
    fallback_branch: str = "master"

    ai_model: str | None = None
    ai_chunk_size: int = 5
    ai_delay_s: float = 1.0
    ai_context_chars: int = 8000


def get_settings() -> AnalyzerSettings:
    """Load analyzer settings from environment variables."""
    model = os.getenv("REPO_SPEC_AGENT_AI_MODEL")
    enabled = _env_bool("REPO_SPEC_AGENT_AI_ENABLED", bool(model))
    return AnalyzerSettings(
        router_window_before=max(0, _env_int("REPO_SPEC_AGENT_ROUTER_WINDOW_BEFORE", 500)),
        router_window_after=max(1, _env_int("REPO_SPEC_AGENT_ROUTER_WINDOW_AFTER", 1000)),
        max_scan_depth=max(0, _env_int("REPO_SPEC_AGENT_MAX_DEPTH", 5)),
        default_branch=os.getenv("REPO_SPEC_AGENT_DEFAULT_BRANCH", "main"),
        fallback_branch=os.getenv("REPO_SPEC_AGENT_FALLBACK_BRANCH", "master"),
        ai_model=model if (model and enabled) else None,
        ai_chunk_size=max(1, _env_int("REPO_SPEC_AGENT_AI_CHUNK_SIZE", 5)),
        ai_delay_s=max(0.0, _env_float("REPO_SPEC_AGENT_AI_DELAY_S", 1.0)),
    )


@dataclass(frozen=True)
class AnalyzerConfig:
    """Settings plus the lookup tables every component reads."""

    settings: AnalyzerSettings = field(default_factory=AnalyzerSettings)
    frameworks: MappingProxyType = field(default_factory=lambda: FRAMEWORKS)
    extensions: MappingProxyType = field(default_factory=lambda: FILE_EXTENSIONS)
    skip_dirs: frozenset = SKIP_DIRS
    priority_dirs: tuple = PRIORITY_DIRS
    model_dirs: tuple = MODEL_DIRS
    generic_file_names: frozenset = GENERIC_FILE_NAMES
    status_descriptions: MappingProxyType = field(default_factory=lambda: STATUS_DESCRIPTIONS)

    def all_extensions(self) -> tuple[str, ...]:
        return tuple(ext for exts in self.extensions.values() for ext in exts)

    def extensions_for(self, framework: str | None) -> tuple[str, ...]:
        """Extensions to scan for a detected framework (all of them when unknown)."""
        signature = self.frameworks.get(framework) if framework else None
        if signature is None:
            return self.all_extensions()
        return self.extensions.get(signature.family, ())

    def status_description(self, code: str) -> str:
        return self.status_descriptions.get(str(code), f"HTTP {code}")


DEFAULT_CONFIG = AnalyzerConfig()
