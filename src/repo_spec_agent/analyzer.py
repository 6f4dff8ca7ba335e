"""Repository analysis: fetch, detect, scan, parse, score.

Files are processed one after another. Each file gets exactly one OpenAPI
document, produced by the first step of this chain that finds something:

1. the framework strategy (parsers tried in order),
2. the route inventory found by triage,
3. the file's ``@swagger`` / ``@openapi`` comments alone.

When a file has both routes and documentation comments, the documented
operations are laid over the synthesized ones.
"""

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from repo_spec_agent.config import AnalyzerConfig, get_settings
from repo_spec_agent.context import ProjectContext, file_imports, find_related_models, project_context
from repo_spec_agent.enrichment import SpecEnricher
from repo_spec_agent.errors import DocCommentError, FetchError, ParseError
from repo_spec_agent.fetcher import RepositoryFetcher
from repo_spec_agent.generator.quality import QualityScore, operations, quality_level, score_spec
from repo_spec_agent.llm import LlmClient
from repo_spec_agent.parser.base import ParseResult
from repo_spec_agent.parser.detect import FrameworkDetection, detect_framework
from repo_spec_agent.parser.registry import FALLBACK_STRATEGY, strategy_for_file
from repo_spec_agent.parser.swagger import extract_spec_preview, merge_doc_comments, parse_doc_comments
from repo_spec_agent.parser.triage import TriageResult, triage
from repo_spec_agent.scanner import FileScanner, RepoFile

logger = logging.getLogger("repo-spec-agent.analyzer")

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ParsedFile(BaseModel):
    spec: dict
    method: str  # which chain step produced the document
    quality: QualityScore
    preview: dict
    result: ParseResult | None = None


class AnalysisStats(BaseModel):
    model_config = _CAMEL

    total_files: int = 0
    files_with_comments: int = 0
    total_endpoints: int = 0
    average_quality: int = 0


class AnalysisResult(BaseModel):
    model_config = _CAMEL

    success: bool
    repo_url: str | None = None
    branch: str | None = None
    framework: FrameworkDetection | None = None
    files: list[RepoFile] = Field(default_factory=list)
    stats: AnalysisStats = Field(default_factory=AnalysisStats)
    overall_quality: str | None = None
    error: str | None = None
    message: str | None = None

    def to_wire(self) -> dict:
        """JSON-ready dict with camelCase keys, as the persistence side expects."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def count_operations(spec: dict) -> int:
    """Operations actually present in a document."""
    return sum(1 for _ in operations(spec))


class RepositoryAnalyzer:
    def __init__(self, config: AnalyzerConfig | None = None, fetcher: RepositoryFetcher | None = None,
                 enricher: SpecEnricher | None = None):
        self.config = config or AnalyzerConfig(settings=get_settings())
        self.fetcher = fetcher or RepositoryFetcher(self.config)
        if enricher is None and self.config.settings.ai_model:
            enricher = SpecEnricher(LlmClient(model=self.config.settings.ai_model), self.config)
        self.enricher = enricher

    def _synthesize(self, content: str, file_path: str, framework: str | None,
                    found: TriageResult) -> tuple[dict, str, ParseResult] | None:
        file_name = Path(file_path).name
        strategy = strategy_for_file(framework, content)
        if strategy is not None and found.is_api_file:
            result = strategy.parse(content, file_path, self.config)
            if result.endpoints:
                return strategy.synthesize(result, file_name, self.config), f"{strategy.name}-parser", result
        if found.endpoints:
            result = ParseResult(endpoints=found.endpoints, framework_flavor=FALLBACK_STRATEGY.name)
            return FALLBACK_STRATEGY.synthesize(result, file_name, self.config), "inferred", result
        return None

    def parse_file(self, content: str, file_path: str, framework: str | None = None,
                   repo_path: Path | None = None, context: ProjectContext | None = None) -> ParsedFile | None:
        """Turn one file into a scored OpenAPI document, or None when it has nothing.

        Raises ``ParseError`` when a parser fails unexpectedly.
        """
        file_name = Path(file_path).name
        try:
            found = triage(content, framework, self.config)
            synthesized = self._synthesize(content, file_path, framework, found)
        except (ValueError, TypeError, KeyError, IndexError, AttributeError, RecursionError) as exc:
            raise ParseError(file_path, f"{type(exc).__name__}: {exc}") from exc

        spec, method, result = synthesized if synthesized else (None, None, None)
        if found.has_doc_comments:
            try:
                documented = parse_doc_comments(content, file_name)
            except DocCommentError as exc:
                logger.debug("%s: %s", file_path, exc)
            else:
                if spec is None:
                    spec, method = documented["spec"], "swagger-comments"
                else:
                    spec, method = merge_doc_comments(spec, documented["spec"]), f"{method}+swagger-comments"
        if spec is None:
            return None

        if self.enricher is not None and result is not None:
            models = find_related_models(repo_path, file_imports(content), self.config) if repo_path else []
            spec = self.enricher.enrich(spec, result, context, source=content, models=models)
            method = f"{method}+AI"

        return ParsedFile(
            spec=spec,
            method=method,
            quality=score_spec(spec),
            preview=extract_spec_preview(spec),
            result=result,
        )

    def analyze_directory(self, repo_path: Path, repo_url: str | None = None, branch: str | None = None) -> AnalysisResult:
        """Analyse a checkout that is already on disk."""
        repo_path = Path(repo_path)
        detection = detect_framework(repo_path, self.config)
        context = project_context(repo_path, detection.primary, self.config) if self.enricher else None
        candidates = FileScanner(self.config, detection.primary).scan(repo_path)

        files: list[RepoFile] = []
        for repo_file in candidates:
            logger.info("Parsing %s", repo_file.path)
            try:
                content = repo_file.full_path.read_text(encoding="utf-8")
                parsed = self.parse_file(content, repo_file.path, detection.primary, repo_path, context)
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping unreadable %s: %s", repo_file.path, exc)
                continue
            except ParseError as exc:
                logger.error("Skipping %s: %s", repo_file.path, exc.reason)
                continue
            except Exception:
                logger.exception("Skipping %s after an unexpected error", repo_file.path)
                continue
            if parsed is None:
                logger.info("No endpoints found in %s", repo_file.path)
                continue

            repo_file.spec = parsed.spec
            repo_file.method = parsed.method
            repo_file.preview = parsed.preview
            repo_file.quality_score = parsed.quality.total
            repo_file.quality_level = parsed.quality.level
            repo_file.endpoint_count = count_operations(parsed.spec)
            logger.info("%s: %d endpoints, quality %d (%s)", repo_file.path, repo_file.endpoint_count,
                        parsed.quality.total, parsed.method)
            files.append(repo_file)

        average = round(sum(f.quality_score for f in files) / len(files)) if files else 0
        stats = AnalysisStats(
            total_files=len(files),
            files_with_comments=sum(1 for f in files if f.has_doc_comments),
            total_endpoints=sum(f.endpoint_count for f in files),
            average_quality=average,
        )
        return AnalysisResult(
            success=True,
            repo_url=repo_url,
            branch=branch,
            framework=detection,
            files=files,
            stats=stats,
            overall_quality=quality_level(average),
        )

    def analyze_repository(self, repo_url: str, branch: str | None = None) -> AnalysisResult:
        """Clone, analyse and clean up. Only a failed clone gives ``success=False``."""
        branch = branch or self.config.settings.default_branch
        try:
            with self.fetcher.workspace(repo_url, branch) as fetched:
                if not fetched.success:
                    raise FetchError(repo_url, branch, fetched.error or "unknown error")
                return self.analyze_directory(fetched.path, repo_url=repo_url, branch=fetched.branch)
        except FetchError as exc:
            logger.error("%s", exc)
            return AnalysisResult(
                success=False,
                repo_url=repo_url,
                branch=branch,
                error=exc.reason,
                message="Repository analysis failed",
            )
