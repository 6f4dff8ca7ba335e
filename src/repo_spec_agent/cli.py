"""CLI entry point for repo-spec-agent."""

import dataclasses
import json
import logging
from pathlib import Path

import click
import yaml

from repo_spec_agent.analyzer import RepositoryAnalyzer
from repo_spec_agent.config import AnalyzerConfig, get_settings
from repo_spec_agent.errors import ParseError
from repo_spec_agent.generator.quality import QualityScore, score_spec

FRAMEWORK_CHOICES = ["express", "nestjs", "fastify", "koa", "hapi", "http", "nextjs", "laravel", "symfony", "fastapi", "flask"]


def _config(ai_model: str | None) -> AnalyzerConfig:
    settings = get_settings()
    if ai_model:
        settings = dataclasses.replace(settings, ai_model=ai_model)
    return AnalyzerConfig(settings=settings)


def _write(data: dict, output: Path):
    """Write JSON or YAML depending on the output file's extension."""
    output.parent.mkdir(parents=True, exist_ok=True)
    if output.suffix.lower() == ".json":
        output.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    else:
        output.write_text(yaml.safe_dump(data, allow_unicode=True, sort_keys=False), encoding="utf-8")


def _echo_score(score: QualityScore):
    click.echo(f"Quality: {score.total}/100 ({score.level}, {score.level_label})")
    for category in score.breakdown.values():
        click.echo(f"  {category.label:<18} {category.score:>3}/{category.max}")
    for suggestion in score.suggestions:
        click.echo(f"  - {suggestion}")


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
def main(verbose: bool):
    """Repo Spec Agent: infer OpenAPI documents from a repository's source code."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("source")
@click.option("--branch", default=None, help="Branch to clone (default: main, falling back to master).")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Write the full result as JSON or YAML.")
@click.option("--ai-model", default=None, help="litellm model used to enrich the documents.")
def analyze(source: str, branch: str | None, output: Path | None, ai_model: str | None):
    """Analyze a remote repository URL (or a local checkout directory)."""
    analyzer = RepositoryAnalyzer(config=_config(ai_model))
    if Path(source).is_dir():
        click.echo(f"Analyzing local checkout {source}...")
        result = analyzer.analyze_directory(Path(source), repo_url=source, branch=branch)
    else:
        click.echo(f"Cloning {source}...")
        result = analyzer.analyze_repository(source, branch)

    if not result.success:
        raise click.ClickException(f"{result.message}: {result.error}")

    framework = result.framework.primary if result.framework else None
    click.echo(f"Framework: {framework or 'unknown'} (branch {result.branch or '-'})")
    for repo_file in result.files:
        click.echo(f"  {repo_file.path}: {repo_file.endpoint_count} endpoints, quality {repo_file.quality_score} ({repo_file.quality_level})")
    stats = result.stats
    click.echo(
        f"{stats.total_files} files, {stats.total_endpoints} endpoints, "
        f"average quality {stats.average_quality} ({result.overall_quality})"
    )
    if output:
        _write(result.to_wire(), output)
        click.echo(f"Result saved to {output}")


@main.command("parse-file")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--framework", default=None, type=click.Choice(FRAMEWORK_CHOICES), help="Framework the file is written for.")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Output file (.json or .yaml).")
@click.option("--ai-model", default=None, help="litellm model used to enrich the document.")
def parse_file(file_path: Path, framework: str | None, output: Path | None, ai_model: str | None):
    """Infer an OpenAPI document from a single source file."""
    analyzer = RepositoryAnalyzer(config=_config(ai_model))
    content = file_path.read_text(encoding="utf-8")
    try:
        parsed = analyzer.parse_file(content, file_path.as_posix(), framework)
    except ParseError as exc:
        raise click.ClickException(str(exc)) from exc
    if parsed is None:
        raise click.ClickException(f"No API endpoints found in {file_path}")

    click.echo(f"Parsed {parsed.preview['endpointsCount']} paths from {file_path} ({parsed.method})")
    _echo_score(parsed.quality)
    if output:
        _write(parsed.spec, output)
        click.echo(f"Spec saved to {output}")
    else:
        click.echo(yaml.safe_dump(parsed.spec, allow_unicode=True, sort_keys=False))


@main.command()
@click.argument("spec_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def score(spec_path: Path):
    """Score an existing OpenAPI document (JSON or YAML)."""
    try:
        spec = yaml.safe_load(spec_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Cannot read {spec_path}: {exc}") from exc
    if not isinstance(spec, dict):
        raise click.ClickException(f"{spec_path} is not an OpenAPI document")
    _echo_score(score_spec(spec))
