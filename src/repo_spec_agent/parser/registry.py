"""Framework name -> ordered parsers and the synthesizer for their output.

Each strategy lists the parsers to try in order; the first one that finds
endpoints wins. Express is the only framework with more than one: the
syntax-tree parser runs first and the pattern parser catches what esprima
cannot read.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from repo_spec_agent.config import DEFAULT_CONFIG, AnalyzerConfig
from repo_spec_agent.generator.openapi import SpecSynthesizer

from .ast_js import AstRouterParser
from .base import FrameworkParser, ParseResult
from .express import ExpressParser
from .laravel import LaravelParser
from .nestjs import NestjsParser
from .nextjs import NextjsParser
from .nodejs import NodeServerParser, detect_server_type
from .python import PythonRouteParser
from .symfony import SymfonyParser

logger = logging.getLogger("repo-spec-agent.registry")

ParserFactory = Callable[[AnalyzerConfig], FrameworkParser]


@dataclass(frozen=True)
class ParserStrategy:
    name: str
    parsers: tuple[ParserFactory, ...]
    security: str = "bearer"  # cookie / bearer
    label: str = ""

    def parse(self, content: str, file_path: str, config: AnalyzerConfig = DEFAULT_CONFIG) -> ParseResult:
        """Run the parsers in order and keep the first result with endpoints."""
        result = ParseResult(framework_flavor=self.name)
        for factory in self.parsers:
            parser = factory(config)
            result = parser.parse(content, file_path)
            if result.endpoints:
                logger.debug("%s: %d endpoints via %s", file_path, len(result.endpoints), parser.name)
                return result
        return result

    def synthesize(self, result: ParseResult, file_name: str, config: AnalyzerConfig = DEFAULT_CONFIG) -> dict:
        return SpecSynthesizer(config, security=self.security, label=self.label or self.name).synthesize(result, file_name)


def _node_server(server_type: str) -> ParserFactory:
    return lambda config: NodeServerParser(config, server_type=server_type)


STRATEGIES: dict[str, ParserStrategy] = {
    "express": ParserStrategy(
        "express",
        (lambda config: AstRouterParser(), ExpressParser),
        security="cookie",
        label="Express.js",
    ),
    "nestjs": ParserStrategy("nestjs", (lambda config: NestjsParser(),), label="NestJS"),
    "fastify": ParserStrategy("fastify", (_node_server("fastify"),), label="Fastify"),
    "koa": ParserStrategy("koa", (_node_server("koa"),), label="Koa"),
    "hapi": ParserStrategy("hapi", (_node_server("hapi"),), label="hapi"),
    "http": ParserStrategy("http", (_node_server("http"),), label="Node.js http"),
    "nextjs": ParserStrategy("nextjs", (lambda config: NextjsParser(),), label="Next.js"),
    "laravel": ParserStrategy("laravel", (LaravelParser,), label="Laravel"),
    "symfony": ParserStrategy("symfony", (SymfonyParser,), label="Symfony"),
    "fastapi": ParserStrategy("fastapi", (lambda config: PythonRouteParser(),), label="FastAPI"),
    "flask": ParserStrategy("flask", (lambda config: PythonRouteParser(),), label="Flask"),
}

# Triage-only inventories have no framework of their own.
FALLBACK_STRATEGY = ParserStrategy("inferred", (), security="bearer", label="análisis de código")


def strategy_for(framework: str | None) -> ParserStrategy | None:
    if not framework:
        return None
    return STRATEGIES.get(framework.lower())


def strategy_for_file(framework: str | None, content: str) -> ParserStrategy | None:
    """Strategy for one file.

    When no framework was detected, a file importing the bare ``http``
    module is read as a socket-level server.
    """
    strategy = strategy_for(framework)
    if strategy is None and not framework and detect_server_type(content) == "http":
        return STRATEGIES["http"]
    return strategy
