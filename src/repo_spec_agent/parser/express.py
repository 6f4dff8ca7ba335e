"""Pattern-based parser for Express-style routers.

Finds ``router.get('/x', ...)`` calls and ``router.route('/x').get(...)``
chains, then scans a text window around each one for auth middleware,
query and body field access, and ``res.status(n)`` calls.
"""

import re

from repo_spec_agent.config import BODY_METHODS, DEFAULT_CONFIG, AnalyzerConfig

from .base import Endpoint, FrameworkParser, ParseResult, ResponseSpec
from .fields import merge_params, path_params, query_params, schema_from_fields
from .paths import join_paths
from .text import (
    accessed_fields,
    destructured_from,
    matching_close,
    mentions_auth,
    status_codes,
    window,
)

VERBS = "get|post|put|patch|delete|options|head"

ROUTE_CALL = re.compile(
    r"\b(\w*(?:router|app|api))\s*\.\s*(" + VERBS + r")\s*\(\s*(['\"`])([^'\"`]+)\3",
    re.IGNORECASE,
)
ROUTE_CHAIN = re.compile(r"\.route\s*\(\s*(['\"`])([^'\"`]+)\1\s*\)")
CHAINED_VERB = re.compile(r"\s*\.\s*(" + VERBS + r")\s*\(", re.IGNORECASE)
MOUNT = re.compile(r"\bapp\.use\s*\(\s*['\"`]([^'\"`]+)['\"`]\s*,")
IMPORTS = re.compile(r"(?:require\s*\(\s*|import\s+(?:[^'\"`;]+?\s+from\s+)?)['\"`]([^'\"`]+)['\"`]")
FILE_AUTH = re.compile(
    r"verifyToken|authenticate|isAuthenticated|requireAuth|passport\.authenticate|\bjwt\b|authMiddleware",
    re.IGNORECASE,
)

BODY = r"req\.body"
QUERY = r"req\.query"


def handler_details(text: str, method: str, path: str, body: str = BODY, query: str = QUERY) -> dict:
    """Everything the handler text reveals about one operation."""
    details = {
        "parameters": merge_params(path_params(path), query_params(accessed_fields(text, query))),
        "responses": [ResponseSpec(code=code) for code in status_codes(text)],
        "requires_auth": mentions_auth(text),
    }
    if method.upper() in BODY_METHODS:
        fields = accessed_fields(text, body)
        if fields:
            details["request_body"] = schema_from_fields(fields, required=destructured_from(text, body))
    return details


def find_imports(content: str) -> list[str]:
    imports = []
    for match in IMPORTS.finditer(content):
        if match.group(1) not in imports:
            imports.append(match.group(1))
    return imports


class ExpressParser(FrameworkParser):
    name = "express"

    def __init__(self, config: AnalyzerConfig = DEFAULT_CONFIG):
        self.config = config

    def _context(self, content: str, index: int) -> str:
        settings = self.config.settings
        return window(content, index, settings.router_window_before, settings.router_window_after)

    def _endpoint(self, result: ParseResult, method: str, path: str, text: str, handler: str) -> Endpoint:
        full_path = join_paths(result.base_route, path)
        return Endpoint(
            method=method,
            path=full_path,
            handler=handler,
            **handler_details(text, method, full_path),
        )

    def parse(self, content: str, file_path: str) -> ParseResult:
        result = ParseResult(framework_flavor=self.name)

        mount = MOUNT.search(content)
        if mount:
            result.base_route = mount.group(1)
        result.imports = find_imports(content)
        result.has_auth = bool(FILE_AUTH.search(content))

        for match in ROUTE_CALL.finditer(content):
            method, path = match.group(2).upper(), match.group(4)
            text = self._context(content, match.start())
            result.add(self._endpoint(result, method, path, text, f"{match.group(1)}.{match.group(2)}"))

        for match in ROUTE_CHAIN.finditer(content):
            path = match.group(2)
            cursor = match.end()
            while True:
                verb = CHAINED_VERB.match(content, cursor)
                if not verb:
                    break
                close = matching_close(content, verb.end() - 1)
                if close == -1:
                    close = min(len(content), verb.end() + self.config.settings.router_window_after)
                text = content[verb.end(): close]
                method = verb.group(1).upper()
                result.add(self._endpoint(result, method, path, text, f"route.{verb.group(1)}"))
                cursor = close + 1
        return result

