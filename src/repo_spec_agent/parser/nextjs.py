"""Next.js route handlers: the endpoint path comes from the file's location.

Two router generations are supported:

- app router: ``app/api/users/[id]/route.ts`` exporting ``GET``, ``POST``...
- pages router: ``pages/api/users/[id].ts`` with a default-export handler
  branching on ``req.method``, or named ``get``/``post`` exports.
"""

import re

from repo_spec_agent.config import BODY_METHODS

from .base import Endpoint, FrameworkParser, ParseResult, ResponseSpec
from .fields import merge_params, path_params, query_params, schema_from_fields
from .paths import normalize_path
from .text import accessed_fields, block_end, destructured_from, matching_close

APP_ROUTE = re.compile(r"(?:^|/)app/(.+?)/route\.[jt]sx?$")
PAGES_ROUTE = re.compile(r"(?:^|/)pages/(api/.+?)\.[jt]sx?$")
APP_EXPORT = re.compile(
    r"export\s+(?:async\s+)?(?:function\s+(GET|POST|PUT|PATCH|DELETE|HEAD|OPTIONS)\s*\(|"
    r"const\s+(GET|POST|PUT|PATCH|DELETE|HEAD|OPTIONS)\s*=)"
)
DEFAULT_EXPORT = re.compile(r"export\s+default\s+(?:async\s+)?function\b|export\s+default\s+(?:async\s*)?\(")
NAMED_EXPORT = re.compile(r"export\s+(?:async\s+)?function\s+(get|post|put|patch|delete)\s*\(", re.IGNORECASE)
METHOD_CHECK = re.compile(r"req\.method\s*[!=]==?\s*['\"`](GET|POST|PUT|PATCH|DELETE)['\"`]", re.IGNORECASE)
METHOD_SWITCH = re.compile(r"switch\s*\(\s*req\.method\s*\)")
METHOD_CASE = re.compile(r"case\s+['\"`](GET|POST|PUT|PATCH|DELETE)['\"`]\s*:", re.IGNORECASE)

FILE_AUTH = re.compile(r"getSession|getServerSession|useSession|getToken|withAuth|NextAuth|verifyToken|authenticated|auth\(\)")
HANDLER_AUTH = re.compile(r"getSession|getServerSession|getToken|verifyToken|authenticated|auth\(\)")

_QUERY_GET = re.compile(r"(?:searchParams|query)\.get\s*\(\s*['\"`](\w+)['\"`]\s*\)")
_STATUS = re.compile(r"status\s*:\s*(\d{3})|\.status\s*\(\s*(\d{3})\s*\)")
_JSON_BODY = r"(?:\w+\.json\s*\(\s*\)|req\.body)"


def api_path(file_path: str) -> str | None:
    """URL path served by a route file, or None outside the router directories."""
    normalized = file_path.replace("\\", "/")
    match = APP_ROUTE.search(normalized)
    if match:
        segments = match.group(1).split("/")
    else:
        match = PAGES_ROUTE.search(normalized)
        if not match:
            return None
        segments = match.group(1).split("/")
        if segments[-1] == "index":
            segments = segments[:-1]
    # (group) folders and @slot folders are not part of the URL.
    segments = [s for s in segments if not (s.startswith("(") and s.endswith(")")) and not s.startswith("@")]
    return normalize_path("/" + "/".join(segments))


def handler_details(body: str, method: str, path: str) -> dict:
    query = list(dict.fromkeys(_QUERY_GET.findall(body)))
    for name in accessed_fields(body, r"req\.query"):
        if name not in query:
            query.append(name)
    codes = []
    for match in _STATUS.finditer(body):
        code = match.group(1) or match.group(2)
        if code not in codes:
            codes.append(code)
    details = {
        "parameters": merge_params(path_params(path), query_params(query)),
        "responses": [ResponseSpec(code=code) for code in codes],
        "requires_auth": bool(HANDLER_AUTH.search(body)),
    }
    if method in BODY_METHODS:
        fields = destructured_from(body, _JSON_BODY)
        for name in accessed_fields(body, r"req\.body") + accessed_fields(body, r"(?<![\w.$])body"):
            if name not in fields:
                fields.append(name)
        if fields:
            details["request_body"] = schema_from_fields(fields)
    return details


def function_body(content: str, start: int) -> str:
    """Body of the function whose parameter list opens at or after ``start``."""
    open_index = content.find("(", start - 1)
    close = matching_close(content, open_index) if open_index != -1 else -1
    body_start = close + 1 if close != -1 else start
    return content[body_start: block_end(content, body_start)]


class NextjsParser(FrameworkParser):
    name = "nextjs"

    def _app_router(self, content: str, path: str, result: ParseResult):
        for match in APP_EXPORT.finditer(content):
            method = match.group(1) or match.group(2)
            body = function_body(content, match.end())
            result.add(Endpoint(method=method, path=path, handler=method, **handler_details(body, method, path)))

    def _pages_router(self, content: str, path: str, result: ParseResult):
        if DEFAULT_EXPORT.search(content):
            checks = [(m.group(1).upper(), m.start()) for m in METHOD_CHECK.finditer(content)]
            if METHOD_SWITCH.search(content):
                checks += [(m.group(1).upper(), m.start()) for m in METHOD_CASE.finditer(content)]
            if not checks:
                result.add(Endpoint(method="GET", path=path, handler="default", **handler_details(content, "GET", path)))
            for method, index in checks:
                body = content[index: block_end(content, index)]
                result.add(Endpoint(method=method, path=path, handler="default", **handler_details(body, method, path)))

        for match in NAMED_EXPORT.finditer(content):
            method = match.group(1).upper()
            body = function_body(content, match.end())
            result.add(Endpoint(method=method, path=path, handler=match.group(1), **handler_details(body, method, path)))

    def parse(self, content: str, file_path: str) -> ParseResult:
        result = ParseResult(framework_flavor=self.name)
        result.has_auth = bool(FILE_AUTH.search(content))

        path = api_path(file_path)
        if path is None:
            return result
        if APP_ROUTE.search(file_path.replace("\\", "/")):
            self._app_router(content, path, result)
        else:
            self._pages_router(content, path, result)
        return result
