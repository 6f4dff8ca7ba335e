"""Other Node.js server styles: Fastify, Koa, hapi and the bare ``http`` module.

The server style is read from the file's imports, falling back to the
framework the repository was detected as. Each style has its own route
shape and its own name for the request body and query.
"""

import re

from repo_spec_agent.config import BODY_METHODS, DEFAULT_CONFIG, AnalyzerConfig

from .base import Endpoint, FrameworkParser, ParseResult, ResponseSpec
from .express import find_imports
from .fields import infer_field_type, merge_params, path_params, query_params, schema_from_fields
from .paths import normalize_path
from .text import accessed_fields, destructured_from, matching_close, status_codes, window

SERVER_IMPORTS = (
    ("fastify", "fastify"),
    ("koa", "koa"),
    ("@koa/router", "koa"),
    ("koa-router", "koa"),
    ("@hapi/hapi", "hapi"),
    ("hapi", "hapi"),
    ("http", "http"),
    ("node:http", "http"),
)

FILE_AUTH = re.compile(
    r"jwt|jsonwebtoken|passport|authenticate|isAuthenticated|verifyToken|checkAuth|authorization.*bearer",
    re.IGNORECASE,
)

FASTIFY_CALL = re.compile(
    r"\b(?:fastify|app|server|instance)\.(get|post|put|patch|delete|head|options)\s*\(\s*(['\"`])([^'\"`]+)\2",
    re.IGNORECASE,
)
ROUTE_OBJECT = re.compile(r"\.route\s*\(")
KOA_CALL = re.compile(r"\b\w*[rR]outer\.(get|post|put|patch|delete|del)\s*\(\s*(['\"`])([^'\"`]+)\2")
HTTP_URL = re.compile(r"\b(?:req\.url|pathname|url\.pathname)\s*===?\s*(['\"`])([^'\"`]+)\1")
HTTP_CASE = re.compile(r"case\s+(['\"`])([^'\"`]+)\1\s*:")
METHOD_CHECK = re.compile(r"(?:req|request)\.method\s*===?\s*['\"`](\w+)['\"`]", re.IGNORECASE)

_OPTION = r"\b{key}\s*:\s*(['\"`])([^'\"`]*)\1"
_METHOD_LIST = re.compile(r"\bmethod\s*:\s*\[([^\]]*)\]")
_SCHEMA_PROPERTY = re.compile(r"['\"]?(\w+)['\"]?\s*:\s*\{\s*type\s*:\s*['\"](\w+)['\"]")
_JOI_PROPERTY = re.compile(r"['\"]?(\w+)['\"]?\s*:\s*Joi\.(\w+)\(")
_REQUIRED = re.compile(r"\brequired\s*:\s*\[([^\]]*)\]")
_RESPONSE_CODE = re.compile(r"['\"]?(\d{3})['\"]?\s*:")
_KOA_STATUS = re.compile(r"ctx\.status\s*=\s*(\d{3})|ctx\.throw\s*\(\s*(\d{3})")
_HAPI_AUTH = re.compile(r"\bauth\s*:(?!\s*false)")
_FASTIFY_AUTH = re.compile(r"preValidation|(?:preHandler|onRequest)[^\n]*auth", re.IGNORECASE)

JOI_TYPES = {"number": "number", "boolean": "boolean", "array": "array", "date": "string", "object": "object"}
SCHEMA_TYPES = {"integer", "number", "boolean", "array", "object", "string"}


def option(text: str, key: str) -> str | None:
    match = re.search(_OPTION.format(key=key), text)
    return match.group(2) if match else None


def block_after(text: str, key: str) -> str | None:
    """Contents of the ``{...}`` value of ``key:`` inside an object literal."""
    match = re.search(r"\b" + key + r"\s*:\s*(?=[{\w])", text)
    if not match:
        return None
    open_index = text.find("{", match.end())
    if open_index == -1:
        return None
    close = matching_close(text, open_index, "{", "}")
    return text[open_index + 1: close] if close != -1 else text[open_index + 1:]


def top_level_objects(text: str):
    """Yield each outermost ``{...}`` object literal in ``text``."""
    i = 0
    while True:
        open_index = text.find("{", i)
        if open_index == -1:
            return
        close = matching_close(text, open_index, "{", "}")
        if close == -1:
            return
        yield text[open_index: close + 1]
        i = close + 1


def schema_fields(block: str) -> dict[str, str]:
    """Property name -> JSON type from a JSON-schema or Joi object literal."""
    fields = {}
    properties = block_after(block, "properties") or block
    for name, json_type in _SCHEMA_PROPERTY.findall(properties):
        if name not in ("properties", "items"):
            fields[name] = json_type if json_type in SCHEMA_TYPES else "string"
    for name, joi_type in _JOI_PROPERTY.findall(block):
        fields.setdefault(name, JOI_TYPES.get(joi_type, "string"))
    return fields


def schema_details(config: str) -> dict:
    """Body, query and response codes declared in a route ``schema`` option."""
    details = {"body": {}, "required": [], "query": [], "codes": []}
    body = block_after(config, "body") or block_after(config, "payload")
    if body is not None:
        details["body"] = schema_fields(body)
        required = _REQUIRED.search(body)
        if required:
            details["required"] = re.findall(r"['\"](\w+)['\"]", required.group(1))
    query = block_after(config, "querystring") or block_after(config, "query")
    if query is not None:
        details["query"] = list(schema_fields(query))
    response = block_after(config, "response")
    if response is not None:
        details["codes"] = list(dict.fromkeys(_RESPONSE_CODE.findall(response)))
    return details


def detect_server_type(content: str) -> str | None:
    imports = find_imports(content)
    for module, server_type in SERVER_IMPORTS:
        if module in imports:
            return server_type
    return None


class NodeServerParser(FrameworkParser):
    name = "nodejs"

    def __init__(self, config: AnalyzerConfig = DEFAULT_CONFIG, server_type: str | None = None):
        self.config = config
        self.server_type = server_type

    def _context(self, content: str, index: int, size: int) -> str:
        return window(content, index, self.config.settings.server_window_before, size)

    def _endpoint(self, method: str, path: str, text: str, body_source: str, query_source: str,
                  declared: dict | None = None, requires_auth: bool = False, handler: str | None = None) -> Endpoint:
        path = normalize_path(path)
        declared = declared or {"body": {}, "required": [], "query": [], "codes": []}
        queries = list(declared["query"])
        for name in accessed_fields(text, query_source):
            if name not in queries:
                queries.append(name)
        codes = list(declared["codes"])
        for code in status_codes(text):
            if code not in codes:
                codes.append(code)

        request_body = None
        if method in BODY_METHODS:
            fields = dict(declared["body"])
            for name in accessed_fields(text, body_source):
                fields.setdefault(name, infer_field_type(name))
            required = declared["required"] or destructured_from(text, body_source)
            if fields:
                request_body = schema_from_fields(fields, required=required)
        return Endpoint(
            method=method,
            path=path,
            handler=handler,
            parameters=merge_params(path_params(path), query_params(queries)),
            request_body=request_body,
            responses=[ResponseSpec(code=code) for code in codes],
            requires_auth=requires_auth,
        )

    def _fastify(self, content: str, result: ParseResult):
        size = self.config.settings.fastify_window
        for match in FASTIFY_CALL.finditer(content):
            method = match.group(1).upper()
            text = self._context(content, match.start(), size)
            options = block_after(text[text.find(match.group(0)):], "schema") or ""
            result.add(self._endpoint(
                method, match.group(3), text, r"request\.body", r"request\.query",
                declared=schema_details(options) if options else None,
                requires_auth=bool(_FASTIFY_AUTH.search(text)),
            ))
        for config in self._route_objects(content):
            url = option(config, "url") or option(config, "path")
            if not url:
                continue
            for method in self._methods(config):
                result.add(self._endpoint(
                    method, url, config, r"request\.body", r"request\.query",
                    declared=schema_details(config),
                    requires_auth=bool(_FASTIFY_AUTH.search(config)),
                ))

    def _koa(self, content: str, result: ParseResult):
        size = self.config.settings.koa_window
        for match in KOA_CALL.finditer(content):
            verb = match.group(1).lower()
            method = "DELETE" if verb == "del" else verb.upper()
            text = self._context(content, match.start(), size)
            endpoint = self._endpoint(
                method, match.group(3), text, r"ctx\.request\.body", r"ctx\.(?:request\.)?query",
                requires_auth=bool(re.search(r"auth|isAuthenticated|requireLogin", text, re.IGNORECASE)),
            )
            for groups in _KOA_STATUS.findall(text):
                code = groups[0] or groups[1]
                if all(r.code != code for r in endpoint.responses):
                    endpoint.responses.append(ResponseSpec(code=code))
            result.add(endpoint)

    def _hapi(self, content: str, result: ParseResult):
        for config in self._route_objects(content):
            path = option(config, "path")
            if not path:
                continue
            for method in self._methods(config):
                if method == "*":
                    continue
                result.add(self._endpoint(
                    method, path, config, r"request\.payload", r"request\.query",
                    declared=schema_details(config),
                    requires_auth=bool(_HAPI_AUTH.search(config)),
                ))

    def _http(self, content: str, result: ParseResult):
        settings = self.config.settings
        for pattern, size in ((HTTP_URL, settings.socket_url_window), (HTTP_CASE, settings.socket_case_window)):
            for match in pattern.finditer(content):
                path = match.group(2)
                if not path.startswith("/"):
                    continue
                text = self._context(content, match.start(), size)
                method_check = METHOD_CHECK.search(text)
                method = method_check.group(1).upper() if method_check else "GET"
                result.add(self._endpoint(method, path, text, r"\bbody", r"\bquery"))

    def _route_objects(self, content: str):
        for match in ROUTE_OBJECT.finditer(content):
            close = matching_close(content, match.end() - 1)
            args = content[match.end(): close] if close != -1 else content[match.end():]
            yield from top_level_objects(args)

    def _methods(self, config: str) -> list[str]:
        listed = _METHOD_LIST.search(config)
        if listed:
            return [m.upper() for m in re.findall(r"['\"`](\w+|\*)['\"`]", listed.group(1))]
        method = option(config, "method")
        return [method.upper()] if method else []

    def parse(self, content: str, file_path: str) -> ParseResult:
        server_type = detect_server_type(content) or self.server_type or "http"
        result = ParseResult(framework_flavor=server_type, imports=find_imports(content))
        result.has_auth = bool(FILE_AUTH.search(content))

        handlers = {"fastify": self._fastify, "koa": self._koa, "hapi": self._hapi, "http": self._http}
        handlers.get(server_type, self._http)(content, result)
        if any(e.requires_auth for e in result.endpoints):
            result.has_auth = True
        return result
