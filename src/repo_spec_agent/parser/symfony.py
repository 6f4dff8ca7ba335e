"""Symfony controllers: ``#[Route]`` attributes and legacy ``@Route`` annotations."""

import re

from repo_spec_agent.config import BODY_METHODS, DEFAULT_CONFIG, AnalyzerConfig

from .base import Endpoint, FrameworkParser, ParseResult, ResponseSpec
from .fields import merge_params, path_params, query_params, schema_from_fields
from .paths import join_paths
from .text import block_end, matching_close, quoted

ATTRIBUTE = re.compile(r"#\[\s*Route\s*\(")
ANNOTATION = re.compile(r"@Route\s*\(")
FUNCTION = re.compile(r"public\s+function\s+(\w+)\s*\(")
CLASS = re.compile(r"\bclass\s+(\w+)")
CONTROLLER = re.compile(r"class\s+\w+Controller\b|extends\s+AbstractController")
FILE_AUTH = re.compile(r"IsGranted|Security\s*\(|'IS_AUTHENTICATED|ROLE_", re.IGNORECASE)
METHOD_AUTH = re.compile(r"IsGranted|Security|ROLE_|denyAccessUnlessGranted", re.IGNORECASE)

_NAMED_PATH = re.compile(r"\bpath\s*[:=]\s*(['\"])([^'\"]*)\1")
_ATTR_METHODS = re.compile(r"\bmethods\s*:\s*(\[[^\]]*\]|['\"][^'\"]*['\"])")
_ANNOTATION_METHODS = re.compile(r"\bmethods\s*=\s*(\{[^}]*\}|['\"][^'\"]*['\"])")
_QUOTED = re.compile(r"['\"]([A-Za-z]+)['\"]")

_REQUEST_FIELD = re.compile(r"\$request->(?:request->)?get\s*\(\s*['\"](\w+)['\"]")
_QUERY_FIELD = re.compile(r"\$request->query->get\s*\(\s*['\"](\w+)['\"]")
_DECODED_FIELD = re.compile(r"\$(?:data|payload|body|content)\[\s*['\"](\w+)['\"]\s*\]")
_JSON_STATUS = re.compile(r"(?:new\s+JsonResponse|->json)\s*\(")
_HTTP_CONSTANT = re.compile(r"Response::HTTP_(\w+)")

HTTP_CONSTANTS = {
    "OK": "200",
    "CREATED": "201",
    "ACCEPTED": "202",
    "NO_CONTENT": "204",
    "BAD_REQUEST": "400",
    "UNAUTHORIZED": "401",
    "FORBIDDEN": "403",
    "NOT_FOUND": "404",
    "CONFLICT": "409",
    "UNPROCESSABLE_ENTITY": "422",
    "INTERNAL_SERVER_ERROR": "500",
}


def _first_positional(args: str) -> str | None:
    head = args.lstrip()
    if head[:1] in ("'", '"'):
        quote = head[0]
        end = head.find(quote, 1)
        if end != -1:
            return quoted(head[: end + 1])
    return None


def route_path(args: str) -> str | None:
    path = _first_positional(args)
    if path is not None:
        return path
    named = _NAMED_PATH.search(args)
    return named.group(2) if named else None


def route_methods(args: str, pattern: re.Pattern) -> list[str]:
    match = pattern.search(args)
    if not match:
        return ["GET"]
    methods = [m.upper() for m in _QUOTED.findall(match.group(1))]
    return methods or ["GET"]


def status_codes(body: str) -> list[str]:
    codes = []
    for match in _JSON_STATUS.finditer(body):
        close = matching_close(body, match.end() - 1)
        args = body[match.end(): close] if close != -1 else ""
        found = re.search(r",\s*(\d{3})\s*(?:,|$)", args)
        if found and found.group(1) not in codes:
            codes.append(found.group(1))
    for match in _HTTP_CONSTANT.finditer(body):
        code = HTTP_CONSTANTS.get(match.group(1))
        if code and code not in codes:
            codes.append(code)
    return codes


class SymfonyParser(FrameworkParser):
    name = "symfony"

    def __init__(self, config: AnalyzerConfig = DEFAULT_CONFIG):
        self.config = config

    def _routes(self, content: str, pattern: re.Pattern):
        """Yield ``(start, args, end)`` for every route declaration."""
        for match in pattern.finditer(content):
            close = matching_close(content, match.end() - 1)
            if close == -1:
                continue
            yield match.start(), content[match.end(): close], close + 1

    def _class_prefix(self, content: str) -> str:
        class_match = CLASS.search(content)
        if not class_match:
            return ""
        for start, args, _ in self._routes(content, ATTRIBUTE):
            if start < class_match.start():
                return route_path(args) or ""
        for start, args, _ in self._routes(content, ANNOTATION):
            if start < class_match.start():
                return route_path(args) or ""
        return ""

    def _endpoints(self, content: str, prefix: str, start: int, args: str, end: int, methods_pattern: re.Pattern):
        function = FUNCTION.search(content, end)
        if not function:
            return []
        # Another route declaration between this one and the function means
        # this one is not attached to it.
        between = content[end: function.start()]
        if ATTRIBUTE.search(between) or ANNOTATION.search(between):
            return []
        path = route_path(args)
        if path is None:
            return []

        settings = self.config.settings
        body_end = block_end(content, function.end(), settings.block_scan_fallback)
        body = content[function.end(): body_end]
        signature_end = max(0, body.find("{"))
        lead = content[max(0, start - settings.attribute_lookbehind): function.start()]
        requires_auth = bool(METHOD_AUTH.search(lead)) or "denyAccessUnlessGranted" in body

        full_path = join_paths(prefix, path)
        query = list(dict.fromkeys(_QUERY_FIELD.findall(body)))
        endpoints = []
        for method in route_methods(args, methods_pattern):
            request_body = None
            if method in BODY_METHODS:
                fields = list(dict.fromkeys(_REQUEST_FIELD.findall(body) + _DECODED_FIELD.findall(body)))
                if fields:
                    request_body = schema_from_fields(fields)
            endpoints.append(Endpoint(
                method=method,
                path=full_path,
                handler=function.group(1),
                parameters=merge_params(path_params(full_path), query_params(query)),
                request_body=request_body,
                responses=[ResponseSpec(code=code) for code in status_codes(body[signature_end:])],
                requires_auth=requires_auth,
            ))
        return endpoints

    def parse(self, content: str, file_path: str) -> ParseResult:
        result = ParseResult(framework_flavor=self.name)
        result.has_auth = bool(FILE_AUTH.search(content))
        if not CONTROLLER.search(content):
            return result

        prefix = self._class_prefix(content)
        class_match = CLASS.search(content)
        class_start = class_match.start() if class_match else 0

        for pattern, methods_pattern in ((ATTRIBUTE, _ATTR_METHODS), (ANNOTATION, _ANNOTATION_METHODS)):
            for start, args, end in self._routes(content, pattern):
                if start < class_start:
                    continue
                for endpoint in self._endpoints(content, prefix, start, args, end, methods_pattern):
                    if endpoint.requires_auth:
                        result.has_auth = True
                    result.add(endpoint)
        return result
