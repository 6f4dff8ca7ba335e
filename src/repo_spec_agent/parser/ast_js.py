"""Syntax-tree parser for Express-style routers, built on esprima.

Tried before the pattern parser. It reads import/require targets, finds
``<router>.<verb>('/path', ..., handler)`` calls and ``.route('/path')``
chains, and runs the shared handler heuristics over the exact source span
of each handler instead of a fixed window. Code esprima cannot parse
(TypeScript, decorators) gives an empty result and the pattern parser runs.
"""

import logging
import re

import esprima
from esprima.error_handler import Error as EsprimaError

from repo_spec_agent.config import HTTP_METHODS

from .base import Endpoint, FrameworkParser, ParseResult
from .express import handler_details
from .paths import normalize_path
from .text import mentions_auth

logger = logging.getLogger("repo-spec-agent.ast")

ROUTER_NAMES = {"router", "app", "server", "fastify", "api"}
KNOWN_FRAMEWORKS = {"express": "express", "fastify": "fastify", "koa": "koa", "@hapi/hapi": "hapi"}
_ROUTER_SUFFIX = re.compile(r"router$", re.IGNORECASE)
_FUNCTION_NODES = {"FunctionExpression", "ArrowFunctionExpression"}


def _is_node(value) -> bool:
    return isinstance(getattr(value, "type", None), str)


def walk(node):
    """Yield every node of the tree, depth first."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        children = []
        for key, value in vars(current).items():
            if key in ("range", "loc", "type"):
                continue
            if _is_node(value):
                children.append(value)
            elif isinstance(value, list):
                children.extend(item for item in value if _is_node(item))
        stack.extend(reversed(children))


def string_value(node) -> str | None:
    if node is None:
        return None
    if node.type == "Literal" and isinstance(node.value, str):
        return node.value
    if node.type == "TemplateLiteral" and not node.expressions and len(node.quasis) == 1:
        value = node.quasis[0].value
        cooked = value.get("cooked") if isinstance(value, dict) else getattr(value, "cooked", None)
        return cooked if isinstance(cooked, str) else None
    return None


def _member_name(callee) -> str | None:
    if callee is None or callee.type != "MemberExpression" or callee.computed:
        return None
    if callee.property.type != "Identifier":
        return None
    return callee.property.name


def _is_router(node) -> bool:
    if node.type == "Identifier":
        return node.name.lower() in ROUTER_NAMES or bool(_ROUTER_SUFFIX.search(node.name))
    if node.type == "MemberExpression" and not node.computed and node.property.type == "Identifier":
        return node.property.name.lower() in ROUTER_NAMES
    return False


class AstRouterParser(FrameworkParser):
    name = "express-ast"

    def _tree(self, content: str):
        options = {"range": True, "tolerant": True, "jsx": True}
        try:
            return esprima.parseModule(content, options)
        except (EsprimaError, RecursionError, ValueError):
            pass
        try:
            return esprima.parseScript(content, options)
        except (EsprimaError, RecursionError, ValueError) as exc:
            logger.debug("esprima could not parse the file: %s", exc)
            return None

    def _source(self, content: str, node) -> str:
        start, end = node.range
        return content[start:end]

    def _route_from_chain(self, call) -> str | None:
        """Path of the ``.route('/x')`` call a verb chain hangs off."""
        target = call.callee.object
        while target is not None and target.type == "CallExpression":
            name = _member_name(target.callee)
            if name == "route":
                return string_value(target.arguments[0]) if target.arguments else None
            if name not in HTTP_METHODS:
                return None
            target = target.callee.object
        return None

    def _add(self, result: ParseResult, content: str, call, method: str, path: str, handler_args: list):
        handler = handler_args[-1] if handler_args else None
        middleware = handler_args[:-1]
        if handler is not None and handler.type in _FUNCTION_NODES:
            text = self._source(content, handler.body)
        else:
            text = self._source(content, call)
        middleware_text = " ".join(self._source(content, m) for m in middleware)
        path = normalize_path(path)
        details = handler_details(text, method, path)
        details["requires_auth"] = mentions_auth(middleware_text)
        if details["requires_auth"]:
            result.has_auth = True
        name = handler.name if handler is not None and handler.type == "Identifier" else None
        result.add(Endpoint(method=method, path=path, handler=name, **details))

    def parse(self, content: str, file_path: str) -> ParseResult:
        result = ParseResult(framework_flavor="express")
        tree = self._tree(content)
        if tree is None:
            return result

        for node in walk(tree):
            if node.type == "ImportDeclaration":
                source = string_value(node.source)
                if source:
                    result.imports.append(source)
                continue
            if node.type != "CallExpression":
                continue

            callee = node.callee
            if callee.type == "Identifier" and callee.name == "require" and node.arguments:
                source = string_value(node.arguments[0])
                if source:
                    result.imports.append(source)
                continue

            name = _member_name(callee)
            if name not in HTTP_METHODS:
                continue
            method = name.upper()
            if _is_router(callee.object) and node.arguments:
                path = string_value(node.arguments[0])
                if path is not None and path.startswith("/"):
                    self._add(result, content, node, method, path, list(node.arguments[1:]))
                continue
            path = self._route_from_chain(node)
            if path is not None:
                self._add(result, content, node, method, path, list(node.arguments))

        for source in result.imports:
            if source in KNOWN_FRAMEWORKS:
                result.framework_flavor = KNOWN_FRAMEWORKS[source]
                break
        if not result.has_auth:
            result.has_auth = any(mentions_auth(source) for source in result.imports)
        logger.debug("AST parser found %d endpoints in %s", len(result.endpoints), file_path)
        return result
