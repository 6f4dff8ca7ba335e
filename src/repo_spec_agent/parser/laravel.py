"""Laravel route files and resource controllers.

Route files (anything under ``routes/``) are read as a sequence of
``Route::...`` call chains: verb routes, ``resource``/``apiResource``
registrations and ``prefix``/``middleware`` groups, which nest. Controllers
get one endpoint per public action, named by the conventional action table.
"""

import re

from repo_spec_agent.config import DEFAULT_CONFIG, AnalyzerConfig

from .base import Endpoint, FrameworkParser, ParseResult, ResponseSpec
from .fields import path_params, schema_from_fields
from .paths import join_paths
from .text import block_end, docblock_before, matching_close, quoted

CHAIN_START = re.compile(r"Route::(\w+)\s*\(")
CHAIN_LINK = re.compile(r"\s*->\s*(\w+)\s*\(")
CONTROLLER = re.compile(r"class\s+(\w+?)Controller\s+extends")
PUBLIC_FUNCTION = re.compile(r"public\s+function\s+(\w+)\s*\(")
FILE_AUTH = re.compile(
    r"middleware\s*\(\s*\[?[^)]*['\"]auth|'middleware'\s*=>\s*\[?[^\]]*['\"]auth|sanctum|passport",
    re.IGNORECASE,
)

ROUTE_VERBS = {"get", "post", "put", "patch", "delete", "options"}
SKIPPED_ACTIONS = {"__construct", "__invoke", "middleware", "callAction"}

# name -> (verb, path suffix under the resource)
RESOURCE_ACTIONS = {
    "index": ("GET", ""),
    "store": ("POST", ""),
    "show": ("GET", "/{id}"),
    "update": ("PUT", "/{id}"),
    "destroy": ("DELETE", "/{id}"),
    "create": ("GET", "/create"),
    "edit": ("GET", "/{id}/edit"),
}
API_RESOURCE_ACTIONS = ("index", "store", "show", "update", "destroy")
WEB_RESOURCE_ACTIONS = API_RESOURCE_ACTIONS + ("create", "edit")

# Substring fallback for action names outside the conventional set.
ACTION_VERBS = (
    ("index", "GET"),
    ("show", "GET"),
    ("create", "GET"),
    ("store", "POST"),
    ("edit", "GET"),
    ("update", "PUT"),
    ("destroy", "DELETE"),
    ("delete", "DELETE"),
    ("get", "GET"),
    ("post", "POST"),
    ("put", "PUT"),
    ("patch", "PATCH"),
)

_VALIDATION_CALL = re.compile(
    r"(?:\$request->validate|\$this->validate\s*\(\s*\$request\s*,|Validator::make\s*\([^,]+,)\s*\(?\s*(?=\[)"
)
_RULE = re.compile(r"['\"]([\w.*]+)['\"]\s*=>\s*(\[[^\]]*\]|'[^']*'|\"[^\"]*\")")
_JSON_STATUS = re.compile(r"response\s*\(\s*\)\s*->\s*json\s*\(")
_ABORT = re.compile(r"\babort\s*\(\s*(\d{3})")
_SET_STATUS = re.compile(r"->setStatusCode\s*\(\s*(\d{3})")


def kebab(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "-", name).lower()


def rule_type(rules: str) -> str:
    rules = rules.lower()
    if "integer" in rules:
        return "integer"
    if "numeric" in rules:
        return "number"
    if "boolean" in rules:
        return "boolean"
    if "array" in rules:
        return "array"
    return "string"


def validation_schema(body: str) -> dict | None:
    """JSON schema from the first inline validation rule set in a method body."""
    call = _VALIDATION_CALL.search(body)
    if not call:
        return None
    open_index = call.end()
    close = matching_close(body, open_index, "[", "]")
    rules_text = body[open_index + 1: close] if close != -1 else body[open_index + 1:]
    rules = {
        match.group(1): match.group(2).lower()
        for match in _RULE.finditer(rules_text)
        if "." not in match.group(1)
    }
    if not rules:
        return None
    schema = schema_from_fields(
        {name: rule_type(text) for name, text in rules.items()},
        required=[name for name, text in rules.items() if "required" in text],
    )
    for name, text in rules.items():
        if "email" in text:
            schema["properties"][name]["format"] = "email"
    return schema


def status_codes(body: str) -> list[str]:
    codes = []
    for match in _JSON_STATUS.finditer(body):
        close = matching_close(body, match.end() - 1)
        args = body[match.end(): close] if close != -1 else ""
        found = re.search(r",\s*(\d{3})\s*(?:,|$)", args)
        if found:
            codes.append(found.group(1))
    codes += _ABORT.findall(body) + _SET_STATUS.findall(body)
    return list(dict.fromkeys(codes))


def action_verb(name: str) -> str:
    lowered = name.lower()
    for needle, verb in ACTION_VERBS:
        if needle in lowered:
            return verb
    return "GET"


def action_path(name: str, resource: str) -> str:
    if name in RESOURCE_ACTIONS:
        return f"/{resource}{RESOURCE_ACTIONS[name][1]}"
    return f"/{resource}/{name.lower()}"


def _literal_list(args: str) -> list[str]:
    return re.findall(r"['\"]([^'\"]+)['\"]", args)


class LaravelParser(FrameworkParser):
    name = "laravel"

    def __init__(self, config: AnalyzerConfig = DEFAULT_CONFIG):
        self.config = config

    def _chain(self, content: str, start: re.Match) -> tuple[list[tuple[str, str]], int]:
        """Calls of one ``Route::a(...)->b(...)`` statement and where it ends."""
        calls = []
        open_index = start.end() - 1
        name = start.group(1)
        while True:
            close = matching_close(content, open_index)
            if close == -1:
                return calls, len(content)
            calls.append((name, content[open_index + 1: close]))
            link = CHAIN_LINK.match(content, close + 1)
            if not link:
                return calls, close + 1
            name = link.group(1)
            open_index = link.end() - 1

    def _route_file(self, content: str, result: ParseResult, prefix: str, auth: bool):
        pos = 0
        while True:
            start = CHAIN_START.search(content, pos)
            if not start:
                return
            calls, pos = self._chain(content, start)
            names = [name for name, _ in calls]
            chain_auth = auth or any(
                name == "middleware" and "auth" in args for name, args in calls
            )

            if "group" in names:
                group_prefix = prefix
                for name, args in calls:
                    if name == "prefix":
                        group_prefix = join_paths(group_prefix, quoted(args.split(",")[0]) or "")
                    elif name == "group":
                        head = args[: args.find("function")] if "function" in args else args
                        option = re.search(r"['\"]prefix['\"]\s*=>\s*['\"]([^'\"]*)['\"]", head)
                        if option:
                            group_prefix = join_paths(group_prefix, option.group(1))
                        if re.search(r"['\"]middleware['\"]\s*=>[^\]]*auth", head):
                            chain_auth = True
                        body = args[args.find("function"):] if "function" in args else args
                        self._route_file(body, result, group_prefix, chain_auth)
                continue

            verb, args = calls[0]
            verb = verb.lower()
            if verb in ROUTE_VERBS:
                self._verb_route(result, verb.upper(), args, prefix, chain_auth)
            elif verb == "match":
                methods_text, _, rest = args.partition("]")
                for method in _literal_list(methods_text):
                    self._verb_route(result, method.upper(), rest.lstrip(", "), prefix, chain_auth)
            elif verb in ("resource", "apiresource"):
                self._resource(result, calls, prefix, chain_auth, api=verb == "apiresource")

    def _verb_route(self, result: ParseResult, method: str, args: str, prefix: str, auth: bool):
        path_text, _, handler = args.partition(",")
        path = quoted(path_text)
        if path is None:
            return
        full_path = join_paths(prefix, path)
        result.add(Endpoint(
            method=method,
            path=full_path,
            handler=handler.strip() or None,
            parameters=path_params(full_path),
            requires_auth=auth,
        ))

    def _resource(self, result: ParseResult, calls: list, prefix: str, auth: bool, api: bool):
        name_text, _, controller = calls[0][1].partition(",")
        resource = quoted(name_text)
        if not resource:
            return
        actions = list(API_RESOURCE_ACTIONS if api else WEB_RESOURCE_ACTIONS)
        for link, args in calls[1:]:
            if link == "only":
                actions = [a for a in actions if a in _literal_list(args)]
            elif link == "except":
                actions = [a for a in actions if a not in _literal_list(args)]
        base = join_paths(prefix, resource.replace(".", "/"))
        for action in actions:
            verb, suffix = RESOURCE_ACTIONS[action]
            full_path = base + suffix
            result.add(Endpoint(
                method=verb,
                path=full_path,
                handler=f"{controller.strip()}@{action}" if controller.strip() else action,
                parameters=path_params(full_path),
                requires_auth=auth,
            ))

    def _controller(self, content: str, result: ParseResult, controller: str):
        resource = kebab(controller)
        fallback = self.config.settings.block_scan_fallback
        for match in PUBLIC_FUNCTION.finditer(content):
            action = match.group(1)
            if action in SKIPPED_ACTIONS:
                continue
            body = content[match.end(): block_end(content, match.end(), fallback)]
            path = action_path(action, resource)
            docs = docblock_before(content, match.start())
            result.add(Endpoint(
                method=RESOURCE_ACTIONS[action][0] if action in RESOURCE_ACTIONS else action_verb(action),
                path=path,
                summary=docs or "",
                handler=f"{controller}Controller@{action}",
                parameters=path_params(path),
                request_body=validation_schema(body),
                responses=[ResponseSpec(code=code) for code in status_codes(body)],
            ))

    def parse(self, content: str, file_path: str) -> ParseResult:
        result = ParseResult(framework_flavor=self.name)
        result.has_auth = bool(FILE_AUTH.search(content))

        normalized = file_path.replace("\\", "/")
        if normalized.startswith("routes/") or "/routes/" in normalized:
            self._route_file(content, result, "", False)

        controller = CONTROLLER.search(content)
        if controller:
            self._controller(content, result, controller.group(1))
        return result
