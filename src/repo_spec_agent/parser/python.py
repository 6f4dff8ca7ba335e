"""FastAPI and Flask route decorators, read with the standard ``ast`` module.

Recognised shapes::

    router = APIRouter(prefix="/users")       bp = Blueprint("x", __name__, url_prefix="/x")
    @router.get("/{user_id}")                 @bp.route("/<int:id>", methods=["GET", "PUT"])
    @app.post("/items", status_code=201)      @app.get("/health")

Handler docstrings are real documentation and become summaries and
descriptions. A file that does not compile gives an empty result.
"""

import ast
import logging

from repo_spec_agent.config import BODY_METHODS, HTTP_METHODS

from .base import Endpoint, FrameworkParser, ParseResult, Param, ResponseSpec
from .fields import infer_field_type, merge_params, path_params, schema_from_fields
from .paths import join_paths, path_param_names

logger = logging.getLogger("repo-spec-agent.python")

ROUTER_FACTORIES = {"APIRouter": "prefix", "FastAPI": "root_path", "Blueprint": "url_prefix", "Flask": None}
AUTH_NAMES = {"login_required", "jwt_required", "auth_required", "requires_auth", "get_current_user",
              "get_current_active_user", "oauth2_scheme", "HTTPBearer", "OAuth2PasswordBearer"}
ANNOTATION_TYPES = {"int": "integer", "float": "number", "bool": "boolean", "str": "string",
                    "list": "array", "List": "array", "dict": "object", "Dict": "object"}
FRAMEWORK_ARGS = {"request", "response", "db", "session", "background_tasks", "self"}


def _name(node) -> str | None:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    if isinstance(node, ast.Call):
        return _name(node.func)
    return None


def _literal(node):
    try:
        return ast.literal_eval(node)
    except (ValueError, TypeError, SyntaxError, MemoryError, RecursionError):
        return None


def _keyword(call: ast.Call, name: str):
    for keyword in call.keywords:
        if keyword.arg == name:
            return keyword.value
    return None


def _annotation_type(node) -> str:
    name = _name(node.value) if isinstance(node, ast.Subscript) else _name(node)
    return ANNOTATION_TYPES.get(name or "", "string")


def _mentions_auth(node) -> bool:
    return any(_name(n) in AUTH_NAMES for n in ast.walk(node) if isinstance(n, (ast.Name, ast.Attribute, ast.Call)))


class PythonRouteParser(FrameworkParser):
    name = "python"

    def _routers(self, tree: ast.Module) -> dict[str, str]:
        """Router variable -> mount prefix."""
        routers = {}
        for node in ast.walk(tree):
            if not isinstance(node, ast.Assign) or not isinstance(node.value, ast.Call):
                continue
            factory = _name(node.value.func)
            if factory not in ROUTER_FACTORIES:
                continue
            prefix_arg = ROUTER_FACTORIES[factory]
            prefix = _literal(_keyword(node.value, prefix_arg)) if prefix_arg else None
            for target in node.targets:
                if isinstance(target, ast.Name):
                    routers[target.id] = prefix if isinstance(prefix, str) else ""
        return routers

    def _models(self, tree: ast.Module) -> dict[str, dict[str, str]]:
        """Pydantic-style model classes -> annotated field types."""
        models = {}
        for node in ast.walk(tree):
            if not isinstance(node, ast.ClassDef):
                continue
            fields = {
                stmt.target.id: _annotation_type(stmt.annotation)
                for stmt in node.body
                if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name)
            }
            if fields:
                models[node.name] = fields
        return models

    def _routes(self, function, routers: dict[str, str]):
        """Yield ``(methods, path, decorator_call)`` for each route decorator."""
        for decorator in function.decorator_list:
            if not isinstance(decorator, ast.Call) or not isinstance(decorator.func, ast.Attribute):
                continue
            owner = _name(decorator.func.value)
            verb = decorator.func.attr
            if owner not in routers or not decorator.args:
                continue
            path = _literal(decorator.args[0])
            if not isinstance(path, str):
                continue
            full_path = join_paths(routers[owner], path)
            if verb in HTTP_METHODS:
                yield [verb.upper()], full_path, decorator
            elif verb in ("route", "api_route"):
                methods = _literal(_keyword(decorator, "methods")) or ["GET"]
                yield [str(m).upper() for m in methods], full_path, decorator

    def _endpoints(self, function, routers, models) -> list[Endpoint]:
        docstring = ast.get_docstring(function)
        summary, description = "", None
        if docstring:
            summary = docstring.strip().split("\n", 1)[0].strip()
            description = docstring.strip()

        decorator_auth = any(_name(d) in AUTH_NAMES for d in function.decorator_list)
        args = function.args.args + function.args.kwonlyargs
        defaults = [None] * (len(function.args.args) - len(function.args.defaults)) + list(function.args.defaults)
        defaults += list(function.args.kw_defaults)

        codes = []
        for node in ast.walk(function):
            if isinstance(node, ast.Call) and _name(node.func) in ("HTTPException", "abort") and (node.args or node.keywords):
                code = _literal(node.args[0]) if node.args else _literal(_keyword(node, "status_code"))
                if isinstance(code, int) and str(code) not in codes:
                    codes.append(str(code))

        endpoints = []
        for methods, path, decorator in self._routes(function, routers):
            requires_auth = decorator_auth or _mentions_auth(decorator)
            in_path = set(path_param_names(path))
            queries = []
            body_fields: dict[str, str] = {}
            for arg, default in zip(args, defaults):
                if arg.arg in in_path or arg.arg in FRAMEWORK_ARGS:
                    continue
                annotation = arg.annotation
                if default is not None and _name(default) == "Depends":
                    requires_auth = requires_auth or _mentions_auth(default)
                    continue
                type_name = _name(annotation) if annotation is not None else None
                if type_name in models:
                    body_fields.update(models[type_name])
                elif default is not None and _name(default) == "Body":
                    body_fields[arg.arg] = _annotation_type(annotation) if annotation else infer_field_type(arg.arg)
                elif type_name not in ("Request", "Response", "Session", "BackgroundTasks"):
                    queries.append(Param(
                        name=arg.arg,
                        location="query",
                        required=default is None,
                        param_type=_annotation_type(annotation) if annotation else infer_field_type(arg.arg),
                    ))

            status_code = _literal(_keyword(decorator, "status_code"))
            endpoint_codes = ([str(status_code)] if isinstance(status_code, int) else []) + codes
            response_model = _name(_keyword(decorator, "response_model"))
            for method in methods:
                responses = [ResponseSpec(code=code) for code in dict.fromkeys(endpoint_codes)]
                if response_model in models:
                    success = next((r for r in responses if r.code.startswith("2")), None)
                    if success is None:
                        success = ResponseSpec(code="201" if method == "POST" else "200")
                        responses.insert(0, success)
                    success.fields = dict(models[response_model])
                endpoints.append(Endpoint(
                    method=method,
                    path=path,
                    summary=summary,
                    description=description,
                    handler=function.name,
                    parameters=merge_params(path_params(path), queries),
                    request_body=schema_from_fields(body_fields) if body_fields and method in BODY_METHODS else None,
                    responses=responses,
                    requires_auth=requires_auth,
                ))
        return endpoints

    def parse(self, content: str, file_path: str) -> ParseResult:
        result = ParseResult(framework_flavor=self.name)
        try:
            tree = ast.parse(content, filename=file_path)
        except (SyntaxError, ValueError) as exc:
            logger.debug("Cannot compile %s: %s", file_path, exc)
            return result

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                result.imports.extend(alias.name for alias in node.names)
            elif isinstance(node, ast.ImportFrom) and node.module:
                result.imports.append(node.module)
        if any(name.split(".")[0] == "flask" for name in result.imports):
            result.framework_flavor = "flask"
        elif any(name.split(".")[0] == "fastapi" for name in result.imports):
            result.framework_flavor = "fastapi"

        routers = self._routers(tree)
        if not routers:
            return result
        models = self._models(tree)
        for node in ast.walk(tree):
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                for endpoint in self._endpoints(node, routers, models):
                    result.add(endpoint)
        result.has_auth = any(e.requires_auth for e in result.endpoints)
        return result
