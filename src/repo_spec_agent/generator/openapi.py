"""Spec synthesizer: one OpenAPI 3.0 document per parsed source file.

Text the synthesizer makes up (summaries, descriptions, parameter
descriptions) carries the placeholder marker so the quality scorer only
credits what came from the source. Response schemas stay a bare object
unless the parser knew the payload fields.
"""

from pathlib import Path

from repo_spec_agent.config import BODY_METHODS, DEFAULT_CONFIG, AnalyzerConfig
from repo_spec_agent.generator.examples import error_example, request_example, success_example
from repo_spec_agent.parser.base import Endpoint, Param, ParseResult
from repo_spec_agent.parser.fields import merge_params, path_params, placeholder, schema_from_fields, summarize
from repo_spec_agent.parser.paths import resource_from_path, tag_from_path

SECURITY_SCHEMES = {
    "cookie": ("cookieAuth", {"type": "apiKey", "in": "cookie", "name": "auth_token"}),
    "bearer": ("bearerAuth", {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}),
}


def success_code(endpoint: Endpoint) -> str:
    """First detected 2xx code, else 201 for POST and 200 for everything else."""
    for response in endpoint.responses:
        if response.code.startswith("2"):
            return response.code
    return "201" if endpoint.method == "POST" else "200"


class SpecSynthesizer:
    """Converts a ``ParseResult`` into an OpenAPI document."""

    def __init__(self, config: AnalyzerConfig = DEFAULT_CONFIG, security: str = "bearer", label: str = ""):
        self.config = config
        self.scheme_name, self.scheme = SECURITY_SCHEMES.get(security, SECURITY_SCHEMES["bearer"])
        self.label = label

    def _parameter(self, param: Param) -> dict:
        schema = {"type": param.param_type, **param.constraints}
        return {
            "name": param.name,
            "in": param.location,
            "required": True if param.location == "path" else param.required,
            "description": param.description or placeholder(f"Parámetro {param.name}"),
            "schema": schema,
        }

    def _request_body(self, endpoint: Endpoint) -> dict:
        schema = endpoint.request_body or {"type": "object"}
        verb = "crear" if endpoint.method == "POST" else "actualizar"
        return {
            "description": placeholder(f"Datos para {verb} {resource_from_path(endpoint.path)}"),
            "required": True,
            "content": {
                "application/json": {
                    "schema": schema,
                    "example": request_example(endpoint.method, endpoint.path, schema),
                }
            },
        }

    def _responses(self, endpoint: Endpoint) -> dict:
        described = {r.code: r for r in endpoint.responses}
        responses = {}

        code = success_code(endpoint)
        success = described.get(code)
        entry = {"description": (success.description if success else "") or self.config.status_description(code)}
        if code != "204":
            fields = success.fields if success else {}
            entry["content"] = {
                "application/json": {
                    "schema": schema_from_fields(fields) if fields else {"type": "object"},
                    "example": success_example(endpoint.method, endpoint.path, fields or None),
                }
            }
        responses[code] = entry

        for response in endpoint.responses:
            if response.code in responses or response.code.startswith("2"):
                continue
            entry = {"description": response.description or self.config.status_description(response.code)}
            if response.code[:1] in ("4", "5"):
                entry["content"] = {
                    "application/json": {
                        "schema": schema_from_fields(response.fields) if response.fields else {"type": "object"},
                        "example": error_example(response.code, endpoint.path),
                    }
                }
            responses[response.code] = entry
        return responses

    def _operation(self, endpoint: Endpoint) -> dict:
        method, path = endpoint.method, endpoint.path
        operation = {
            "summary": endpoint.summary or placeholder(summarize(method, path)),
            "description": endpoint.description or placeholder(f"Endpoint {method} {path}"),
            "tags": endpoint.tags or [tag_from_path(path)],
        }
        if endpoint.handler:
            operation["x-handler"] = endpoint.handler
        parameters = merge_params(endpoint.parameters, path_params(path))
        if parameters:
            operation["parameters"] = [self._parameter(p) for p in parameters]
        if method in BODY_METHODS:
            operation["requestBody"] = self._request_body(endpoint)
        operation["responses"] = self._responses(endpoint)
        if endpoint.requires_auth:
            operation["security"] = [{self.scheme_name: []}]
        return operation

    def _servers(self, result: ParseResult, file_name: str) -> list[dict]:
        """Mount point guessed from the file name when the router does not say."""
        if result.base_route:
            return []
        base_name = Path(file_name).stem
        if not base_name or base_name.lower() in self.config.generic_file_names:
            return []
        return [{"url": f"/{base_name}", "description": f"Servidor inferido del nombre de archivo ({base_name})"}]

    def synthesize(self, result: ParseResult, file_name: str) -> dict:
        paths: dict[str, dict] = {}
        tags: list[str] = []
        for endpoint in result.endpoints:
            operation = self._operation(endpoint)
            paths.setdefault(endpoint.path, {})[endpoint.method.lower()] = operation
            tags.extend(t for t in operation["tags"] if t not in tags)

        needs_auth = result.has_auth or any(e.requires_auth for e in result.endpoints)
        if needs_auth:
            description = "API con autenticación requerida para algunos endpoints"
        else:
            description = f"API generada automáticamente desde código {self.label}".rstrip()
        spec = {
            "openapi": "3.0.0",
            "info": {"title": f"API from {file_name}", "version": "1.0.0", "description": description},
        }
        servers = self._servers(result, file_name)
        if servers:
            spec["servers"] = servers
        spec["paths"] = paths
        spec["components"] = {"securitySchemes": {self.scheme_name: dict(self.scheme)} if needs_auth else {}}
        spec["tags"] = [{"name": tag} for tag in tags]
        return spec
