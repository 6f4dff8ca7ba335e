"""Documentation quality score (0-100) of an OpenAPI document.

Seven weighted categories::

    routes        20   at least one path
    descriptions  20   operations with a real summary or description
    parameters    15   operations with a described parameter
    responses     15   operations with a response schema
    examples      10   operations with a response example
    schemas       10   reusable component schemas exist
    info          10   title 3 + description 4 + version 3

Operation categories are ``round(matching / total * max)``. Text carrying
the placeholder marker never counts.
"""

from pydantic import BaseModel, Field

from repo_spec_agent.config import HTTP_METHODS
from repo_spec_agent.parser.fields import is_placeholder

CATEGORIES = (
    ("routes", 20, "Rutas detectadas"),
    ("descriptions", 20, "Descripciones"),
    ("parameters", 15, "Parámetros"),
    ("responses", 15, "Respuestas"),
    ("examples", 10, "Ejemplos"),
    ("schemas", 10, "Schemas"),
    ("info", 10, "Info completa"),
)
MAX_SUGGESTIONS = 5

LEVEL_LABELS = {
    "good": "Documentación completa",
    "partial": "Documentación parcial",
    "basic": "Requiere documentación",
}

_COMPOSITION = ("$ref", "allOf", "oneOf", "anyOf", "properties", "items", "additionalProperties")


class CategoryScore(BaseModel):
    score: int = 0
    max: int
    percentage: int = 0
    label: str = ""


class QualityScore(BaseModel):
    total: int = 0
    breakdown: dict[str, CategoryScore] = Field(default_factory=dict)
    suggestions: list[str] = Field(default_factory=list)
    level: str = "basic"

    @property
    def level_label(self) -> str:
        return LEVEL_LABELS[self.level]


def quality_level(total: int) -> str:
    if total >= 71:
        return "good"
    if total >= 41:
        return "partial"
    return "basic"


def has_real_schema(schema) -> bool:
    """A bare ``{"type": "object"}`` is the synthesizer's placeholder."""
    if not isinstance(schema, dict) or not schema:
        return False
    if any(schema.get(key) for key in _COMPOSITION):
        return True
    return schema.get("type", "object") != "object"


def _json_content(response) -> dict:
    if not isinstance(response, dict):
        return {}
    content = response.get("content")
    if not isinstance(content, dict):
        return {}
    media = content.get("application/json")
    return media if isinstance(media, dict) else {}


def operations(spec: dict):
    """Yield every operation object of a document."""
    paths = spec.get("paths") if isinstance(spec, dict) else None
    if not isinstance(paths, dict):
        return
    for item in paths.values():
        if not isinstance(item, dict):
            continue
        for method, operation in item.items():
            if isinstance(method, str) and method.lower() in HTTP_METHODS and isinstance(operation, dict):
                yield operation


def _is_described(operation: dict) -> bool:
    for key in ("description", "summary"):
        text = operation.get(key)
        if isinstance(text, str) and not is_placeholder(text):
            return True
    return False


def _has_described_param(operation: dict) -> bool:
    params = operation.get("parameters")
    if not isinstance(params, list):
        return False
    return any(
        isinstance(p, dict) and isinstance(p.get("description"), str) and not is_placeholder(p["description"])
        for p in params
    )


def _responses(operation: dict) -> list:
    responses = operation.get("responses")
    return list(responses.values()) if isinstance(responses, dict) else []


def score_spec(spec: dict) -> QualityScore:
    """Score a document and suggest what to document next."""
    spec = spec if isinstance(spec, dict) else {}
    scores = {name: 0 for name, _, _ in CATEGORIES}
    suggestions = []

    paths = spec.get("paths")
    if isinstance(paths, dict) and paths:
        scores["routes"] = 20
    else:
        suggestions.append("Añadir endpoints a la especificación")

    ops = list(operations(spec))
    if ops:
        total_ops = len(ops)
        described = sum(1 for op in ops if _is_described(op))
        with_params = [op for op in ops if op.get("parameters")]
        param_documented = sum(1 for op in ops if _has_described_param(op))
        with_schema = sum(1 for op in ops if any(has_real_schema(_json_content(r).get("schema")) for r in _responses(op)))
        with_example = sum(
            1 for op in ops
            if any(_json_content(r).get("example") or _json_content(r).get("examples") for r in _responses(op))
        )

        scores["descriptions"] = round(described / total_ops * 20)
        scores["parameters"] = round(param_documented / total_ops * 15)
        scores["responses"] = round(with_schema / total_ops * 15)
        scores["examples"] = round(with_example / total_ops * 10)

        if described < total_ops:
            suggestions.append(f"Añadir descripción a {total_ops - described} endpoint(s)")
        if param_documented < len(with_params):
            suggestions.append(f"Describir los parámetros de {len(with_params) - param_documented} endpoint(s)")
        if with_schema < total_ops:
            suggestions.append(f"Documentar respuestas en {total_ops - with_schema} endpoint(s)")
        if with_example < total_ops:
            suggestions.append("Incluir ejemplos de request/response")

    components = spec.get("components")
    schemas = components.get("schemas") if isinstance(components, dict) else None
    if isinstance(schemas, dict) and schemas:
        scores["schemas"] = 10
    else:
        suggestions.append("Definir schemas reutilizables en components")

    info = spec.get("info")
    if isinstance(info, dict):
        title, description, version = info.get("title"), info.get("description"), info.get("version")
        if isinstance(title, str) and not is_placeholder(title):
            scores["info"] += 3
        if isinstance(description, str) and not is_placeholder(description):
            scores["info"] += 4
        if version:
            scores["info"] += 3
    if scores["info"] < 10:
        suggestions.append("Completar información de la API (título, descripción, versión)")

    breakdown = {
        name: CategoryScore(score=scores[name], max=maximum, percentage=round(scores[name] / maximum * 100), label=label)
        for name, maximum, label in CATEGORIES
    }
    total = round(sum(scores.values()))
    return QualityScore(
        total=total,
        breakdown=breakdown,
        suggestions=suggestions[:MAX_SUGGESTIONS],
        level=quality_level(total),
    )
