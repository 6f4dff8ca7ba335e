"""Field-name heuristics shared by every parser.

One table decides the JSON type of a body field or parameter from its name;
the helpers here also build inferred (placeholder-marked) summaries.
"""

import re

from repo_spec_agent.config import PLACEHOLDER_MARKER

from .base import Param
from .paths import path_param_names, resource_from_path

# Checked in order; the first substring hit wins.
FIELD_TYPE_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("email",), "string"),
    (("id", "count", "quantity"), "integer"),
    (("price", "amount", "total"), "number"),
    (("is_", "has_", "active"), "boolean"),
    (("date", "created", "updated"), "string"),
    (("items", "list", "array"), "array"),
)

_ACTIONS = {
    "GET": "Obtener",
    "POST": "Crear",
    "PUT": "Actualizar",
    "PATCH": "Actualizar parcialmente",
    "DELETE": "Eliminar",
    "OPTIONS": "Opciones de",
    "HEAD": "Cabeceras de",
}

_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")


def infer_field_type(name: str) -> str:
    lowered = name.lower()
    for needles, json_type in FIELD_TYPE_RULES:
        if any(needle in lowered for needle in needles):
            return json_type
    return "string"


def placeholder(text: str) -> str:
    """Mark inferred text so the quality scorer does not credit it."""
    return f"{PLACEHOLDER_MARKER} {text}"


def is_placeholder(text: str | None) -> bool:
    return not text or not text.strip() or PLACEHOLDER_MARKER in text


def summarize(method: str, path: str) -> str:
    """Spanish one-line summary for an undocumented operation."""
    method = method.upper()
    has_id = bool(path_param_names(path))
    if method == "GET":
        if has_id:
            return f"Obtener {resource_from_path(path)} por ID"
        return f"Listar {resource_from_path(path, singular=False)}"
    action = _ACTIONS.get(method, method.capitalize())
    return f"{action} {resource_from_path(path)}"


def field_description(name: str) -> str:
    return placeholder(f"Campo {name}")


def split_names(raw: str) -> list[str]:
    """Names bound by a destructuring pattern such as ``{ a, b: c, d = 1, ...rest }``."""
    names = []
    for part in raw.split(","):
        part = part.strip()
        if not part or part.startswith("..."):
            continue
        name = re.split(r"[:=]", part, 1)[0].strip()
        if _IDENTIFIER.match(name) and name not in names:
            names.append(name)
    return names


def schema_from_fields(fields: dict[str, str] | list[str], required: list[str] | None = None) -> dict:
    """Object schema with one typed property per field name."""
    if isinstance(fields, list):
        fields = {name: infer_field_type(name) for name in fields}
    properties = {}
    for name, json_type in fields.items():
        prop = {"type": json_type}
        if json_type == "array":
            prop["items"] = {"type": "string"}
        if "email" in name.lower():
            prop["format"] = "email"
        elif json_type == "string" and any(k in name.lower() for k in ("date", "created", "updated")):
            prop["format"] = "date-time"
        properties[name] = prop
    schema = {"type": "object", "properties": properties}
    if required:
        schema["required"] = [name for name in required if name in properties]
    return schema


def path_params(path: str) -> list[Param]:
    return [
        Param(
            name=name,
            location="path",
            required=True,
            param_type=infer_field_type(name),
            description=placeholder(f"Identificador {name}"),
        )
        for name in path_param_names(path)
    ]


def query_params(names: list[str]) -> list[Param]:
    return [
        Param(
            name=name,
            location="query",
            required=False,
            param_type=infer_field_type(name),
            description=placeholder(f"Filtro {name}"),
        )
        for name in names
    ]


def merge_params(*groups: list[Param]) -> list[Param]:
    """Concatenate parameter lists, dropping repeats of the same name+location."""
    seen = set()
    merged = []
    for group in groups:
        for param in group:
            key = (param.name, param.location)
            if key in seen:
                continue
            seen.add(key)
            merged.append(param)
    return merged
