"""OpenAPI fragments embedded in ``/** @swagger */`` documentation comments.

Each block's YAML body is loaded on its own; a malformed block is logged
and skipped. The fragments are merged into a single OpenAPI 3.0 document.
"""

import copy
import logging
import re

import yaml

from repo_spec_agent.config import HTTP_METHODS
from repo_spec_agent.errors import DocCommentError

from .paths import normalize_path
from .triage import DOC_BLOCK

logger = logging.getLogger("repo-spec-agent.swagger")

_MARKER = re.compile(r"@(?:swagger|openapi)\b")
_LEADING_STAR = re.compile(r"^\s*\*\s?")


def _skeleton(file_name: str) -> dict:
    return {
        "openapi": "3.0.0",
        "info": {
            "title": f"API from {file_name}",
            "version": "1.0.0",
            "description": "Especificación generada a partir de comentarios de documentación",
        },
        "servers": [{"url": "http://localhost:5000", "description": "Development server"}],
        "paths": {},
        "components": {
            "schemas": {},
            "securitySchemes": {
                "cookieAuth": {"type": "apiKey", "in": "cookie", "name": "auth_token"},
            },
        },
        "tags": [],
    }


def yaml_from_block(block: str) -> str:
    """The YAML text that follows the ``@swagger`` marker inside a comment."""
    body = block.strip()
    body = body[3:] if body.startswith("/**") else body
    body = body[:-2] if body.endswith("*/") else body
    lines = body.split("\n")
    for index, line in enumerate(lines):
        marker = _MARKER.search(line)
        if marker:
            rest = line[marker.end():].strip()
            tail = [_LEADING_STAR.sub("", l) for l in lines[index + 1:]]
            return "\n".join(([rest] if rest else []) + tail).strip()
    return ""


def _merge_fragment(spec: dict, fragment: dict):
    for key, value in fragment.items():
        if isinstance(key, str) and key.startswith("/") and isinstance(value, dict):
            spec["paths"].setdefault(normalize_path(key), {}).update(value)

    paths = fragment.get("paths")
    if isinstance(paths, dict):
        for path, item in paths.items():
            if isinstance(item, dict):
                spec["paths"].setdefault(normalize_path(str(path)), {}).update(item)

    components = fragment.get("components")
    if isinstance(components, dict):
        for section in ("schemas", "securitySchemes", "responses", "parameters"):
            value = components.get(section)
            if isinstance(value, dict):
                spec["components"].setdefault(section, {}).update(value)

    tags = fragment.get("tags")
    if isinstance(tags, dict):
        tags = [tags]
    if isinstance(tags, list):
        known = {t.get("name") for t in spec["tags"]}
        for tag in tags:
            if isinstance(tag, dict) and tag.get("name") and tag["name"] not in known:
                spec["tags"].append(tag)
                known.add(tag["name"])


def parse_doc_comments(content: str, file_name: str = "uploaded-file.js") -> dict:
    """Build an OpenAPI document from a file's documentation comments.

    Returns ``{"spec", "paths_count", "schemas_count"}``. Raises
    ``DocCommentError`` when no block contributed a path or a schema.
    """
    spec = _skeleton(file_name)

    for index, match in enumerate(DOC_BLOCK.finditer(content), start=1):
        text = yaml_from_block(match.group(0))
        if not text:
            continue
        try:
            fragment = yaml.safe_load(text)
        except (yaml.YAMLError, RecursionError, ValueError) as exc:
            logger.warning("Skipping malformed doc comment block %d in %s: %s", index, file_name, exc)
            continue
        if isinstance(fragment, dict):
            _merge_fragment(spec, fragment)

    paths_count = len(spec["paths"])
    schemas_count = len(spec["components"]["schemas"])
    if paths_count == 0 and schemas_count == 0:
        raise DocCommentError(f"No valid @swagger / @openapi blocks found in {file_name}")
    return {"spec": spec, "paths_count": paths_count, "schemas_count": schemas_count}


def _merge_parameters(base: list, overlay: list) -> list:
    merged = {(p.get("name"), p.get("in")): p for p in base if isinstance(p, dict)}
    order = list(merged)
    for param in overlay:
        if not isinstance(param, dict):
            continue
        key = (param.get("name"), param.get("in"))
        if key not in merged:
            order.append(key)
            merged[key] = param
        else:
            merged[key] = {**merged[key], **param}
    return [merged[key] for key in order]


def _merge_operation(base: dict, overlay: dict) -> dict:
    merged = {**base, **overlay}
    if isinstance(base.get("responses"), dict) and isinstance(overlay.get("responses"), dict):
        responses = dict(base["responses"])
        for code, response in overlay["responses"].items():
            code = str(code)
            current = responses.get(code)
            if isinstance(current, dict) and isinstance(response, dict):
                responses[code] = {**current, **response}
            else:
                responses[code] = response
        merged["responses"] = responses
    if isinstance(base.get("parameters"), list) and isinstance(overlay.get("parameters"), list):
        merged["parameters"] = _merge_parameters(base["parameters"], overlay["parameters"])
    return merged


def merge_doc_comments(spec: dict, documented: dict) -> dict:
    """Overlay a doc-comment document onto a synthesized one.

    Documented keys win. Responses merge per status code and parameters per
    name+location. Component sections and tags are copied across.
    """
    result = copy.deepcopy(spec)
    paths = result.setdefault("paths", {})
    for path, item in documented.get("paths", {}).items():
        target = paths.setdefault(path, {})
        for method, operation in item.items():
            if not isinstance(method, str) or method.lower() not in HTTP_METHODS or not isinstance(operation, dict):
                target[method] = operation
                continue
            method = method.lower()
            target[method] = _merge_operation(target.get(method, {}), operation)

    components = result.setdefault("components", {})
    for section, values in documented.get("components", {}).items():
        if isinstance(values, dict) and values:
            components.setdefault(section, {}).update(values)

    if documented.get("tags"):
        tags = result.setdefault("tags", [])
        known = {t.get("name") for t in tags}
        tags.extend(t for t in documented["tags"] if t.get("name") not in known)
    return result


def extract_spec_preview(spec: dict) -> dict:
    """A short summary of a document for listings."""
    paths = spec.get("paths") or {}
    endpoints = [
        {"path": path, "method": method.upper()}
        for path, item in paths.items()
        if isinstance(item, dict)
        for method, operation in item.items()
        if isinstance(method, str) and method.lower() in HTTP_METHODS and isinstance(operation, dict)
    ]
    schemas = list((spec.get("components") or {}).get("schemas") or {})
    info = spec.get("info") or {}
    return {
        "title": info.get("title") or "Untitled API",
        "version": info.get("version") or "1.0.0",
        "endpointsCount": len(paths),
        "endpoints": endpoints[:10],
        "schemas": schemas,
        "schemasCount": len(schemas),
    }
