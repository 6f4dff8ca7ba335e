"""Route path normalisation.

All ecosystems' parameter syntaxes collapse to the canonical ``{name}``:

    /users/:id          express / koa / fastify
    /users/:id?         express optional
    /users/:id(\\d+)    express with a regex constraint
    /users/{id?}        laravel optional
    /users/[id]         next.js dynamic segment
    /docs/[...slug]     next.js catch-all
    /docs/[[...slug]]   next.js optional catch-all
    /users/<int:id>     flask converter
    /files/{p:path}     fastapi / starlette converter
"""

import re

_NEXT_SEGMENT = re.compile(r"\[\[?(?:\.\.\.)?([A-Za-z_$][\w$-]*)\]?\]")
_COLON_PARAM = re.compile(r":([A-Za-z_$][\w$]*)(?:\([^)]*\))?\??")
_FLASK_PARAM = re.compile(r"<(?:[A-Za-z_]\w*:)?([A-Za-z_]\w*)>")
_BRACE_PARAM = re.compile(r"\{([A-Za-z_$][\w$-]*)(?::[^}]*)?\??\}")
_CANONICAL_PARAM = re.compile(r"\{([^}/]+)\}")


def normalize_path(path: str) -> str:
    """Rewrite a framework route path into canonical ``{param}`` syntax."""
    path = (path or "").strip()
    if not path:
        return "/"
    path = _NEXT_SEGMENT.sub(r"{\1}", path)
    path = _FLASK_PARAM.sub(r"{\1}", path)
    path = _BRACE_PARAM.sub(r"{\1}", path)
    path = _COLON_PARAM.sub(r"{\1}", path)
    if not path.startswith("/"):
        path = "/" + path
    path = re.sub(r"/{2,}", "/", path)
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    return path


def join_paths(base: str | None, path: str) -> str:
    """Concatenate a mount prefix and a route path."""
    if not base:
        return normalize_path(path)
    if not path or path == "/":
        return normalize_path(base)
    return normalize_path(f"{base.rstrip('/')}/{path.lstrip('/')}")


def path_param_names(path: str) -> list[str]:
    """Parameter names of a canonical path, in order."""
    return _CANONICAL_PARAM.findall(path)


def static_segments(path: str) -> list[str]:
    return [p for p in path.split("/") if p and not p.startswith(("{", ":", "[", "<"))]


def resource_from_path(path: str, singular: bool = True) -> str:
    """Last static segment of a path, naively singularised."""
    parts = static_segments(path)
    resource = parts[-1] if parts else "recurso"
    if singular and resource.endswith("s") and not resource.endswith("ss"):
        return resource[:-1]
    return resource


def tag_from_path(path: str, default: str = "General") -> str:
    parts = static_segments(path)
    if parts and parts[0].lower() == "api" and len(parts) > 1:
        parts = parts[1:]
    return parts[0][:1].upper() + parts[0][1:] if parts else default
