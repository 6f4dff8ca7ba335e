"""Illustrative example payloads for synthesized operations.

Examples come from three sources, in order: the field names the parser saw,
a template for a recognised resource (users, products, orders...), and a
generic item. Error examples carry Spanish messages.
"""

import copy

from repo_spec_agent.parser.paths import path_param_names, resource_from_path, static_segments

RESOURCE_TEMPLATES = {
    "user": {
        "single": {
            "id": 1,
            "username": "juan_garcia",
            "email": "juan.garcia@ejemplo.com",
            "name": "Juan García",
            "role": "user",
            "avatar_url": "https://api.ejemplo.com/avatars/1.jpg",
            "is_active": True,
            "created_at": "2026-01-10T08:30:00Z",
            "updated_at": "2026-01-14T15:45:00Z",
        },
        "create": {
            "username": "nuevo_usuario",
            "email": "nuevo@ejemplo.com",
            "password": "contraseña_segura_123",
            "name": "Nuevo Usuario",
        },
        "update": {"name": "Juan García Actualizado", "email": "juan.actualizado@ejemplo.com"},
    },
    "auth": {
        "login": {
            "request": {"email": "usuario@ejemplo.com", "password": "mi_contraseña"},
            "response": {"id": 1, "username": "usuario", "email": "usuario@ejemplo.com", "token": "eyJhbGciOiJIUzI1NiIs..."},
        },
        "register": {
            "request": {"username": "nuevo_usuario", "email": "nuevo@ejemplo.com", "password": "contraseña_segura"},
            "response": {"id": 5, "username": "nuevo_usuario", "email": "nuevo@ejemplo.com"},
        },
    },
    "project": {
        "single": {
            "id": 1,
            "code": "PRY-2026-001",
            "name": "Sistema de Gestión Empresarial",
            "description": "Plataforma integral para la gestión de procesos empresariales.",
            "user_id": 1,
            "documents_count": 15,
            "created_at": "2026-01-05T10:00:00Z",
            "updated_at": "2026-01-14T12:30:00Z",
        },
        "create": {"code": "PRY-2026-002", "name": "Nuevo Proyecto", "description": "Descripción detallada del nuevo proyecto"},
        "update": {"name": "Proyecto Actualizado", "description": "Nueva descripción del proyecto"},
    },
    "document": {
        "single": {
            "id": 1,
            "title": "Manual de Usuario - Sistema de Ventas",
            "content": "# Manual de Usuario\n\n## Introducción\n\nEste documento describe el sistema de ventas...",
            "type": "manual",
            "version": "2.1.0",
            "project_id": 1,
            "user_id": 1,
            "created_at": "2026-01-08T09:00:00Z",
            "updated_at": "2026-01-14T11:20:00Z",
        },
        "create": {"title": "Nuevo Documento", "content": "# Título\n\nContenido del documento...", "type": "manual", "project_id": 1},
        "update": {"title": "Documento Actualizado", "version": "2.2.0"},
    },
    "product": {
        "single": {
            "id": 1,
            "sku": "PROD-001",
            "name": "Laptop HP Pavilion 15",
            "description": "Laptop con procesador Intel Core i7, 16GB RAM y 512GB SSD",
            "price": 899.99,
            "currency": "USD",
            "category": "Electrónicos",
            "stock": 50,
            "is_available": True,
            "created_at": "2026-01-01T00:00:00Z",
            "updated_at": "2026-01-14T12:00:00Z",
        },
        "create": {"sku": "PROD-002", "name": "Nuevo Producto", "price": 99.99, "category": "General", "stock": 100},
        "update": {"price": 849.99, "stock": 45},
    },
    "order": {
        "single": {
            "id": 1,
            "order_number": "ORD-2026-00001",
            "status": "completed",
            "customer_id": 1,
            "items": [
                {"product_id": 1, "quantity": 1, "unit_price": 899.99},
                {"product_id": 5, "quantity": 2, "unit_price": 29.99},
            ],
            "total": 1113.57,
            "payment_method": "credit_card",
            "created_at": "2026-01-14T10:30:00Z",
        },
        "create": {
            "customer_id": 1,
            "items": [{"product_id": 1, "quantity": 1}, {"product_id": 5, "quantity": 2}],
            "payment_method": "credit_card",
        },
    },
    "item": {
        "single": {
            "id": 1,
            "name": "Elemento de ejemplo",
            "description": "Descripción del elemento",
            "status": "active",
            "created_at": "2026-01-14T12:00:00Z",
            "updated_at": "2026-01-14T12:00:00Z",
        },
        "create": {"name": "Nuevo elemento", "description": "Descripción"},
        "update": {"name": "Elemento actualizado"},
    },
}

# Path segment -> template key.
RESOURCE_ALIASES = {
    "users": "user", "usuarios": "user", "accounts": "user", "profiles": "user", "perfiles": "user",
    "projects": "project", "proyectos": "project",
    "documents": "document", "documentos": "document", "docs": "document",
    "products": "product", "productos": "product", "articulos": "product",
    "orders": "order", "pedidos": "order", "ventas": "order", "sales": "order",
    "login": "auth", "register": "auth", "signup": "auth", "signin": "auth",
}

FIELD_EXAMPLES = {
    "id": 1, "user_id": 1, "project_id": 1, "order_id": 1, "product_id": 1,
    "username": "juan_garcia", "email": "usuario@ejemplo.com", "password": "********",
    "name": "Nombre de ejemplo", "title": "Título de ejemplo",
    "description": "Descripción detallada del recurso",
    "content": "# Contenido\n\nTexto de ejemplo...",
    "price": 99.99, "amount": 150.00, "total": 250.00, "quantity": 5, "stock": 100,
    "status": "active", "type": "general", "role": "user",
    "url": "https://ejemplo.com/recurso",
    "created_at": "2026-01-14T12:00:00Z", "updated_at": "2026-01-14T15:30:00Z",
    "is_active": True, "enabled": True,
}

# Substring -> example value, checked in order.
FIELD_PATTERNS = (
    ("email", "usuario@ejemplo.com"),
    ("password", "********"),
    ("name", "Nombre de ejemplo"),
    ("price", 99.99),
    ("amount", 99.99),
    ("date", "2026-01-14T12:00:00Z"),
    ("_at", "2026-01-14T12:00:00Z"),
    ("url", "https://ejemplo.com/recurso"),
    ("phone", "+34 600 000 000"),
    ("address", "Av. Principal 123, Ciudad"),
    ("city", "Madrid"),
    ("country", "España"),
    ("token", "eyJhbGciOiJIUzI1NiIs..."),
    ("id", 1),
)

TYPE_EXAMPLES = {"integer": 1, "number": 1, "boolean": True, "array": [], "object": {}}

ERROR_MESSAGES = {
    "400": {
        "error": "Error de validación",
        "details": [{"field": "email", "message": "El formato del email no es válido"}],
    },
    "401": {"error": "No autenticado", "message": "Debe iniciar sesión para acceder a este recurso"},
    "403": {"error": "Acceso denegado", "message": "No tiene permisos para modificar este recurso"},
    "404": {"error": "No encontrado", "message": "El recurso solicitado no existe"},
    "409": {"error": "Conflicto", "message": "Ya existe un recurso con estos datos"},
    "422": {"error": "Datos inválidos", "message": "No se pudo procesar la solicitud con los datos proporcionados"},
    "429": {"error": "Límite excedido", "message": "Demasiadas solicitudes. Intente nuevamente en 60 segundos"},
    "500": {"error": "Error interno", "message": "Ha ocurrido un error inesperado. Por favor, intente más tarde"},
}

LIST_PAGINATION = {
    "currentPage": 1,
    "totalPages": 5,
    "totalItems": 47,
    "itemsPerPage": 10,
    "hasNextPage": True,
    "hasPrevPage": False,
}


def resource_type(path: str) -> str:
    """Template key for the resource a path is about, ``item`` when unknown."""
    for segment in static_segments(path.lower()):
        if segment in RESOURCE_ALIASES:
            return RESOURCE_ALIASES[segment]
        if segment in RESOURCE_TEMPLATES:
            return segment
        singular = segment[:-1] if segment.endswith("s") else segment
        if singular in RESOURCE_TEMPLATES:
            return singular
    return "item"


def example_value(name: str, json_type: str = "string"):
    if name in FIELD_EXAMPLES:
        return FIELD_EXAMPLES[name]
    lowered = name.lower()
    for needle, value in FIELD_PATTERNS:
        if needle in lowered:
            return value
    return TYPE_EXAMPLES.get(json_type, "valor_ejemplo")


def example_from_schema(schema: dict | None) -> dict:
    properties = (schema or {}).get("properties") or {}
    return {name: example_value(name, prop.get("type", "string")) for name, prop in properties.items()}


def request_example(method: str, path: str, schema: dict | None = None):
    """Request body example: detected fields first, then the resource template."""
    from_fields = example_from_schema(schema)
    if from_fields:
        return from_fields
    template = RESOURCE_TEMPLATES[resource_type(path)]
    lowered = path.lower()
    for action in ("login", "register"):
        if action in lowered and action in template:
            return copy.deepcopy(template[action]["request"])
    if method.upper() in ("PUT", "PATCH") and "update" in template:
        return copy.deepcopy(template["update"])
    if "create" in template:
        return copy.deepcopy(template["create"])
    return {"name": "Nuevo recurso", "description": "Descripción"}


def success_example(method: str, path: str, fields: dict[str, str] | None = None):
    method = method.upper()
    template = RESOURCE_TEMPLATES[resource_type(path)]
    single = template.get("single")
    if fields:
        single = {name: example_value(name, json_type) for name, json_type in fields.items()}
    has_id = bool(path_param_names(path))

    if method == "GET":
        if has_id:
            return copy.deepcopy(single) if single else {"id": 1}
        item = single or {"id": 1, "name": "Elemento"}
        second = {**item, "id": 2}
        if "name" in item:
            second["name"] = f"{item['name']} 2"
        return {"data": [copy.deepcopy(item), second], "pagination": dict(LIST_PAGINATION)}
    if method == "POST":
        lowered = path.lower()
        for action in ("login", "register"):
            if action in lowered and action in template:
                return copy.deepcopy(template[action]["response"])
        if single:
            return {**copy.deepcopy(single), "id": 3, "created_at": "2026-01-14T12:00:00Z"}
        return {"id": 3, "message": "Recurso creado exitosamente", "created_at": "2026-01-14T12:00:00Z"}
    if method in ("PUT", "PATCH"):
        if single:
            return {**copy.deepcopy(single), "updated_at": "2026-01-14T15:30:00Z"}
        return {"id": 1, "message": "Recurso actualizado exitosamente", "updated_at": "2026-01-14T15:30:00Z"}
    if method == "DELETE":
        return {"success": True, "message": f"{resource_from_path(path).capitalize()} eliminado exitosamente"}
    return copy.deepcopy(single) if single else {"id": 1, "status": "ok"}


def error_example(code: str, path: str) -> dict:
    resource = resource_from_path(path)
    error = copy.deepcopy(ERROR_MESSAGES.get(str(code), {"error": f"Error HTTP {code}"}))
    if code == "403":
        error["message"] = f"No tiene permisos para modificar este {resource}"
    elif code == "404":
        error["message"] = f"{resource.capitalize()} con el ID especificado no existe"
    elif code == "409":
        error["message"] = f"Ya existe un {resource} con estos datos"
    return error
