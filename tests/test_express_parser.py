from pathlib import Path

from repo_spec_agent.parser.ast_js import AstRouterParser
from repo_spec_agent.parser.express import ExpressParser

FIXTURES = Path(__file__).parent / "fixtures"


def _find(result, method, path):
    return [e for e in result.endpoints if e.method == method and e.path == path][0]


class TestExpressPatternParser:
    def test_minimal_router(self):
        result = ExpressParser().parse((FIXTURES / "users.js").read_text(), "routes/users.js")
        assert [(e.method, e.path) for e in result.endpoints] == [("GET", "/users"), ("POST", "/users")]
        assert result.imports == ["express"]
        assert result.has_auth is False

    def test_mount_prefix_applies_to_routes(self):
        result = ExpressParser().parse((FIXTURES / "products.routes.js").read_text(), "routes/products.routes.js")
        assert result.base_route == "/api/products"
        keys = {e.key for e in result.endpoints}
        assert keys == {
            "GET:/api/products",
            "POST:/api/products",
            "GET:/api/products/{id}",
            "DELETE:/api/products/{id}",
        }

    def test_body_fields_and_status_codes(self):
        result = ExpressParser().parse((FIXTURES / "products.routes.js").read_text(), "routes/products.routes.js")
        create = _find(result, "POST", "/api/products")
        assert set(create.request_body["properties"]) == {"name", "price"}
        assert create.request_body["required"] == ["name", "price"]
        assert create.request_body["properties"]["price"]["type"] == "number"
        codes = [r.code for r in create.responses]
        assert "400" in codes and "201" in codes
        assert create.requires_auth is True

    def test_query_fields_become_parameters(self):
        result = ExpressParser().parse((FIXTURES / "products.routes.js").read_text(), "routes/products.routes.js")
        listing = _find(result, "GET", "/api/products")
        query = [p.name for p in listing.parameters if p.location == "query"]
        assert query[:2] == ["page", "limit"]

    def test_route_chain_uses_exact_handler_text(self):
        result = ExpressParser().parse((FIXTURES / "products.routes.js").read_text(), "routes/products.routes.js")
        show = _find(result, "GET", "/api/products/{id}")
        remove = _find(result, "DELETE", "/api/products/{id}")
        assert show.requires_auth is False
        assert remove.requires_auth is True
        assert [r.code for r in remove.responses] == ["204"]
        assert show.parameters[0].name == "id"
        assert show.parameters[0].location == "path"

    def test_no_routes(self):
        result = ExpressParser().parse("module.exports = { add: (a, b) => a + b };", "lib/math.js")
        assert result.endpoints == []


class TestAstRouterParser:
    def test_routes_and_handlers(self):
        result = AstRouterParser().parse((FIXTURES / "accounts.js").read_text(), "routes/accounts.js")
        assert [(e.method, e.path) for e in result.endpoints] == [("GET", "/users/{id}"), ("POST", "/users")]
        assert result.framework_flavor == "express"
        assert "../middleware/auth" in result.imports

    def test_non_router_member_calls_are_ignored(self):
        result = AstRouterParser().parse((FIXTURES / "accounts.js").read_text(), "routes/accounts.js")
        assert all(e.path != "/not-a-route" for e in result.endpoints)

    def test_middleware_marks_auth(self):
        result = AstRouterParser().parse((FIXTURES / "accounts.js").read_text(), "routes/accounts.js")
        show = _find(result, "GET", "/users/{id}")
        create = _find(result, "POST", "/users")
        assert show.requires_auth is False
        assert create.requires_auth is True
        assert result.has_auth is True

    def test_handler_body_is_read(self):
        result = AstRouterParser().parse((FIXTURES / "accounts.js").read_text(), "routes/accounts.js")
        show = _find(result, "GET", "/users/{id}")
        create = _find(result, "POST", "/users")
        assert [(p.name, p.location) for p in show.parameters] == [("id", "path"), ("fields", "query")]
        assert create.request_body["required"] == ["email", "password"]
        assert [r.code for r in create.responses] == ["201"]

    def test_identifier_handler_name(self):
        result = AstRouterParser().parse((FIXTURES / "users.js").read_text(), "routes/users.js")
        assert [e.handler for e in result.endpoints] == ["listUsers", "createUser"]


class TestAuthDetection:
    AUTHORS = (
        "const express = require('express');\n"
        "const router = express.Router();\n\n"
        "router.get('/authors', (req, res) => { res.json([]); });\n"
    )

    def test_path_that_starts_with_auth(self):
        result = ExpressParser().parse(self.AUTHORS, "routes/authors.js")
        assert _find(result, "GET", "/authors").requires_auth is False
        assert result.has_auth is False

    def test_both_parsers_agree(self):
        pattern = ExpressParser().parse(self.AUTHORS, "routes/authors.js")
        tree = AstRouterParser().parse(self.AUTHORS, "routes/authors.js")
        assert [e.requires_auth for e in pattern.endpoints] == [e.requires_auth for e in tree.endpoints] == [False]
