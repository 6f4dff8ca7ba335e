from pathlib import Path

from repo_spec_agent.parser.python import PythonRouteParser

FIXTURES = Path(__file__).parent / "fixtures"


def _find(result, method, path):
    return [e for e in result.endpoints if e.method == method and e.path == path][0]


class TestFastapiRoutes:
    def _parse(self):
        return PythonRouteParser().parse((FIXTURES / "items_router.py").read_text(), "app/routers/items.py")

    def test_router_prefix(self):
        result = self._parse()
        assert [e.key for e in result.endpoints] == ["GET:/items", "GET:/items/{item_id}", "POST:/items"]
        assert result.framework_flavor == "fastapi"

    def test_docstring_is_documentation(self):
        listing = _find(self._parse(), "GET", "/items")
        assert listing.summary == "List items."
        assert "free text filter" in listing.description

    def test_query_params_from_signature(self):
        listing = _find(self._parse(), "GET", "/items")
        params = {p.name: p for p in listing.parameters}
        assert params["limit"].location == "query"
        assert params["limit"].param_type == "integer"
        assert params["limit"].required is False
        assert params["q"].param_type == "string"

    def test_response_model_and_http_exception(self):
        show = _find(self._parse(), "GET", "/items/{item_id}")
        codes = [r.code for r in show.responses]
        assert codes == ["200", "404"]
        assert show.responses[0].fields == {"id": "integer", "name": "string", "price": "number"}
        assert show.parameters[0].location == "path"

    def test_model_body_status_code_and_auth_dependency(self):
        create = _find(self._parse(), "POST", "/items")
        assert create.request_body["properties"]["price"] == {"type": "number"}
        assert create.request_body["properties"]["tags"]["type"] == "array"
        assert [r.code for r in create.responses] == ["201"]
        assert create.requires_auth is True
        assert all(p.name != "user" for p in create.parameters)


class TestFlaskRoutes:
    CONTENT = '''
from flask import Blueprint, abort, jsonify
from flask_login import login_required

bp = Blueprint("users", __name__, url_prefix="/users")


@bp.route("/<int:user_id>", methods=["GET", "DELETE"])
@login_required
def user_detail(user_id):
    if user_id == 0:
        abort(404)
    return jsonify({})
'''

    def test_blueprint_route_with_methods(self):
        result = PythonRouteParser().parse(self.CONTENT, "app/views/users.py")
        assert [e.key for e in result.endpoints] == ["GET:/users/{user_id}", "DELETE:/users/{user_id}"]
        assert result.framework_flavor == "flask"
        assert all(e.requires_auth for e in result.endpoints)
        assert [r.code for r in result.endpoints[0].responses] == ["404"]

    def test_syntax_error_gives_empty_result(self):
        result = PythonRouteParser().parse("def broken(:\n", "app/broken.py")
        assert result.endpoints == []
