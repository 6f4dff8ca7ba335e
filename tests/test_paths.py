import pytest

from repo_spec_agent.parser.paths import (
    join_paths,
    normalize_path,
    path_param_names,
    resource_from_path,
    tag_from_path,
)


class TestNormalizePath:
    @pytest.mark.parametrize("raw", [
        "/users/:id",
        "/users/:id?",
        "/users/:id(\\d+)",
        "/users/{id}",
        "/users/{id?}",
        "/users/[id]",
        "/users/<int:id>",
        "/users/<id>",
        "/users/{id:int}",
    ])
    def test_param_syntaxes_collapse_to_braces(self, raw):
        assert normalize_path(raw) == "/users/{id}"

    def test_nextjs_catch_all(self):
        assert normalize_path("/docs/[...slug]") == "/docs/{slug}"
        assert normalize_path("/docs/[[...slug]]") == "/docs/{slug}"

    def test_several_params(self):
        assert normalize_path("/orgs/:org/repos/:repo") == "/orgs/{org}/repos/{repo}"

    def test_leading_and_trailing_slashes(self):
        assert normalize_path("users/") == "/users"
        assert normalize_path("//api//users/") == "/api/users"

    def test_empty_is_root(self):
        assert normalize_path("") == "/"
        assert normalize_path("/") == "/"


class TestJoinPaths:
    def test_prefix_and_route(self):
        assert join_paths("/api", "/users") == "/api/users"
        assert join_paths("/api/", "users/:id") == "/api/users/{id}"

    def test_root_route_is_the_prefix(self):
        assert join_paths("/api/products", "/") == "/api/products"
        assert join_paths("/api/products", "") == "/api/products"

    def test_no_prefix(self):
        assert join_paths(None, "users") == "/users"


class TestPathHelpers:
    def test_param_names_in_order(self):
        assert path_param_names("/a/{x}/b/{y}") == ["x", "y"]

    def test_resource_is_singularised(self):
        assert resource_from_path("/users/{id}") == "user"
        assert resource_from_path("/address") == "address"
        assert resource_from_path("/users", singular=False) == "users"

    def test_tag_skips_api_prefix(self):
        assert tag_from_path("/api/users/{id}") == "Users"
        assert tag_from_path("/orders") == "Orders"
        assert tag_from_path("/") == "General"
