from pathlib import Path

import pytest

from repo_spec_agent.errors import DocCommentError
from repo_spec_agent.parser.swagger import (
    extract_spec_preview,
    merge_doc_comments,
    parse_doc_comments,
    yaml_from_block,
)

FIXTURES = Path(__file__).parent / "fixtures"


class TestYamlFromBlock:
    def test_strips_comment_markers(self):
        block = "/**\n * @swagger\n * /ping:\n *   get:\n *     summary: Ping\n */"
        assert yaml_from_block(block) == "/ping:\n  get:\n    summary: Ping"

    def test_openapi_marker(self):
        block = "/**\n * @openapi\n * /ping:\n *   get: {}\n */"
        assert yaml_from_block(block).startswith("/ping:")


class TestParseDocComments:
    def test_paths_and_schemas(self):
        parsed = parse_doc_comments((FIXTURES / "documented.js").read_text(), "documented.js")
        assert parsed["paths_count"] == 1
        assert parsed["schemas_count"] == 1
        spec = parsed["spec"]
        assert spec["openapi"] == "3.0.0"
        assert spec["info"]["title"] == "API from documented.js"
        assert spec["paths"]["/users/{id}"]["get"]["summary"] == "Obtener un usuario"
        assert "User" in spec["components"]["schemas"]

    def test_malformed_block_is_skipped(self):
        parsed = parse_doc_comments((FIXTURES / "documented.js").read_text(), "documented.js")
        assert "/broken" not in parsed["spec"]["paths"]

    def test_paths_section_and_path_normalisation(self):
        content = "/**\n * @swagger\n * paths:\n *   /items/:id:\n *     delete:\n *       summary: Borrar\n */"
        spec = parse_doc_comments(content)["spec"]
        assert spec["paths"]["/items/{id}"]["delete"]["summary"] == "Borrar"

    def test_no_blocks(self):
        with pytest.raises(DocCommentError):
            parse_doc_comments("const x = 1;", "plain.js")

    def test_only_malformed_blocks(self):
        with pytest.raises(DocCommentError):
            parse_doc_comments("/**\n * @swagger\n * /broken: [unclosed\n */", "broken.js")

    def test_deeply_nested_block_is_skipped(self):
        nested = "/**\n * @swagger\n * x: " + "[" * 5000 + "\n */\n"
        valid = "/**\n * @swagger\n * /ping:\n *   get:\n *     summary: Comprobar estado\n */\n"
        parsed = parse_doc_comments(nested + valid, "health.js")
        assert parsed["paths_count"] == 1
        assert parsed["spec"]["paths"]["/ping"]["get"]["summary"] == "Comprobar estado"


class TestMergeDocComments:
    def _synthesized(self):
        return {
            "openapi": "3.0.0",
            "info": {"title": "API from users.js", "version": "1.0.0", "description": "Generada"},
            "paths": {
                "/users/{id}": {
                    "get": {
                        "summary": "[TODO] Obtener user por ID",
                        "parameters": [
                            {"name": "id", "in": "path", "required": True, "description": "[TODO] Identificador id"},
                        ],
                        "responses": {"200": {"description": "Operación exitosa"}, "404": {"description": "No"}},
                    },
                },
            },
            "components": {"securitySchemes": {}},
            "tags": [{"name": "Users"}],
        }

    def test_documented_keys_win(self):
        documented = parse_doc_comments((FIXTURES / "documented.js").read_text(), "documented.js")["spec"]
        merged = merge_doc_comments(self._synthesized(), documented)
        operation = merged["paths"]["/users/{id}"]["get"]
        assert operation["summary"] == "Obtener un usuario"
        assert operation["parameters"][0]["description"] == "Identificador del usuario"
        assert len(operation["parameters"]) == 1

    def test_responses_merge_per_code(self):
        documented = parse_doc_comments((FIXTURES / "documented.js").read_text(), "documented.js")["spec"]
        merged = merge_doc_comments(self._synthesized(), documented)
        responses = merged["paths"]["/users/{id}"]["get"]["responses"]
        assert responses["200"]["description"] == "Usuario encontrado"
        assert responses["404"]["description"] == "No"

    def test_components_and_tags_copied(self):
        documented = parse_doc_comments((FIXTURES / "documented.js").read_text(), "documented.js")["spec"]
        merged = merge_doc_comments(self._synthesized(), documented)
        assert "User" in merged["components"]["schemas"]
        assert merged["info"]["description"] == "Generada"

    def test_input_not_mutated(self):
        synthesized = self._synthesized()
        documented = parse_doc_comments((FIXTURES / "documented.js").read_text(), "documented.js")["spec"]
        merge_doc_comments(synthesized, documented)
        assert synthesized["paths"]["/users/{id}"]["get"]["summary"] == "[TODO] Obtener user por ID"


class TestSpecPreview:
    def test_preview(self):
        spec = parse_doc_comments((FIXTURES / "documented.js").read_text(), "documented.js")["spec"]
        preview = extract_spec_preview(spec)
        assert preview["title"] == "API from documented.js"
        assert preview["endpointsCount"] == 1
        assert preview["endpoints"] == [{"path": "/users/{id}", "method": "GET"}]
        assert preview["schemas"] == ["User"]
        assert preview["schemasCount"] == 1

    def test_null_operations_are_not_listed(self):
        preview = extract_spec_preview({"paths": {"/a": {"get": {"summary": "x"}, "post": None}}})
        assert preview["endpoints"] == [{"path": "/a", "method": "GET"}]
