import json
from pathlib import Path
from unittest.mock import patch, MagicMock

import yaml
from click.testing import CliRunner

from repo_spec_agent.analyzer import AnalysisResult
from repo_spec_agent.cli import main

FIXTURES = Path(__file__).parent / "fixtures"

DOCUMENTED = {
    "openapi": "3.0.0",
    "info": {"title": "Pets", "description": "Tienda de mascotas", "version": "1.0.0"},
    "paths": {
        "/pets/{id}": {
            "get": {
                "summary": "Obtener mascota",
                "parameters": [
                    {"name": "id", "in": "path", "required": True, "description": "Id de la mascota", "schema": {"type": "integer"}},
                ],
                "responses": {
                    "200": {
                        "description": "Mascota",
                        "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Pet"}, "example": {"id": 1}}},
                    },
                },
            },
        },
    },
    "components": {"schemas": {"Pet": {"type": "object"}}},
}


class TestCliScore:
    def test_score_yaml(self, tmp_path):
        spec_file = tmp_path / "openapi.yaml"
        spec_file.write_text(yaml.safe_dump(DOCUMENTED))

        result = CliRunner().invoke(main, ["score", str(spec_file)])

        assert result.exit_code == 0
        assert "Quality: 100/100 (good" in result.output

    def test_score_lists_suggestions(self, tmp_path):
        spec_file = tmp_path / "openapi.json"
        spec_file.write_text(json.dumps({"openapi": "3.0.0", "paths": {}}))

        result = CliRunner().invoke(main, ["score", str(spec_file)])

        assert result.exit_code == 0
        assert "Quality: 0/100" in result.output
        assert "- Añadir endpoints a la especificación" in result.output

    def test_score_rejects_non_documents(self, tmp_path):
        spec_file = tmp_path / "list.yaml"
        spec_file.write_text("- a\n- b\n")

        result = CliRunner().invoke(main, ["score", str(spec_file)])

        assert result.exit_code != 0
        assert "is not an OpenAPI document" in result.output


class TestCliParseFile:
    def test_parse_file_prints_yaml(self):
        result = CliRunner().invoke(main, [
            "parse-file", str(FIXTURES / "users.js"), "--framework", "express",
        ])

        assert result.exit_code == 0
        assert "Parsed 1 paths" in result.output
        assert "express-parser" in result.output
        assert "Quality: 40/100 (basic" in result.output
        assert "/users:" in result.output

    def test_parse_file_writes_json(self, tmp_path):
        output_file = tmp_path / "users.json"
        result = CliRunner().invoke(main, [
            "parse-file", str(FIXTURES / "users.js"), "--framework", "express", "-o", str(output_file),
        ])

        assert result.exit_code == 0
        spec = json.loads(output_file.read_text())
        assert set(spec["paths"]["/users"]) == {"get", "post"}
        assert "Spec saved to" in result.output

    def test_parse_file_writes_yaml(self, tmp_path):
        output_file = tmp_path / "out" / "products.yaml"
        result = CliRunner().invoke(main, [
            "parse-file", str(FIXTURES / "documented.js"), "-o", str(output_file),
        ])

        assert result.exit_code == 0
        spec = yaml.safe_load(output_file.read_text())
        assert "/users/{id}" in spec["paths"]

    def test_parse_file_without_endpoints(self, tmp_path):
        source = tmp_path / "util.js"
        source.write_text("module.exports = (a, b) => a + b;\n")

        result = CliRunner().invoke(main, ["parse-file", str(source)])

        assert result.exit_code != 0
        assert "No API endpoints found" in result.output

    def test_parse_file_rejects_unknown_framework(self):
        result = CliRunner().invoke(main, [
            "parse-file", str(FIXTURES / "users.js"), "--framework", "rails",
        ])
        assert result.exit_code != 0


class TestCliAnalyze:
    def test_analyze_local_checkout(self, tmp_path):
        (tmp_path / "package.json").write_text(json.dumps({"dependencies": {"express": "^4.18.0"}}))
        (tmp_path / "routes").mkdir()
        (tmp_path / "routes" / "users.js").write_text((FIXTURES / "users.js").read_text())
        output_file = tmp_path / "result.json"

        result = CliRunner().invoke(main, ["analyze", str(tmp_path), "-o", str(output_file)])

        assert result.exit_code == 0
        assert "Framework: express" in result.output
        assert "routes/users.js: 2 endpoints, quality 40 (basic)" in result.output
        assert "1 files, 2 endpoints, average quality 40 (basic)" in result.output
        wire = json.loads(output_file.read_text())
        assert wire["success"] is True
        assert wire["stats"]["totalFiles"] == 1

    @patch("repo_spec_agent.cli.RepositoryAnalyzer")
    def test_analyze_remote_failure(self, MockAnalyzer):
        mock_analyzer = MagicMock()
        mock_analyzer.analyze_repository.return_value = AnalysisResult(
            success=False,
            repo_url="https://example.com/missing.git",
            branch="main",
            error="repository not found",
            message="Repository analysis failed",
        )
        MockAnalyzer.return_value = mock_analyzer

        result = CliRunner().invoke(main, ["analyze", "https://example.com/missing.git"])

        assert result.exit_code == 1
        assert "Repository analysis failed: repository not found" in result.output
        mock_analyzer.analyze_repository.assert_called_once_with("https://example.com/missing.git", None)

    @patch("repo_spec_agent.cli.RepositoryAnalyzer")
    def test_analyze_passes_branch(self, MockAnalyzer):
        mock_analyzer = MagicMock()
        mock_analyzer.analyze_repository.return_value = AnalysisResult(success=True, branch="develop")
        MockAnalyzer.return_value = mock_analyzer

        result = CliRunner().invoke(main, ["analyze", "https://example.com/app.git", "--branch", "develop"])

        assert result.exit_code == 0
        mock_analyzer.analyze_repository.assert_called_once_with("https://example.com/app.git", "develop")
        assert "0 files, 0 endpoints" in result.output
