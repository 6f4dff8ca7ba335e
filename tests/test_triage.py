import json
from pathlib import Path
from unittest.mock import MagicMock

from repo_spec_agent.parser.base import Endpoint, ParseResult
from repo_spec_agent.parser.detect import detect_framework
from repo_spec_agent.parser.registry import FALLBACK_STRATEGY, ParserStrategy, strategy_for, strategy_for_file
from repo_spec_agent.parser.triage import count_doc_blocks, triage

FIXTURES = Path(__file__).parent / "fixtures"


class TestTriage:
    def test_route_inventory_is_deduplicated(self):
        content = "router.get('/a', h);\nrouter.get('/a', h2);\nRoute::post('/b', [X::class, 'store']);\n"
        found = triage(content)
        assert [e.key for e in found.endpoints] == ["GET:/a", "POST:/b"]
        assert found.is_api_file is True
        assert found.relevant is True

    def test_member_calls_need_absolute_path(self):
        found = triage("const v = cache.get('key');", "express")
        assert found.endpoints == []

    def test_decorator_routes(self):
        found = triage("@Get(':id')\nfindOne() {}", "nestjs")
        assert [e.key for e in found.endpoints] == ["GET:/{id}"]

    def test_doc_comment_blocks(self):
        found = triage((FIXTURES / "documented.js").read_text())
        assert found.has_doc_comments is True
        assert found.doc_comment_blocks == 3
        assert found.is_api_file is False
        assert found.relevant is True

    def test_plain_file_is_not_relevant(self):
        found = triage("export const add = (a, b) => a + b;", "express")
        assert found.relevant is False

    def test_count_ignores_plain_doc_comments(self):
        assert count_doc_blocks("/** Adds numbers. */\nfunction add() {}") == 0


class TestDetectFramework:
    def test_package_json(self, tmp_path):
        (tmp_path / "package.json").write_text(json.dumps({
            "dependencies": {"next": "14.0.0"},
            "devDependencies": {"express": "^4.18.0"},
        }))
        detection = detect_framework(tmp_path)
        assert detection.frameworks == ["express", "nextjs"]
        assert detection.primary == "express"
        assert detection.type == "node"

    def test_composer_json(self, tmp_path):
        (tmp_path / "composer.json").write_text(json.dumps({"require": {"laravel/framework": "^10.0"}}))
        detection = detect_framework(tmp_path)
        assert detection.primary == "laravel"
        assert detection.type == "php"

    def test_requirements_txt(self, tmp_path):
        (tmp_path / "requirements.txt").write_text("fastapi==0.110.0\nuvicorn\n")
        detection = detect_framework(tmp_path)
        assert detection.frameworks == ["fastapi"]
        assert detection.type == "python"

    def test_no_manifest(self, tmp_path):
        detection = detect_framework(tmp_path)
        assert detection.frameworks == []
        assert detection.primary is None
        assert detection.type is None

    def test_broken_manifest_is_skipped(self, tmp_path):
        (tmp_path / "package.json").write_text("{not json")
        assert detect_framework(tmp_path).primary is None


class TestParserRegistry:
    def test_lookup(self):
        assert strategy_for("Express").name == "express"
        assert strategy_for("laravel").label == "Laravel"
        assert strategy_for(None) is None
        assert strategy_for("rails") is None

    def test_express_uses_cookie_auth(self):
        assert strategy_for("express").security == "cookie"
        assert FALLBACK_STRATEGY.security == "bearer"

    def test_first_parser_with_endpoints_wins(self):
        empty = MagicMock()
        empty.parse.return_value = ParseResult()
        found = MagicMock()
        found.parse.return_value = ParseResult(endpoints=[Endpoint(method="GET", path="/a")])
        never = MagicMock()

        strategy = ParserStrategy("test", (lambda config: empty, lambda config: found, lambda config: never))
        result = strategy.parse("content", "a.js")

        assert [e.key for e in result.endpoints] == ["GET:/a"]
        empty.parse.assert_called_once_with("content", "a.js")
        never.parse.assert_not_called()

    def test_no_parser_finds_anything(self):
        empty = MagicMock()
        empty.parse.return_value = ParseResult(framework_flavor="x")
        result = ParserStrategy("test", (lambda config: empty,)).parse("content", "a.js")
        assert result.endpoints == []

    def test_express_strategy_end_to_end(self):
        strategy = strategy_for("express")
        result = strategy.parse((FIXTURES / "users.js").read_text(), "routes/users.js")
        spec = strategy.synthesize(result, "users.js")
        assert set(spec["paths"]["/users"]) == {"get", "post"}
        assert spec["info"]["description"] == "API generada automáticamente desde código Express.js"

    def test_bare_http_server_without_framework(self):
        content = "const http = require('http');\nhttp.createServer((req, res) => {});\n"
        assert strategy_for_file(None, content).name == "http"
        assert strategy_for_file("express", content).name == "express"
        assert strategy_for_file(None, "const x = require('lodash');") is None

    def test_bare_http_server_is_an_api_file(self):
        content = "const http = require('http');\nhttp.createServer((req, res) => {});\n"
        assert triage(content).is_api_file is True
        assert triage(content, "laravel").is_api_file is False
