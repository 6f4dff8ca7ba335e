import json

from repo_spec_agent.context import file_imports, find_related_models, project_context


def _write(path, content):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


class TestProjectContext:
    def test_package_json(self, tmp_path):
        (tmp_path / "package.json").write_text(json.dumps({
            "name": "shop-api",
            "dependencies": {"express": "^4", "mongoose": "^8"},
        }))
        (tmp_path / "routes").mkdir()
        (tmp_path / "models").mkdir()
        context = project_context(tmp_path, "express")
        assert context.name == "shop-api"
        assert context.framework == "express"
        assert context.dependencies == ["express", "mongoose"]
        assert context.structure == "models, routes"

    def test_defaults(self, tmp_path):
        context = project_context(tmp_path, None)
        assert context.name == tmp_path.name
        assert context.framework == "Unknown"
        assert context.dependencies == []

    def test_file_imports(self):
        content = (
            "const User = require('../models/User');\n"
            "import { Order } from '../models/order';\n"
        )
        assert file_imports(content) == ["../models/User", "../models/order"]
        assert "App\\Models\\Post" in file_imports("<?php\nuse App\\Models\\Post;\n")
        assert "app.models.Item" in file_imports("from app.models import Item\n")

    def test_imported_models_come_first(self, tmp_path):
        _write(tmp_path / "models" / "Order.js", "module.exports = class Order {};")
        _write(tmp_path / "models" / "User.js", "module.exports = class User {};")
        models = find_related_models(tmp_path, ["../models/User"])
        assert [m.name for m in models] == ["User.js", "Order.js"]
        assert models[0].prioritized is True
        assert models[1].prioritized is False

    def test_no_model_directories(self, tmp_path):
        assert find_related_models(tmp_path, ["../models/User"]) == []
