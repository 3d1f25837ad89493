import os

os.environ.setdefault("STORE_BACKEND", "memory")

from src.api.generate_openapi import _ensure_tags  # noqa: E402
from src.api.main import app  # noqa: E402


class TestOpenAPI:
    def test_routes_and_tags_present(self):
        schema = _ensure_tags(app.openapi())
        assert {"/api/tasks", "/api/tasks/{task_id}", "/api/schema"} <= set(schema["paths"])
        assert {t["name"] for t in schema["tags"]} >= {"health", "schema", "tasks"}

    def test_existing_tags_are_kept(self):
        schema = _ensure_tags({"tags": [{"name": "tasks", "description": "custom"}]})
        tasks_tag = [t for t in schema["tags"] if t["name"] == "tasks"]
        assert tasks_tag == [{"name": "tasks", "description": "custom"}]
