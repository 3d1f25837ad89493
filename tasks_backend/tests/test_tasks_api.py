import os
from datetime import datetime

from fastapi.testclient import TestClient

# Default to the in-memory store so tests never reach Notion
os.environ.setdefault("STORE_BACKEND", "memory")

from src.api.errors import GatewayError  # noqa: E402
from src.api.gateway import InMemoryGateway  # noqa: E402
from src.api.main import app  # noqa: E402
from src.api.repositories import TaskRepository, get_repository  # noqa: E402

client = TestClient(app)


class BrokenGateway(InMemoryGateway):
    def fetch_schema(self):
        raise GatewayError("Notion databases.retrieve failed")


class FailingWritesGateway(InMemoryGateway):
    def query_records(self, sorts):
        raise GatewayError("Notion databases.query failed")

    def update_record(self, record_id, properties):
        raise GatewayError("Notion pages.update failed")


def use_gateway(gateway):
    repo = TaskRepository(gateway, sort_property="Due")
    app.dependency_overrides[get_repository] = lambda: repo
    return repo


def create_task(**properties):
    res = client.post("/api/tasks", json={"properties": properties})
    assert res.status_code == 201, res.text
    return res.json()


def assert_task_shape(task: dict):
    for key in ["id", "createdAt", "title", "completed", "properties"]:
        assert key in task
    assert isinstance(task["id"], str)
    assert isinstance(task["completed"], bool)
    datetime.fromisoformat(task["createdAt"].replace("Z", "+00:00"))


class TestHealth:
    def test_health_check(self):
        res = client.get("/")
        assert res.status_code == 200
        data = res.json()
        assert data["message"] == "Healthy"
        assert data["backend"] in ("memory", "notion")


class TestSchema:
    def setup_method(self):
        self.gateway = InMemoryGateway()
        use_gateway(self.gateway)

    def teardown_method(self):
        app.dependency_overrides.clear()

    def test_describe_schema(self):
        res = client.get("/api/schema")
        assert res.status_code == 200
        data = res.json()
        assert data["titleProperty"] == "Name"
        assert data["booleanProperty"] == "Status"
        by_name = {p["name"]: p for p in data["properties"]}
        assert by_name["Status"] == {
            "name": "Status",
            "type": "status",
            "options": ["Not started", "In progress", "Done"],
        }
        assert by_name["Due"]["options"] is None

    def test_schema_is_fetched_once(self):
        client.get("/api/schema")
        client.get("/api/tasks")
        client.get("/api/schema")
        assert self.gateway.schema_fetches == 1

    def test_schema_fetch_failure_is_503(self):
        use_gateway(BrokenGateway())
        res = client.get("/api/schema")
        assert res.status_code == 503
        assert res.json() == {"error": "SchemaFetchFailed", "message": "Failed to fetch database schema"}


class TestTasksCRUD:
    def setup_method(self):
        self.gateway = InMemoryGateway()
        use_gateway(self.gateway)

    def teardown_method(self):
        app.dependency_overrides.clear()

    def test_create_task(self):
        task = create_task(Name="Buy milk", Tags=["home", "errands"], Notes="", Unknown="ignored")
        assert_task_shape(task)
        assert task["title"] == "Buy milk"
        assert task["completed"] is False
        assert task["properties"]["Tags"] == ["home", "errands"]
        assert task["properties"]["Notes"] == ""
        assert "Unknown" not in task["properties"]

    def test_create_requires_title_value(self):
        res = client.post("/api/tasks", json={"properties": {}})
        assert res.status_code == 400
        assert res.json() == {
            "error": "MissingTitleValue",
            "message": 'Title property "Name" is required',
        }

    def test_create_requires_title_property(self):
        use_gateway(InMemoryGateway({"Notes": {"type": "rich_text", "rich_text": {}}}))
        res = client.post("/api/tasks", json={"properties": {"Notes": "x"}})
        assert res.status_code == 400
        assert res.json()["error"] == "MissingTitleProperty"

    def test_create_validation_error_without_properties(self):
        res = client.post("/api/tasks", json={"title": "nope"})
        assert res.status_code == 422
        body = res.json()
        assert body.get("error") == "ValidationError"
        assert body.get("message") == "Request validation failed"
        assert isinstance(body.get("detail"), list)

    def test_list_sorted_by_due(self):
        create_task(Name="Later", Due="2099-12-25")
        create_task(Name="No date")
        create_task(Name="Sooner", Due="2099-01-01")
        res = client.get("/api/tasks")
        assert res.status_code == 200
        items = res.json()
        assert [t["title"] for t in items] == ["Sooner", "Later", "No date"]
        for item in items:
            assert_task_shape(item)

    def test_patch_completed_sets_status(self):
        tid = create_task(Name="Ship it")["id"]
        res = client.patch(f"/api/tasks/{tid}", json={"properties": {"Priority": "High"}, "completed": True})
        assert res.status_code == 200
        assert res.json() == {"id": tid, "updated": True, "properties": {"Priority": "High"}}

        task = client.get("/api/tasks").json()[0]
        assert task["completed"] is True
        assert task["properties"]["Status"] == "Done"
        assert task["properties"]["Priority"] == "High"

        client.patch(f"/api/tasks/{tid}", json={"properties": {"completed": False}})
        task = client.get("/api/tasks").json()[0]
        assert task["completed"] is False
        assert task["properties"]["Status"] == "Not started"

    def test_patch_keeps_property_named_completed(self):
        use_gateway(
            InMemoryGateway(
                {
                    "Name": {"type": "title", "title": {}},
                    "Stage": {"type": "status", "status": {"options": [{"name": "Todo"}, {"name": "Done"}]}},
                    "completed": {"type": "rich_text", "rich_text": {}},
                }
            )
        )
        tid = create_task(Name="Audit")["id"]
        res = client.patch(f"/api/tasks/{tid}", json={"properties": {"completed": "signed off"}})
        assert res.status_code == 200
        assert res.json()["properties"] == {"completed": "signed off"}

        task = client.get("/api/tasks").json()[0]
        assert task["properties"]["completed"] == "signed off"
        assert task["properties"]["Stage"] == "Done"
        assert task["completed"] is True

    def test_patch_status_by_name(self):
        tid = create_task(Name="Review")["id"]
        client.patch(f"/api/tasks/{tid}", json={"properties": {"Status": "in progress"}})
        task = client.get("/api/tasks").json()[0]
        assert task["properties"]["Status"] == "In progress"
        assert task["completed"] is False

    def test_patch_unknown_task(self):
        res = client.patch("/api/tasks/missing", json={"properties": {"Name": "x"}})
        assert res.status_code == 404
        assert res.json()["error"] == "RecordNotFound"

    def test_delete_archives(self):
        tid = create_task(Name="ToDelete")["id"]
        res = client.delete(f"/api/tasks/{tid}")
        assert res.status_code == 200
        assert res.json() == {"id": tid, "deleted": True}
        assert client.get("/api/tasks").json() == []

        res_again = client.delete(f"/api/tasks/{tid}")
        assert res_again.status_code == 502
        assert res_again.json()["error"] == "RecordWriteFailed"


class TestStoreFailures:
    def setup_method(self):
        use_gateway(FailingWritesGateway())

    def teardown_method(self):
        app.dependency_overrides.clear()

    def test_list_failure(self):
        res = client.get("/api/tasks")
        assert res.status_code == 502
        assert res.json() == {"error": "RecordReadFailed", "message": "Failed to fetch items from database"}

    def test_update_failure(self):
        res = client.patch("/api/tasks/abc", json={"properties": {"Name": "x"}})
        assert res.status_code == 502
        assert res.json() == {"error": "RecordWriteFailed", "message": "Failed to update item in database"}
