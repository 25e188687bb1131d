import json

import pytest
from fastapi.testclient import TestClient

from draftstore.core.config import config
from draftstore.modules.drafts.schemas import MEDIA_TYPE


def _create(client: TestClient, headers: dict, document, type: str = "form-a") -> str:
    response = client.post("/drafts", json={"type": type, "document": document}, headers=headers)
    assert response.status_code == 201
    return response.headers["location"].rsplit("/", 1)[-1]


def test_draft_lifecycle(client: TestClient, auth_headers) -> None:
    headers = auth_headers(user_id="42", service="probate")

    created = client.post("/drafts", json={"type": "form-a", "document": {"step": 1}}, headers=headers)
    assert created.status_code == 201
    assert created.content == b""
    location = created.headers["location"]
    assert location.rsplit("/", 2)[-2] == "drafts"
    draft_id = location.rsplit("/", 1)[-1]

    response = client.get(f"/drafts/{draft_id}", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"step": 1}

    updated = client.put(
        f"/drafts/{draft_id}", json={"type": "form-a", "document": {"step": 2}}, headers=headers
    )
    assert updated.status_code == 204
    assert client.get(f"/drafts/{draft_id}", headers=headers).json() == {"step": 2}

    deleted = client.delete(f"/drafts/{draft_id}", headers=headers)
    assert deleted.status_code == 204

    response = client.get(f"/drafts/{draft_id}", headers=headers)
    assert response.status_code == 404
    assert response.json() == {"error": "NotFoundError", "message": "Draft not found"}


def test_create_same_type_overwrites(client: TestClient, auth_headers) -> None:
    headers = auth_headers()
    first_id = _create(client, headers, {"step": 1})
    second_id = _create(client, headers, {"step": 2})

    assert first_id == second_id
    listing = client.get("/drafts", headers=headers).json()
    assert listing["count"] == 1
    assert listing["data"][0]["document"] == {"step": 2}


class TestReadById:
    @pytest.mark.parametrize("draft_id", ["abc", "1.5", "-1", "99999999999999999999", "99999999999999999999x"])
    def test_non_numeric_id_is_not_found(self, client, auth_headers, draft_id):
        response = client.get(f"/drafts/{draft_id}", headers=auth_headers())
        assert response.status_code == 404

    def test_unknown_id_is_not_found(self, client, auth_headers):
        assert client.get("/drafts/12345", headers=auth_headers()).status_code == 404


class TestOwnershipIsolation:
    @pytest.mark.parametrize("other", [{"user_id": "43"}, {"service": "divorce"}])
    def test_other_callers_cannot_touch_draft(self, client, auth_headers, other):
        owner = auth_headers()
        intruder = auth_headers(**other)
        draft_id = _create(client, owner, {"step": 1})

        assert client.get(f"/drafts/{draft_id}", headers=intruder).status_code == 404

        response = client.put(
            f"/drafts/{draft_id}", json={"type": "form-a", "document": {"x": 1}}, headers=intruder
        )
        assert response.status_code == 403
        assert response.json()["error"] == "AuthorizationError"

        assert client.delete(f"/drafts/{draft_id}", headers=intruder).status_code == 403
        assert client.get("/drafts", headers=intruder).json()["data"] == []
        assert client.delete("/drafts", headers=intruder).status_code == 204

        assert client.get(f"/drafts/{draft_id}", headers=owner).json() == {"step": 1}


class TestUpdate:
    def test_unknown_id(self, client, auth_headers):
        response = client.put("/drafts/777", json={"type": "t", "document": {}}, headers=auth_headers())
        assert response.status_code == 404

    def test_non_numeric_id(self, client, auth_headers):
        response = client.put("/drafts/abc", json={"type": "t", "document": {}}, headers=auth_headers())
        assert response.status_code == 404

    def test_invalid_body_is_bad_request(self, client, auth_headers):
        headers = auth_headers()
        draft_id = _create(client, headers, {"step": 1})

        for body in ({"type": "form-a"}, {"document": {}}, {"type": "", "document": {}},
                     {"type": "form-a", "document": None}):
            response = client.put(f"/drafts/{draft_id}", json=body, headers=headers)
            assert response.status_code == 400, body
            assert response.json()["error"] == "ValidationError"

        assert client.get(f"/drafts/{draft_id}", headers=headers).json() == {"step": 1}

    def test_changing_type_onto_existing_draft_conflicts(self, client, auth_headers):
        headers = auth_headers()
        _create(client, headers, {"a": 1}, type="form-a")
        b_id = _create(client, headers, {"b": 1}, type="form-b")

        response = client.put(f"/drafts/{b_id}", json={"type": "form-a", "document": {}}, headers=headers)
        assert response.status_code == 409
        assert response.json()["error"] == "ConflictError"
        assert client.get(f"/drafts/{b_id}", headers=headers).json() == {"b": 1}


class TestDelete:
    def test_delete_is_idempotent(self, client, auth_headers):
        headers = auth_headers()
        draft_id = _create(client, headers, {"step": 1})

        assert client.delete(f"/drafts/{draft_id}", headers=headers).status_code == 204
        assert client.delete(f"/drafts/{draft_id}", headers=headers).status_code == 204
        assert client.delete("/drafts/not-a-number", headers=headers).status_code == 204

    def test_delete_needs_no_secret(self, client, auth_headers):
        headers = auth_headers()
        draft_id = _create(client, headers, {"step": 1})

        response = client.delete(f"/drafts/{draft_id}", headers=auth_headers(secret=None))
        assert response.status_code == 204

    def test_delete_all(self, client, auth_headers):
        headers = auth_headers()
        for document_type in ("a", "b"):
            _create(client, headers, {}, type=document_type)

        assert client.delete("/drafts", headers=headers).status_code == 204
        assert client.get("/drafts", headers=headers).json()["data"] == []
        assert client.delete("/drafts", headers=headers).status_code == 204


class TestList:
    def test_empty(self, client, auth_headers):
        response = client.get("/drafts", headers=auth_headers())
        assert response.status_code == 200
        assert response.json() == {"data": [], "count": 0}

    def test_items_and_type_filter(self, client, auth_headers):
        headers = auth_headers()
        _create(client, headers, {"a": 1}, type="form-a")
        _create(client, headers, {"b": 1}, type="form-b")

        items = client.get("/drafts", headers=headers).json()["data"]
        assert [item["type"] for item in items] == ["form-a", "form-b"]
        assert set(items[0]) == {"id", "type", "document", "created", "updated"}

        filtered = client.get("/drafts", params={"type": "form-b"}, headers=headers).json()
        assert [item["document"] for item in filtered["data"]] == [{"b": 1}]

    def test_default_limit_and_cursor(self, client, auth_headers):
        headers = auth_headers()
        for i in range(12):
            _create(client, headers, {"i": i}, type=f"type-{i}")

        first = client.get("/drafts", headers=headers).json()["data"]
        assert len(first) == 10

        rest = client.get("/drafts", params={"after": first[-1]["id"]}, headers=headers).json()["data"]
        assert [item["document"]["i"] for item in rest] == [10, 11]

        assert len(client.get("/drafts", params={"limit": 3}, headers=headers).json()["data"]) == 3

    @pytest.mark.parametrize("params", [{"limit": 0}, {"limit": 101}, {"after": "x"}])
    def test_bad_params(self, client, auth_headers, params):
        response = client.get("/drafts", params=params, headers=auth_headers())
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"


class TestAuthentication:
    @pytest.mark.parametrize("missing", ["Authorization", "ServiceAuthorization"])
    def test_missing_credentials(self, client, auth_headers, missing):
        headers = auth_headers()
        del headers[missing]

        for method, path in (("get", "/drafts"), ("get", "/drafts/1"), ("delete", "/drafts")):
            response = client.request(method, path, headers=headers)
            assert response.status_code == 401
            assert response.json()["error"] == "AuthenticationError"

        response = client.post("/drafts", json={"type": "t", "document": {}}, headers=headers)
        assert response.status_code == 401

    def test_bad_token(self, client, auth_headers):
        headers = auth_headers()
        headers["Authorization"] = "Bearer nonsense"
        assert client.get("/drafts", headers=headers).status_code == 401


class TestSecretHeader:
    def test_short_secret_rejected_on_write(self, client, auth_headers):
        response = client.post(
            "/drafts", json={"type": "t", "document": {}}, headers=auth_headers(secret="short")
        )
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

    def test_short_secret_accepted_on_read(self, client, auth_headers):
        assert client.get("/drafts", headers=auth_headers(secret="short")).status_code == 200

    def test_missing_secret_allowed_by_default(self, client, auth_headers):
        response = client.post("/drafts", json={"type": "t", "document": {}}, headers=auth_headers(secret=None))
        assert response.status_code == 201

    def test_missing_secret_rejected_when_required(self, client, auth_headers, monkeypatch):
        monkeypatch.setattr(config, "secret_header_required", True)
        response = client.post("/drafts", json={"type": "t", "document": {}}, headers=auth_headers(secret=None))
        assert response.status_code == 400


class TestMediaTypes:
    def test_versioned_media_type_accepted(self, client, auth_headers):
        headers = {**auth_headers(), "Content-Type": MEDIA_TYPE}
        body = json.dumps({"type": "form-a", "document": {"step": 1}})

        response = client.post("/drafts", content=body, headers=headers)
        assert response.status_code == 201

    def test_other_media_type_rejected(self, client, auth_headers):
        headers = {**auth_headers(), "Content-Type": "text/plain"}
        response = client.post("/drafts", content="hello", headers=headers)
        assert response.status_code == 415
        assert response.json()["error"] == "UnsupportedMediaTypeError"

    def test_malformed_json_is_bad_request(self, client, auth_headers):
        headers = {**auth_headers(), "Content-Type": "application/json"}
        response = client.post("/drafts", content="{not json", headers=headers)
        assert response.status_code == 400


class TestDraftByType:
    def test_save_read_delete(self, client, auth_headers):
        headers = auth_headers()

        created = client.put("/drafts/types/form-a", json={"step": 1}, headers=headers)
        assert created.status_code == 201
        draft_id = created.headers["location"].rsplit("/", 1)[-1]

        updated = client.put("/drafts/types/form-a", json={"step": 2}, headers=headers)
        assert updated.status_code == 204

        assert client.get("/drafts/types/form-a", headers=headers).json() == {"step": 2}
        assert client.get(f"/drafts/{draft_id}", headers=headers).json() == {"step": 2}

        assert client.delete("/drafts/types/form-a", headers=headers).status_code == 204
        assert client.get("/drafts/types/form-a", headers=headers).status_code == 404
        assert client.delete("/drafts/types/form-a", headers=headers).status_code == 204

    def test_scoped_to_caller(self, client, auth_headers):
        client.put("/drafts/types/form-a", json={"step": 1}, headers=auth_headers())

        response = client.get("/drafts/types/form-a", headers=auth_headers(user_id="43"))
        assert response.status_code == 404

    @pytest.mark.parametrize("document_type", ["x" * 256, "%20%20"])
    def test_invalid_type_is_bad_request(self, client, auth_headers, document_type):
        headers = auth_headers()

        response = client.put(f"/drafts/types/{document_type}", json={"step": 1}, headers=headers)
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

        assert client.get(f"/drafts/types/{document_type}", headers=headers).status_code == 400
        assert client.delete(f"/drafts/types/{document_type}", headers=headers).status_code == 400
        assert client.get("/drafts", headers=headers).json()["count"] == 0

    def test_longest_type_accepted(self, client, auth_headers):
        response = client.put(f"/drafts/types/{'y' * 255}", json={"step": 1}, headers=auth_headers())
        assert response.status_code == 201


def test_unknown_route_has_structured_error(client: TestClient) -> None:
    response = client.get("/nothing-here")
    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundError"


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": True}
