import pytest
from unittest.mock import AsyncMock

from app.services.builder_engine import set_field
from app.utils.errors import UpstreamUnavailable
from tests.conftest import CONNECTION_HEADERS


@pytest.fixture
def form_fields(specs):
    specs = set_field(specs, "fld1", {"include": True, "required": True})
    specs = set_field(specs, "fld2", {"include": True, "defaultValue": 0})
    specs = set_field(specs, "fld5", {"include": True})
    specs = set_field(specs, "fld4", {"include": True, "showFormula": True})
    return [s.model_dump(mode="json") for s in specs]


def publish(client, fields, **extra):
    payload = {"tableName": "Orders", "tableId": "tblOrders", "fields": fields, **extra}
    return client.post("/api/forms/", json=payload, headers=CONNECTION_HEADERS)


def test_publish_and_get_form(client, form_fields):
    response = publish(client, form_fields)
    assert response.status_code == 201
    form_id = response.json()["formId"]
    assert response.json()["url"].endswith(f"/alice/{form_id}")

    response = client.get(f"/api/forms/{form_id}")
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Nebula Orders"
    assert data["fields"] == form_fields
    assert "apiKey" not in data


def test_publish_requires_connection_headers(client, form_fields):
    response = client.post("/api/forms/", json={"tableName": "Orders", "fields": form_fields})
    assert response.status_code == 400
    assert response.json()["detail"] == "Missing API key or Base ID"


def test_publish_rejects_duplicate_ids(client, form_fields):
    response = publish(client, form_fields + form_fields[:1])
    assert response.status_code == 400


def test_second_form_gets_numbered_title(client, form_fields):
    publish(client, form_fields)
    assert client.get("/api/forms/suggested-title", params={"tableName": "Orders"}).json() == {"title": "Orders 2"}
    form_id = publish(client, form_fields).json()["formId"]
    assert client.get(f"/api/forms/{form_id}").json()["title"] == "Orders 2"


def test_list_status_and_delete(client, form_fields):
    form_id = publish(client, form_fields, title="Orders intake").json()["formId"]

    forms = client.get("/api/forms/").json()
    assert [f["title"] for f in forms] == ["Orders intake"]
    assert forms[0]["fieldsCount"] == 4

    response = client.patch(f"/api/forms/{form_id}/status", json={"isActive": False})
    assert response.status_code == 200
    assert response.json()["isActive"] is False

    assert client.delete(f"/api/forms/{form_id}").status_code == 204
    assert client.get(f"/api/forms/{form_id}").status_code == 404


def test_unknown_form_is_404(client):
    assert client.get("/api/forms/nope").status_code == 404
    assert client.get("/api/forms/public/alice/nope").status_code == 404


# ─── Public runner ──────────────────────────────────────────────────────────

def test_public_form_renders_widgets_and_information(client, form_fields, upstream):
    form_id = publish(client, form_fields).json()["formId"]

    response = client.get(f"/api/forms/public/alice/{form_id}")

    assert response.status_code == 200
    view = response.json()
    assert [w["fieldId"] for w in view["widgets"]] == ["fld1", "fld2", "fld5"]
    owners = view["widgets"][2]
    assert owners["widget"] == "record-multiselect"
    assert owners["records"] == [{"id": "rec1", "label": "a@b.com"}, {"id": "rec2", "label": "c@d.com"}]
    [total] = view["information"]
    assert total["fieldId"] == "fld4"
    assert total["values"] == [10]
    assert total["formula"] == "{Score} * 2"
    upstream.list_records.assert_any_await("People")


def test_public_information_endpoint(client, form_fields):
    form_id = publish(client, form_fields).json()["formId"]
    response = client.get(f"/api/forms/public/alice/{form_id}/information")
    assert response.status_code == 200
    assert [i["fieldId"] for i in response.json()] == ["fld4"]


def test_public_submit_coerces_and_creates_record(client, form_fields, upstream):
    form_id = publish(client, form_fields).json()["formId"]

    response = client.post(f"/api/forms/public/alice/{form_id}/submit",
                           json={"values": {"fld1": "a@b.com", "fld2": "42", "fld5": "rec1, rec2", "fld4": "x"}})

    assert response.status_code == 201
    upstream.create_record.assert_awaited_once_with(
        "Orders", {"fld1": "a@b.com", "fld2": 42, "fld5": ["rec1", "rec2"]})
    assert response.json()["record"]["id"] == "recNew"


def test_public_submit_reports_missing_required(client, form_fields, upstream):
    form_id = publish(client, form_fields).json()["formId"]

    response = client.post(f"/api/forms/public/alice/{form_id}/submit", json={"values": {"fld1": "", "fld2": "42"}})

    assert response.status_code == 422
    body = response.json()
    assert [e["fieldId"] for e in body["errors"]] == ["fld1"]
    assert body["errors"][0]["message"] == "Email is required"
    upstream.create_record.assert_not_called()


def test_public_submit_upstream_failure(client, form_fields, upstream):
    upstream.create_record = AsyncMock(side_effect=UpstreamUnavailable("Airtable is down"))
    form_id = publish(client, form_fields).json()["formId"]

    response = client.post(f"/api/forms/public/alice/{form_id}/submit", json={"values": {"fld1": "a@b.com"}})

    assert response.status_code == 502
    assert response.json()["detail"] == "Airtable is down"


def test_inactive_form_is_not_public(client, form_fields):
    form_id = publish(client, form_fields).json()["formId"]
    client.patch(f"/api/forms/{form_id}/status", json={"isActive": False})

    assert client.get(f"/api/forms/public/alice/{form_id}").status_code == 404
    response = client.post(f"/api/forms/public/alice/{form_id}/submit", json={"values": {"fld1": "a"}})
    assert response.status_code == 404


def test_publish_ignores_client_category(client, form_fields, upstream):
    form_fields[3]["category"] = "text"
    form_id = publish(client, form_fields).json()["formId"]

    stored = client.get(f"/api/forms/{form_id}").json()["fields"][3]
    assert stored["category"] == "computed-formula"

    view = client.get(f"/api/forms/public/alice/{form_id}").json()
    assert "fld4" not in [w["fieldId"] for w in view["widgets"]]

    client.post(f"/api/forms/public/alice/{form_id}/submit", json={"values": {"fld1": "a@b.com", "fld4": "overwrite"}})
    _, fields = upstream.create_record.await_args.args
    assert "fld4" not in fields
