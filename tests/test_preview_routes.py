import json
from types import SimpleNamespace

import pathlib
import sys

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.routes import docs as docs_routes
from app.routes import preview as preview_routes


def _request(payload):
    return SimpleNamespace(get_json=lambda: payload, headers={}, params={})


def _broken_request():
    def _raise():
        raise ValueError("not json")

    return SimpleNamespace(get_json=_raise, headers={}, params={})


ACCOUNT_CONFIGURATION = {
    "entity": "account",
    "targetField": "name",
    "fields": [
        {"field": "accountnumber", "suffix": " | "},
        {"field": "revenue", "type": "currency"},
        {"field": "statuscode", "prefix": " (", "suffix": ")"},
    ],
}


def test_preview_returns_name_and_diagnostics():
    request = _request(
        {
            "configuration": ACCOUNT_CONFIGURATION,
            "record": {
                "logicalName": "account",
                "attributes": {
                    "accountnumber": "ACC-1",
                    "revenue": {"type": "money", "value": 1234.5},
                    "statuscode": {"type": "option", "value": 1},
                },
                "currency": {"id": "usd", "symbol": "$"},
            },
            "metadata": [
                {"logicalName": "statuscode", "attributeType": "Status", "options": {"1": "Active"}},
            ],
        }
    )

    response = preview_routes._handle_preview(request)

    assert response.status_code == 200
    body = json.loads(response.get_body())
    assert body == {"name": "ACC-1 | $1,234.50 (Active)", "targetField": "name", "diagnostics": []}


def test_preview_reports_type_mismatch():
    request = _request(
        {
            "configuration": {"fields": [{"field": "createdon", "type": "date"}]},
            "record": {"attributes": {"createdon": "soon"}},
        }
    )

    body = json.loads(preview_routes._handle_preview(request).get_body())

    assert body["name"] == "soon"
    assert [entry["code"] for entry in body["diagnostics"]] == ["type_mismatch"]


def test_preview_rejects_invalid_json():
    response = preview_routes._handle_preview(_broken_request())

    assert response.status_code == 400
    assert response.get_body() == b"Invalid JSON payload."


def test_preview_rejects_configuration_without_fields():
    request = _request({"configuration": {"entity": "account"}, "record": {"attributes": {}}})

    response = preview_routes._handle_preview(request)

    assert response.status_code == 400
    assert b"'fields' or 'pattern'" in response.get_body()


def test_preview_rejects_missing_record():
    response = preview_routes._handle_preview(_request({"configuration": ACCOUNT_CONFIGURATION}))

    assert response.status_code == 400
    assert response.get_body().startswith(b"Invalid request:")


def test_preview_rejects_malformed_typed_value():
    request = _request(
        {
            "configuration": ACCOUNT_CONFIGURATION,
            "record": {"attributes": {"revenue": {"type": "unknown", "value": 1}}},
        }
    )

    response = preview_routes._handle_preview(request)

    assert response.status_code == 400
    assert b"Unknown attribute type" in response.get_body()


def test_build_skips_unrelated_update():
    request = _request(
        {
            "configuration": ACCOUNT_CONFIGURATION,
            "message": "Update",
            "target": {"attributes": {"telephone1": "555"}},
        }
    )

    body = json.loads(preview_routes._handle_build(request).get_body())

    assert body == {"targetField": "name", "skipped": True, "diagnostics": []}


def test_build_merges_pre_image_on_update():
    request = _request(
        {
            "configuration": ACCOUNT_CONFIGURATION,
            "message": "Update",
            "target": {"attributes": {"accountnumber": "ACC-2"}},
            "preImage": {
                "attributes": {"accountnumber": "ACC-1", "statuscode": {"type": "option", "value": 2}},
                "formattedValues": {"statuscode": "Inactive"},
            },
        }
    )

    response = preview_routes._handle_build(request)

    assert response.status_code == 200
    body = json.loads(response.get_body())
    assert body["name"] == "ACC-2 |  (Inactive)"
    assert body["skipped"] is False


def test_build_rejects_unsupported_message():
    request = _request(
        {"configuration": ACCOUNT_CONFIGURATION, "message": "Delete", "target": {"attributes": {}}}
    )

    response = preview_routes._handle_build(request)

    assert response.status_code == 400
    assert b"Unsupported message" in response.get_body()


def test_describe_summarises_fields():
    request = _request(
        {
            "configuration": {
                "fields": [
                    {"field": "name", "alternateField": {"default": "Unnamed"}},
                    {"default": " - "},
                ]
            },
            "metadata": [{"logicalName": "name", "attributeType": "String", "displayName": "Account Name"}],
        }
    )

    body = json.loads(preview_routes._handle_describe(request).get_body())

    assert body["referencedAttributes"] == ["name"]
    assert body["fields"] == [
        {
            "index": 1,
            "field": "name",
            "summary": "Use 'Account Name (name)' when not blank.\nIf blank -> default to \"Unnamed\".",
        },
        {"index": 2, "field": None, "summary": 'Literal text " - ".'},
    ]


def test_openapi_spec_hoists_definitions_and_adds_server():
    raw = json.dumps(
        {
            "paths": {
                "/preview": {
                    "post": {"requestBody": {"schema": {"$ref": "#/$defs/Record", "$defs": {"Record": {"type": "object"}}}}}
                }
            }
        }
    )

    spec = json.loads(docs_routes._normalise_openapi_spec(raw))

    assert spec["components"]["schemas"] == {"Record": {"type": "object"}}
    assert spec["paths"]["/preview"]["post"]["requestBody"]["schema"]["$ref"] == "#/components/schemas/Record"
    assert spec["servers"] == [{"url": "/api"}]
    assert spec["tags"] == [{"name": "Preview", "description": docs_routes.PREVIEW_TAG_DESCRIPTION}]
    assert spec["info"]["description"] == docs_routes.API_DESCRIPTION


def test_openapi_spec_lists_diagnostic_codes():
    raw = json.dumps(
        {
            "components": {
                "schemas": {"DiagnosticEntry": {"properties": {"code": {"type": "string"}}}},
            },
            "servers": [{"url": "/api"}],
        }
    )

    spec = json.loads(docs_routes._normalise_openapi_spec(raw))

    codes = spec["components"]["schemas"]["DiagnosticEntry"]["properties"]["code"]["enum"]
    assert "cyclic_chain" in codes
    assert "field_excluded" in codes
    assert spec["servers"] == [{"url": "/api"}]
