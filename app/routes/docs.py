"""Routes serving the preview API's OpenAPI document and Swagger UI."""

from __future__ import annotations

import json
from typing import Any, Dict, List

import azure.functions as func
from azure_functions_openapi.openapi import get_openapi_json
from azure_functions_openapi.swagger_ui import render_swagger_ui

from app import app
from app.constants import API_DESCRIPTION, API_TITLE, API_VERSION, PREVIEW_TAG, PREVIEW_TAG_DESCRIPTION
from core.diagnostics import DIAGNOSTIC_CODES

_SCHEMA_PREFIX = "#/components/schemas/"


def _collect_schemas(node: Any, schemas: Dict[str, Any]) -> None:
    """Move nested pydantic ``$defs`` into the shared components section."""

    if isinstance(node, dict):
        nested = node.pop("$defs", None)
        for name, schema in (nested or {}).items():
            schemas.setdefault(name, schema)
        for key, value in node.items():
            if key == "$ref" and isinstance(value, str) and value.startswith("#/$defs/"):
                node[key] = _SCHEMA_PREFIX + value[len("#/$defs/"):]
            else:
                _collect_schemas(value, schemas)
    elif isinstance(node, list):
        for item in node:
            _collect_schemas(item, schemas)


def _document_diagnostic_codes(schemas: Dict[str, Any]) -> None:
    entry = schemas.get("DiagnosticEntry")
    if not isinstance(entry, dict):
        return
    code = entry.setdefault("properties", {}).setdefault("code", {"type": "string"})
    code["enum"] = list(DIAGNOSTIC_CODES)


def _normalise_openapi_spec(raw_json: str) -> str:
    document = json.loads(raw_json)
    schemas = document.setdefault("components", {}).setdefault("schemas", {})
    _collect_schemas(document, schemas)
    _document_diagnostic_codes(schemas)

    info = document.setdefault("info", {})
    info.setdefault("description", API_DESCRIPTION)

    tags: List[Dict[str, Any]] = document.setdefault("tags", [])
    if not any(tag.get("name") == PREVIEW_TAG for tag in tags):
        tags.append({"name": PREVIEW_TAG, "description": PREVIEW_TAG_DESCRIPTION})

    servers = document.setdefault("servers", [])
    if not any(server.get("url") == "/api" for server in servers):
        # Relative so Swagger UI calls include the Functions route prefix.
        servers.append({"url": "/api"})
    return json.dumps(document)


@app.function_name(name="openapi_spec")
@app.route(route="openapi.json", methods=[func.HttpMethod.GET], auth_level=func.AuthLevel.ANONYMOUS)
def openapi_spec(req: func.HttpRequest) -> func.HttpResponse:
    """Serve the OpenAPI document for the preview endpoints."""

    raw = get_openapi_json(title=API_TITLE, version=API_VERSION)
    return func.HttpResponse(_normalise_openapi_spec(raw), mimetype="application/json", status_code=200)


@app.function_name(name="swagger_ui")
@app.route(route="docs", methods=[func.HttpMethod.GET], auth_level=func.AuthLevel.ANONYMOUS)
def swagger_ui(req: func.HttpRequest) -> func.HttpResponse:
    return render_swagger_ui(title=f"{API_TITLE} Swagger", openapi_url="/api/openapi.json")
