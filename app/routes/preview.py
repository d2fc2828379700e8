"""HTTP routes for previewing and describing name builder configurations."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import azure.functions as func
from azure_functions_openapi.decorator import openapi as openapi_doc

from app import app
from app.constants import PREVIEW_TAG
from app.errors import handle_name_builder_error
from app.models import (
    BuildRequest,
    BuildResponse,
    DescribeRequest,
    DescribeResponse,
    PreviewRequest,
    PreviewResponse,
    metadata_catalog,
)
from app.responses import build_preview_response, json_payload
from core.diagnostics import Diagnostics
from core.name_builder import build_name
from core.name_service import NameBuildResult, build_name_for_event
from core.summary import describe_field
from providers.json_config import configuration_from_mapping


def _read_json(req: func.HttpRequest) -> Any:
    try:
        return req.get_json()
    except ValueError:
        return None


def _handle_preview(req: func.HttpRequest) -> func.HttpResponse:
    """Core implementation shared with tests for previews."""

    logging.info("[preview_name] Processing preview request.")

    payload = _read_json(req)
    if not isinstance(payload, dict):
        return func.HttpResponse("Invalid JSON payload.", status_code=400)

    try:
        request = PreviewRequest.model_validate(payload)
        configuration = configuration_from_mapping(request.configuration)
        record = request.record.to_record_view()
        diagnostics = Diagnostics(tracing=configuration.tracing_enabled)
        name = build_name(configuration, record, metadata_catalog(request.metadata), diagnostics)
        result = NameBuildResult(name=name, target_field=configuration.target_field, diagnostics=diagnostics)
        return build_preview_response(result)
    except Exception as exc:  # pragma: no cover - centralised error handling
        return handle_name_builder_error(exc, log_prefix="preview_name")


def _handle_build(req: func.HttpRequest) -> func.HttpResponse:
    """Core implementation shared with tests for create/update builds."""

    logging.info("[build_name] Processing build request.")

    payload = _read_json(req)
    if not isinstance(payload, dict):
        return func.HttpResponse("Invalid JSON payload.", status_code=400)

    try:
        request = BuildRequest.model_validate(payload)
        configuration = configuration_from_mapping(request.configuration)
        pre_image = request.pre_image.to_record_view() if request.pre_image is not None else None
        result = build_name_for_event(
            configuration,
            request.message,
            request.target.to_record_view(),
            pre_image=pre_image,
            metadata=metadata_catalog(request.metadata),
        )
    except Exception as exc:  # pragma: no cover - centralised error handling
        return handle_name_builder_error(exc, log_prefix="build_name")

    if result is None:
        return json_payload({"targetField": configuration.target_field, "skipped": True, "diagnostics": []})
    body = result.to_dict()
    body["skipped"] = False
    return json_payload(body)


def _handle_describe(req: func.HttpRequest) -> func.HttpResponse:
    """Core implementation shared with tests for behaviour summaries."""

    logging.info("[describe_configuration] Processing describe request.")

    payload = _read_json(req)
    if not isinstance(payload, dict):
        return func.HttpResponse("Invalid JSON payload.", status_code=400)

    try:
        request = DescribeRequest.model_validate(payload)
        configuration = configuration_from_mapping(request.configuration)
    except Exception as exc:  # pragma: no cover - centralised error handling
        return handle_name_builder_error(exc, log_prefix="describe_configuration")

    metadata = metadata_catalog(request.metadata)
    fields: List[Dict[str, Any]] = []
    for index, spec in enumerate(configuration.effective_fields(), start=1):
        fields.append({"index": index, "field": spec.field, "summary": describe_field(spec, metadata)})

    return json_payload(
        {
            "fields": fields,
            "referencedAttributes": list(configuration.referenced_attributes()),
        }
    )


@app.function_name(name="preview_name")
@app.route(route="preview", methods=[func.HttpMethod.POST], auth_level=func.AuthLevel.ANONYMOUS)
@openapi_doc(
    summary="Preview the name produced by a configuration",
    description=(
        "Evaluates the supplied plugin configuration against a fully populated sample record "
        "and returns the name the runtime plugin would write, along with every fallback taken."
    ),
    tags=[PREVIEW_TAG],
    request_model=PreviewRequest,
    response_model=PreviewResponse,
    operation_id="previewName",
    route="/preview",
    method="post",
)
def preview_name(req: func.HttpRequest) -> func.HttpResponse:
    """Preview a name for a sample record."""

    return _handle_preview(req)


@app.function_name(name="build_name")
@app.route(route="build", methods=[func.HttpMethod.POST], auth_level=func.AuthLevel.ANONYMOUS)
@openapi_doc(
    summary="Build a name for a create or update event",
    description=(
        "Applies the runtime plugin's create/update rules: updates are merged with the pre-image "
        "and skipped when no configured attribute changed."
    ),
    tags=[PREVIEW_TAG],
    request_model=BuildRequest,
    response_model=BuildResponse,
    operation_id="buildName",
    route="/build",
    method="post",
)
def build_name_for_record(req: func.HttpRequest) -> func.HttpResponse:
    """Build a name as the runtime plugin would for an event."""

    return _handle_build(req)


@app.function_name(name="describe_configuration")
@app.route(route="describe", methods=[func.HttpMethod.POST], auth_level=func.AuthLevel.ANONYMOUS)
@openapi_doc(
    summary="Describe each field of a configuration",
    description="Returns a readable summary of every field's fallbacks and conditions plus the attributes it reads.",
    tags=[PREVIEW_TAG],
    request_model=DescribeRequest,
    response_model=DescribeResponse,
    operation_id="describeConfiguration",
    route="/describe",
    method="post",
)
def describe_configuration(req: func.HttpRequest) -> func.HttpResponse:
    """Summarise the behaviour of a configuration."""

    return _handle_describe(req)
