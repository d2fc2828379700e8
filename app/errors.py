"""Shared error helpers for HTTP routes."""

from __future__ import annotations

import logging

import azure.functions as func
from pydantic import ValidationError

from core.configuration import ConfigurationError, validation_summary

from .responses import json_message


def handle_name_builder_error(exc: Exception, *, log_prefix: str) -> func.HttpResponse:
    if isinstance(exc, ConfigurationError):
        return func.HttpResponse(str(exc), status_code=400)
    if isinstance(exc, ValidationError):
        return func.HttpResponse("Invalid request: " + validation_summary(exc), status_code=400)
    if isinstance(exc, ValueError):
        # Malformed record values (bad dates, option codes, unknown value kinds).
        return func.HttpResponse(str(exc), status_code=400)

    logging.exception("[%s] Unexpected error", log_prefix)
    return json_message("Error building name.", status_code=500)
