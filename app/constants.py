"""Shared constants for Name Builder Function routes."""

API_TITLE = "Name Builder Preview API"
API_VERSION = "1.0.0"
API_DESCRIPTION = (
    "Stateless preview of the record name builder. Every call evaluates the supplied "
    "configuration against the record in the request; nothing is read from or written to storage."
)

PREVIEW_TAG = "Preview"
PREVIEW_TAG_DESCRIPTION = "Evaluate, build and describe name builder configurations."
