"""Application package exposing the shared FunctionApp instance.

The preview API is stateless: it evaluates a configuration against the record
supplied in the request and never reads or writes storage.
"""

from __future__ import annotations

import azure.functions as func

app = func.FunctionApp(http_auth_level=func.AuthLevel.FUNCTION)

# Import route modules so decorators execute at import time
from .routes import docs as _docs_routes  # noqa: F401
from .routes import preview as _preview_routes  # noqa: F401

__all__ = ["app"]
