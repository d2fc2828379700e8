"""Azure Functions v2 programming model entry point.

The host discovers ``app`` here; routes are registered by the ``app`` package.
"""
from __future__ import annotations

import logging

from app import app

logging.getLogger(__name__).debug("[function_app] Name builder routes registered.")

__all__ = ["app"]
