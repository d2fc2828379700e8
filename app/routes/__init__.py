"""Route modules registered with the shared FunctionApp."""

from . import docs, preview  # noqa: F401

__all__ = ["docs", "preview"]
