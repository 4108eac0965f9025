"""Route modules registered with the shared FunctionApp."""

from . import docs, names, policies  # noqa: F401

__all__ = ["docs", "names", "policies"]
