"""Application package exposing the shared FunctionApp instance.

The FunctionApp is configured with FUNCTION-level authentication, so every
endpoint requires a function key unless it explicitly opts into anonymous
access (the OpenAPI document and Swagger UI).
"""

from __future__ import annotations

import azure.functions as func

app = func.FunctionApp(http_auth_level=func.AuthLevel.FUNCTION)

# Import route modules so decorators execute at import time
from .routes import docs as _docs_routes  # noqa: F401,E402
from .routes import names as _name_routes  # noqa: F401,E402
from .routes import policies as _policy_routes  # noqa: F401,E402

__all__ = ["app"]
