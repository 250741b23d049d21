from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

from pocketnotes.web.deps import CSRF_HEADER_NAME, SESSION_COOKIE_NAME


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="PocketNotes API",
            version="0.1.0",
            summary="Personal notes behind an OpenID Connect login",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "SessionCookie": {
                "type": "apiKey",
                "in": "cookie",
                "name": SESSION_COOKIE_NAME,
                "description": "Opaque session id set by /login",
            },
            "CsrfHeader": {
                "type": "apiKey",
                "in": "header",
                "name": CSRF_HEADER_NAME,
                "description": "Token from GET /csrf, required on mutating requests",
            },
        }

        openapi_schema["security"] = [{"SessionCookie": []}]

        public_endpoints = {
            ("GET", "/login"),
            ("GET", "/callback"),
            ("GET", "/logout"),
            ("GET", "/health"),
        }

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in public_endpoints:
                    operation["security"] = []
                elif method.upper() in {"POST", "PUT", "PATCH", "DELETE"}:
                    operation["security"] = [{"SessionCookie": [], "CsrfHeader": []}]

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Generic human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Unauthorized", "type": "unauthorized"},
                {"message": "Forbidden", "type": "forbidden"},
                {"message": "Not found", "type": "not_found"},
            ]
        }
    }
