from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="xmarks API",
            version="0.1.0",
            summary="Bookmarks and folders with X login",
            routes=app.routes,
        )

        # Session cookie set by the login flow
        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "SessionCookie": {
                "type": "apiKey",
                "in": "cookie",
                "name": "session",
                "description": "Signed session cookie issued by the login flow",
            },
        }
        openapi_schema["security"] = [{"SessionCookie": []}]

        # Remove security from public endpoints
        public_endpoints = {
            ("GET", "/auth/x"),
            ("GET", "/auth/x/callback"),
            ("GET", "/health"),
            ("POST", "/api/v1/auth/logout"),
        }

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in public_endpoints:
                    operation["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Unauthorized: please login", "type": "unauthorized"},
                {"message": "Folder not found", "type": "not_found"},
                {"message": "A folder with this name already exists", "type": "duplicate_name"},
            ]
        }
    }
