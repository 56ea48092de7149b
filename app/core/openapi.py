"""OpenAPI customization for the portal API.

Adds the bearer token security scheme to admin operations and tag metadata,
keeping documentation concerns out of the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

ADMIN_PATH_PREFIX = "/api/admin"

TAGS_METADATA = [
    {
        "name": "Collaborators",
        "description": "Public collaborator submissions and the approved directory.",
    },
    {
        "name": "Innovators",
        "description": "Public innovator submissions and the approved directory.",
    },
    {
        "name": "Admin",
        "description": "Search, review, export, statistics and audit log. Requires a bearer token.",
    },
    {
        "name": "Health",
        "description": "Liveness and readiness checks.",
    },
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add metadata and security.

    - Injects components.securitySchemes for bearer (JWT) auth
    - Marks operations under ``/api/admin`` as requiring it; public and
      health operations stay open
    - Adds tags metadata if not present
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "BearerAuth",
            {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Admin access token in the Authorization header.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if not path.startswith(ADMIN_PATH_PREFIX):
                continue
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    method_obj["security"] = [{"BearerAuth": []}]

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
