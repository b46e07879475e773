"""
Utility script to generate and write the OpenAPI schema for the FastAPI app.

The schema is serialized so API clients and documentation tools can consume a
stable contract without running the server.

Usage:
    python -m todo_api.generate_openapi [output_path]

Notes:
- Default output path is interfaces/openapi.json under the current directory.
- Every entry of openapi_tags is guaranteed to be present in the written document.
"""
from __future__ import annotations

import json
import os
import sys
from typing import Any, Dict, List, Optional

from .logging_config import get_logger
from .main import create_app, openapi_tags
from .settings import Settings

logger = get_logger(__name__)

DEFAULT_OUTPUT = os.path.join("interfaces", "openapi.json")


def _ensure_tags(schema: Dict[str, Any]) -> None:
    """
    Ensure the OpenAPI schema contains the expected tags metadata. This does
    not override existing tag definitions unless missing.
    """
    existing_tags: List[Dict[str, Any]] = schema.get("tags", []) or []
    existing_names = {t.get("name") for t in existing_tags if isinstance(t, dict)}
    for tag in openapi_tags:
        if tag.get("name") not in existing_names:
            existing_tags.append(tag)
    if existing_tags:
        schema["tags"] = existing_tags


# PUBLIC_INTERFACE
def build_schema() -> Dict[str, Any]:
    """Return the OpenAPI document of a throwaway in-memory app instance."""
    # The document does not depend on the secret or backend
    app = create_app(Settings(jwt_secret="openapi-export", persistence_backend="memory"))
    schema = app.openapi()
    _ensure_tags(schema)
    return schema


# PUBLIC_INTERFACE
def generate_openapi(out_path: Optional[str] = None) -> str:
    """Write the OpenAPI schema file and return the written file path."""
    out_path = out_path or DEFAULT_OUTPUT
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(build_schema(), f, indent=2, ensure_ascii=False)
    logger.info("Wrote OpenAPI schema to %s", out_path)
    return out_path


def main(argv: Optional[List[str]] = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    path = generate_openapi(args[0] if args else None)
    print(f"Wrote OpenAPI schema to: {path}")


if __name__ == "__main__":
    main()
