"""
Write the OpenAPI schema of the tasks API to interfaces/openapi.json so clients
can be generated without running the server.

Usage:
    python -m src.api.generate_openapi
"""
from __future__ import annotations

import json
import os
from typing import Any, Dict, List

from .main import app, openapi_tags


def _ensure_tags(schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Append any tag from ``openapi_tags`` missing from the schema's tag list.
    Existing tag definitions are left as they are.
    """
    existing_tags: List[Dict[str, Any]] = schema.get("tags", []) or []
    existing_names = {t.get("name") for t in existing_tags if isinstance(t, dict)}
    for tag in openapi_tags:
        if tag.get("name") not in existing_names:
            existing_tags.append(tag)
    if existing_tags:
        schema["tags"] = existing_tags
    return schema


def _output_path() -> str:
    # <container_root>/interfaces/openapi.json, container_root being tasks_backend/
    src_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    return os.path.join(os.path.dirname(src_dir), "interfaces", "openapi.json")


# PUBLIC_INTERFACE
def generate_openapi() -> str:
    """Generate the OpenAPI schema file and return the written file path."""
    schema = _ensure_tags(app.openapi())
    out_path = _output_path()
    os.makedirs(os.path.dirname(out_path), exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(schema, f, indent=2, ensure_ascii=False)
    return out_path


if __name__ == "__main__":
    print(f"Wrote OpenAPI schema to: {generate_openapi()}")
