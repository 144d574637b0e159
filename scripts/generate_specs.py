#!/usr/bin/env python3
"""
Generate JSON Schemas, YAML variants, and OpenAPI from Pydantic models.

Outputs under src/specs/:
 - schemas/*.json (and *.yaml)
 - openapi.yaml and openapi.json
"""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

try:
    import yaml  # type: ignore
except Exception as exc:  # pragma: no cover
    print("PyYAML is required: pip install pyyaml", file=sys.stderr)
    raise


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
SPECS = SRC / "specs"
SCHEMAS_DIR = SPECS / "schemas"

sys.path.insert(0, str(ROOT))

from src.specs.models import SCHEMA_MODELS  # noqa: E402

# (path, method, summary, request schema, success status, success schema)
ROUTES = [
    ("/generate_lookbook", "post", "Start a four-pose lookbook run",
     "generate_lookbook.request.schema.json", "202", "generate_lookbook.response.schema.json"),
    ("/generate_video", "post", "Animate the lookbook or one pose",
     "generate_video.request.schema.json", "202", "generate_lookbook.response.schema.json"),
    ("/check_task_status", "get", "Poll a run's status and artifacts",
     None, "200", "task_status.response.schema.json"),
    ("/reset_run", "post", "Return a run to IDLE",
     None, "200", "task_status.response.schema.json"),
    ("/credentials/{provider}", "get", "Report whether a provider key is configured",
     None, "200", "credential.status.schema.json"),
    ("/credentials/{provider}", "put", "Save a provider key",
     "credential.update.schema.json", "200", "credential.status.schema.json"),
    ("/credentials/{provider}", "delete", "Clear a stored provider key",
     None, "200", "credential.status.schema.json"),
    ("/wardrobe", "get", "List wardrobe items",
     None, "200", "wardrobe.list.schema.json"),
    ("/wardrobe", "post", "Add a custom wardrobe item",
     "wardrobe.add.schema.json", "201", "wardrobe.list.schema.json"),
    ("/wardrobe/{item_id}", "delete", "Remove a wardrobe item",
     None, "200", "wardrobe.list.schema.json"),
    ("/compose_grid", "post", "Compose four images into the lookbook PNG",
     "compose_grid.request.schema.json", "200", None),
]


def write_json_yaml(obj: dict, json_path: Path) -> None:
    json_path.parent.mkdir(parents=True, exist_ok=True)
    with json_path.open("w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)
    yaml_path = json_path.with_suffix(".yaml")
    with yaml_path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(obj, f, sort_keys=False)


def generate_model_schemas() -> None:
    for filename, model in SCHEMA_MODELS.items():
        schema = model.model_json_schema()
        write_json_yaml(schema, SCHEMAS_DIR / filename)


def _component_name(filename: str) -> str:
    return SCHEMA_MODELS[filename].__name__


def _json_content(filename: str) -> dict:
    return {"application/json": {"schema": {"$ref": f"#/components/schemas/{_component_name(filename)}"}}}


def _operation(summary: str, request: Optional[str], status: str, response: Optional[str]) -> dict:
    op: dict = {"summary": summary, "responses": {}}
    if request:
        op["requestBody"] = {"required": True, "content": _json_content(request)}
    if response:
        op["responses"][status] = {"description": "OK", "content": _json_content(response)}
    else:
        op["responses"][status] = {
            "description": "PNG image",
            "content": {"image/png": {"schema": {"type": "string", "format": "binary"}}},
        }
    error = _json_content("error.response.schema.json")
    op["responses"]["400"] = {"description": "Invalid input", "content": error}
    op["responses"]["401"] = {"description": "Provider API key not configured", "content": error}
    return op


def build_openapi() -> dict:
    components = {
        "schemas": {model.__name__: model.model_json_schema() for model in SCHEMA_MODELS.values()}
    }
    paths: dict = {}
    for path, method, summary, request, status, response in ROUTES:
        paths.setdefault(path, {})[method] = _operation(summary, request, status, response)

    return {
        "openapi": "3.0.3",
        "info": {
            "title": "Lookbook Try-On Functions API",
            "version": "0.1.0",
            "description": "HTTP endpoints exposed by the lookbook try-on Azure Functions app.",
        },
        "servers": [
            {"url": "http://localhost:7071/api", "description": "Local Functions host"}
        ],
        "paths": paths,
        "components": components,
    }


def generate_openapi() -> None:
    spec = build_openapi()
    write_json_yaml(spec, SPECS / "openapi.json")


def main() -> None:
    generate_model_schemas()
    generate_openapi()
    print("Specs generated under src/specs/")


if __name__ == "__main__":
    main()
