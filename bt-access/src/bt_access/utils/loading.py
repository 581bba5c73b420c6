from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Type

import yaml
from jsonschema import Draft202012Validator


def schemas_dir() -> Path:
    # bt_access/utils/* -> bt_access/schemas
    return Path(__file__).resolve().parents[1] / "schemas"


@lru_cache(maxsize=None)
def load_schema(name: str) -> Dict[str, Any]:
    schema_path = schemas_dir() / name
    schema = json.loads(schema_path.read_text(encoding="utf-8"))
    if not isinstance(schema, dict):
        raise ValueError(f"Schema must be an object: {schema_path}")
    Draft202012Validator.check_schema(schema)
    return schema


def load_yaml_or_json(path: Path, *, error_cls: Type[Exception] = ValueError) -> Dict[str, Any]:
    """Load a YAML/JSON file into a dict.

    This is intentionally strict: the top-level must be an object.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)

    if path.suffix.lower() in {".yaml", ".yml"}:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    elif path.suffix.lower() == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
    else:
        raise error_cls(f"Unsupported file extension: {path}")

    if not isinstance(data, dict):
        raise error_cls(f"Top-level document must be an object: {path}")
    return data


def validate_against_schema(
    instance: Mapping[str, Any],
    schema: Mapping[str, Any],
    *,
    where: str,
    error_cls: Type[Exception] = ValueError,
) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
    if errors:
        msgs = []
        for e in errors[:20]:
            loc = "/".join([str(p) for p in e.path])
            msgs.append(f"- {where}:{loc}: {e.message}")
        if len(errors) > 20:
            msgs.append(f"... ({len(errors)-20} more)")
        raise error_cls("\n".join(msgs))
