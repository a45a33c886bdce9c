"""
JSON Schema checks for factoryline data files.

Manifests and requirement sets are checked on the way in; the stories
manifest is checked on the way out and never written when it doesn't match.
Schemas live next to this module in schemas/<name>.schema.json.
"""

import json
from pathlib import Path
from typing import Any, Optional

import jsonschema

from factoryline.errors import FactorylineError

SCHEMAS_DIR = Path(__file__).parent / "schemas"


class SchemaValidationError(FactorylineError):
    """Data does not match its schema (or the schema/data can't be read)."""

    def __init__(self, schema_name: str, message: str, path: Optional[str] = None):
        self.schema_name = schema_name
        self.message = message
        self.path = path
        super().__init__(f"[{schema_name}] {message}" + (f" at {path}" if path else ""))


_schemas: dict[str, dict] = {}


def load_schema(schema_name: str) -> dict:
    if schema_name not in _schemas:
        schema_path = SCHEMAS_DIR / f"{schema_name}.schema.json"
        if not schema_path.exists():
            raise SchemaValidationError(schema_name, f"Schema file not found: {schema_path}")
        _schemas[schema_name] = json.loads(schema_path.read_text())
    return _schemas[schema_name]


def validate(data: Any, schema_name: str) -> None:
    """Check parsed JSON against a named schema.

    Raises:
        SchemaValidationError: First violation, with its dotted location
            (e.g. "processors.0") or "(root)"
    """
    try:
        jsonschema.validate(instance=data, schema=load_schema(schema_name))
    except jsonschema.ValidationError as e:
        location = ".".join(str(p) for p in e.absolute_path) or "(root)"
        raise SchemaValidationError(schema_name, e.message, location) from None


def validate_file(filepath: Path, schema_name: str) -> Any:
    """Read a JSON file and check it; returns the parsed data."""
    if not filepath.exists():
        raise SchemaValidationError(schema_name, f"File not found: {filepath}")
    try:
        data = json.loads(filepath.read_text())
    except json.JSONDecodeError as e:
        raise SchemaValidationError(schema_name, f"Invalid JSON in {filepath}: {e}") from None

    validate(data, schema_name)
    return data


def write_validated_json(data: dict, schema_name: str, filepath: Path) -> None:
    """Write data as JSON only if it matches the schema.

    Raises:
        SchemaValidationError: Nothing was written
    """
    try:
        validate(data, schema_name)
    except SchemaValidationError as e:
        raise SchemaValidationError(
            schema_name, f"Refusing to write {filepath}: {e.message}", e.path,
        ) from None
    filepath.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
