from __future__ import annotations
from typing import Tuple, List, Any, Dict
import json

from jsonschema import Draft7Validator

def validate_against_schema(instance: Any, schema_in: Any) -> Tuple[bool, List[str]]:
    """Validate a JSON value against a JSON Schema.
    Accepts the schema as a dict or a JSON string.
    Returns (is_valid, error_messages).
    """
    schema: Dict[str, Any] = json.loads(schema_in) if isinstance(schema_in, (bytes, bytearray, str)) else schema_in
    v = Draft7Validator(schema)
    errs = sorted(v.iter_errors(instance), key=lambda e: [str(p) for p in e.path])

    def fmt(e):
        path = ".".join(map(str, e.path)) or "$"
        return f"{path}: {e.message}"

    return (not errs), [fmt(e) for e in errs]
