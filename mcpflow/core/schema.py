"""
Build pydantic validators from JSON-schema tool descriptions.

Tool providers describe their parameters with a JSON schema. The invoker
validates arguments against a model generated here before calling a tool.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model

_SCALARS: Dict[str, Any] = {
    "string": str,
    "number": float,
    "integer": int,
    "boolean": bool,
}


def _model_name(name: str) -> str:
    cleaned = re.sub(r"[^0-9a-zA-Z]+", " ", name).title().replace(" ", "")
    return cleaned or "Args"


def schema_to_type(schema: Any, name: str = "Args") -> Any:
    """
    Map one JSON-schema node to a Python type annotation.

    Objects with ``properties`` become nested models, arrays become
    ``List[...]`` of their ``items`` and anything unrecognised is ``Any``.
    """
    if not isinstance(schema, dict):
        return Any

    schema_type = schema.get("type")
    if schema_type == "object" and "properties" in schema:
        return schema_to_model(schema, name)
    if schema_type == "object":
        return Dict[str, Any]
    if schema_type == "array":
        if "items" in schema:
            return List[schema_to_type(schema["items"], f"{name}Item")]
        return List[Any]
    return _SCALARS.get(schema_type, Any)


def schema_to_model(schema: Dict[str, Any], name: str = "Args") -> Type[BaseModel]:
    """
    Create a pydantic model for an object schema.

    Properties listed in ``required`` are mandatory; the others are optional
    and default to the schema ``default`` when one is given.
    """
    required = set(schema.get("required") or [])
    fields: Dict[str, Tuple[Any, Any]] = {}

    for key, prop in (schema.get("properties") or {}).items():
        annotation = schema_to_type(prop, f"{name}{_model_name(key)}")
        description = prop.get("description") if isinstance(prop, dict) else None
        if key in required:
            fields[key] = (annotation, Field(..., description=description))
        else:
            default = prop.get("default") if isinstance(prop, dict) else None
            fields[key] = (Optional[annotation], Field(default, description=description))

    return create_model(
        _model_name(name),
        __config__=ConfigDict(extra="allow"),
        **fields,
    )


def validate_arguments(schema: Optional[Dict[str, Any]], arguments: Dict[str, Any], name: str = "Args") -> Dict[str, Any]:
    """
    Validate *arguments* against *schema* and return the cleaned mapping.

    Keys the caller did not pass are left out of the result, so tool
    defaults still apply.

    Raises
    ------
    ValueError
        With a readable summary of every validation problem.
    """
    if not schema or schema.get("type") not in (None, "object"):
        return dict(arguments)

    model = schema_to_model(schema, name)
    try:
        validated = model.model_validate(arguments)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in e.errors()
        )
        raise ValueError(f"Invalid arguments for {name}: {problems}") from e
    cleaned = validated.model_dump(exclude_unset=True)
    for key, value in arguments.items():
        cleaned.setdefault(key, value)
    return cleaned
