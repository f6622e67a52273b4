"""
Attribute value validation and sanitization.

validate() checks a value against the JSON-schema part of an attribute
rule with jsonschema. sanitize() coerces a value that failed validation
into the declared type, the way REST APIs coerce request parameters.
"""

import json
import math
import re
from typing import Any, Union

from jsonschema import Draft202012Validator

from .schemas import AttributeSchema
from .logger import get_module_logger

logger = get_module_logger("validation")

JSON_TYPES = {"string", "number", "integer", "boolean", "array", "object", "null"}

FALSE_STRINGS = {"", "0", "false", "no", "off"}

LIST_SEPARATOR = re.compile(r"[\s,]+")


def _as_dict(schema: Union[AttributeSchema, dict]) -> dict:
    if isinstance(schema, AttributeSchema):
        return schema.validation_schema()
    return {k: v for k, v in schema.items() if k not in ("source", "selector", "attribute", "query", "meta")}


def _types(schema: dict) -> list[str]:
    declared = schema.get("type")
    if declared is None:
        return []
    if isinstance(declared, str):
        declared = [declared]
    return [t for t in declared if t in JSON_TYPES]


class SchemaValidator:
    """Default validate/sanitize collaborator."""

    def to_json_schema(self, schema: Union[AttributeSchema, dict]) -> dict:
        """
        Build a JSON schema from an attribute rule.

        Block types may declare types JSON schema does not know (e.g.
        "rich-text"); those are dropped so validation only checks what it can.
        """
        result = _as_dict(schema)
        types = _types(result)
        if not types:
            result.pop("type", None)
        else:
            result["type"] = types[0] if len(types) == 1 else types
        return result

    def validate(self, value: Any, schema: Union[AttributeSchema, dict]) -> bool:
        json_schema = self.to_json_schema(schema)
        if not json_schema:
            return True
        return Draft202012Validator(json_schema).is_valid(value)

    def sanitize(self, value: Any, schema: Union[AttributeSchema, dict]) -> Any:
        """
        Coerce ``value`` into the schema's type.

        For multi-type schemas the first type the value already satisfies
        wins; otherwise the value is coerced into the first declared type.
        """
        json_schema = self.to_json_schema(schema)
        types = _types(json_schema)
        if not types:
            return value

        if len(types) > 1:
            for candidate in types:
                if self.validate(value, {**json_schema, "type": candidate}):
                    return value

        coerced = self._coerce(value, types[0], json_schema)
        logger.debug(f"Sanitized {value!r} as {types[0]}: {coerced!r}")
        return coerced

    def _coerce(self, value: Any, type_name: str, schema: dict) -> Any:
        if type_name == "string":
            if isinstance(value, (dict, list)):
                return json.dumps(value)
            if isinstance(value, bool):
                return "1" if value else ""
            return "" if value is None else str(value)

        if type_name == "integer":
            try:
                return int(float(value))
            # int(inf) overflows, int(nan) is a ValueError
            except (TypeError, ValueError, OverflowError):
                return 0

        if type_name == "number":
            try:
                number = float(value)
            except (TypeError, ValueError):
                return 0.0
            # JSON has no inf or nan
            return number if math.isfinite(number) else 0.0

        if type_name == "boolean":
            if isinstance(value, str):
                return value.strip().lower() not in FALSE_STRINGS
            return bool(value)

        if type_name == "array":
            if isinstance(value, str):
                items = [item for item in LIST_SEPARATOR.split(value) if item]
            elif isinstance(value, dict):
                items = list(value.values())
            elif isinstance(value, (list, tuple)):
                items = list(value)
            elif value is None:
                items = []
            else:
                items = [value]
            item_schema = schema.get("items")
            if isinstance(item_schema, dict):
                items = [self.sanitize(item, item_schema) for item in items]
            return items

        if type_name == "object":
            if not isinstance(value, dict):
                return {}
            properties = schema.get("properties") or {}
            return {
                key: self.sanitize(item, properties[key]) if key in properties else item
                for key, item in value.items()
            }

        # null
        return None
