"""
Request body schema validation.

SchemaEngine owns the jsonschema validator class, the format checker and the
compiled-validator cache. Build one at startup and pass it to every
SchemaValidator that should share the cache.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from jsonschema import Draft7Validator, FormatChecker, ValidationError
from jsonschema.protocols import Validator
from jsonschema.validators import extend

from .exceptions import SchemaValidationError

logger = logging.getLogger("pipeline.schema")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Schema keyword holding custom messages, keyed by the violated keyword.
ERROR_MESSAGE_KEYWORD = "errorMessage"


def _required(validator, required, instance, schema):
    """One violation per missing property, tagged with its name."""
    if not validator.is_type(instance, "object"):
        return
    for prop in required:
        if prop not in instance:
            error = ValidationError(f"{prop!r} is a required property")
            error.params = {"missingProperty": prop}
            yield error


def _additional_properties(validator, additional, instance, schema):
    """One violation per unexpected property, tagged with its name."""
    if not validator.is_type(instance, "object"):
        return

    properties = schema.get("properties", {})
    patterns = list(schema.get("patternProperties", {}))
    extras = [
        prop
        for prop in instance
        if prop not in properties and not any(re.search(p, prop) for p in patterns)
    ]

    if validator.is_type(additional, "object"):
        for extra in extras:
            yield from validator.descend(instance[extra], additional, path=extra)
    elif additional is False:
        for extra in extras:
            error = ValidationError(f"Additional properties are not allowed ({extra!r} was unexpected)")
            error.params = {"additionalProperty": extra}
            yield error


def _is_email(instance: Any) -> bool:
    if not isinstance(instance, str):
        return True
    return EMAIL_PATTERN.match(instance) is not None


class SchemaEngine:
    """
    Explicit validator engine (format registry + compiled-schema cache).
    """

    def __init__(self, base_validator=Draft7Validator):
        self.validator_cls = extend(
            base_validator,
            {"required": _required, "additionalProperties": _additional_properties},
        )
        self.format_checker = FormatChecker()
        self.format_checker.checks("email")(_is_email)
        self._cache: Dict[str, Validator] = {}

    def compile(self, schema: Dict[str, Any]) -> Validator:
        """
        Check the schema and return a (cached) validator for it.

        Raises:
            jsonschema.SchemaError: the schema itself is invalid
        """
        cache_key = json.dumps(schema, sort_keys=True, default=str)
        validator = self._cache.get(cache_key)
        if validator is None:
            self.validator_cls.check_schema(schema)
            validator = self.validator_cls(schema, format_checker=self.format_checker)
            self._cache[cache_key] = validator
            logger.debug("Compiled body schema", extra={"cached_schemas": len(self._cache)})
        return validator


def _violation_key(error: ValidationError) -> str:
    path = [str(part) for part in error.absolute_path]
    if path:
        return ".".join(path)

    params = getattr(error, "params", {})
    if params.get("missingProperty"):
        return params["missingProperty"]
    if params.get("additionalProperty"):
        return params["additionalProperty"]
    if error.validator == "format":
        return str(error.validator_value)
    return "generic"


def _violation_message(error: ValidationError) -> str:
    custom = error.schema.get(ERROR_MESSAGE_KEYWORD) if isinstance(error.schema, dict) else None
    if isinstance(custom, dict) and custom.get(error.validator):
        return str(custom[error.validator])
    if isinstance(custom, str) and custom:
        return custom
    return error.message


def format_violations(errors: List[ValidationError]) -> List[Dict[str, str]]:
    """Reduce each violation to a {key, message} entry."""
    return [{"key": _violation_key(e), "message": _violation_message(e)} for e in errors]


class SchemaValidator:
    """Validates parsed request bodies against route schemas."""

    def __init__(self, engine: Optional[SchemaEngine] = None):
        self.engine = engine or SchemaEngine()

    def validate(self, schema: Dict[str, Any], data: Any) -> Any:
        """
        Validate data and return it unchanged.

        Raises:
            SchemaValidationError: with every violation formatted
        """
        validator = self.engine.compile(schema)
        errors = list(validator.iter_errors(data))
        if errors:
            formatted = format_violations(errors)
            logger.info(
                f"Request body failed schema validation ({len(formatted)} violations)",
                extra={"violations": formatted},
            )
            raise SchemaValidationError("Validation failed", formatted)
        return data
