"""
Custom assertion helpers for Pydantic request schemas.
"""
from typing import Any

from pydantic import BaseModel, ValidationError


def assert_schema_valid(schema_class: type[BaseModel], data: dict[str, Any]) -> BaseModel:
    """Assert data validates against Pydantic schema.

    Returns the validated schema instance.
    """
    try:
        return schema_class(**data)
    except ValidationError as e:
        raise AssertionError(f"Schema validation failed: {e}")


def assert_schema_invalid(schema_class: type[BaseModel], data: dict[str, Any]) -> ValidationError:
    """Assert data fails validation against Pydantic schema."""
    try:
        schema_class(**data)
    except ValidationError as e:
        return e
    raise AssertionError(
        f"Expected validation to fail for {schema_class.__name__} with data: {data}"
    )
