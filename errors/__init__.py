"""Domain error taxonomy shared by the managers.

The route layer maps these onto HTTP status codes:

- ValidationError: malformed or missing input (400)
- NotFoundError: a referenced entity is absent (404)
- ConflictError: uniqueness or one-to-one violation (409)
- UnexpectedError: anything else (500, message sanitized)

Each manager module derives its own errors from these, e.g.
``AssetNotFoundError(AssetError, NotFoundError)``.
"""
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError as SchemaValidationError
from pydantic.alias_generators import to_camel


class DomainError(Exception):
    """Base exception for domain operations."""
    pass


class ValidationError(DomainError):
    """Raised when input is malformed, missing or inconsistent."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        self.message = message
        self.errors = errors or []
        super().__init__(message)


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""
    pass


class ConflictError(DomainError):
    """Raised when a uniqueness constraint would be violated."""
    pass


class UnexpectedError(DomainError):
    """Raised for failures the caller cannot fix."""
    pass


def field_errors(exc: SchemaValidationError) -> List[Dict[str, Any]]:
    """Flatten a pydantic or request validation error into a list of field problems."""
    problems = []
    for error in exc.errors():
        problems.append({
            'field': '.'.join(str(part) for part in error['loc']) or None,
            'message': error['msg'],
            'type': error['type']
        })
    return problems


def from_schema_error(message: str, exc: SchemaValidationError) -> ValidationError:
    """Build a ValidationError carrying the fields pydantic rejected."""
    return ValidationError(message, field_errors(exc))


def parse_model(model, data: Any, message: str):
    """Validate raw input against a pydantic model.

    Args:
        model: pydantic model class
        data: Model instance or raw mapping
        message: Message of the ValidationError raised on failure

    Returns:
        A model instance

    Raises:
        ValidationError: If the input does not fit the model
    """
    if isinstance(data, model):
        return data
    if not isinstance(data, dict):
        raise ValidationError(message, [{
            'field': None,
            'message': 'Request body must be a JSON object',
            'type': 'dict_type'
        }])
    try:
        return model.model_validate(data)
    except SchemaValidationError as e:
        raise from_schema_error(message, e)


def reject_nulls(changes: Dict[str, Any], required: Iterable[str], message: str) -> None:
    """Refuse a partial update that clears a field which may not be empty."""
    cleared = [name for name in required if name in changes and changes[name] is None]
    if cleared:
        raise ValidationError(message, [
            {'field': to_camel(name), 'message': 'Field may not be null', 'type': 'null_not_allowed'}
            for name in cleared
        ])
