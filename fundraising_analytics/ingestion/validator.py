"""Validation utilities for record inputs."""

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ValidationError

from ..exceptions import InvalidInputError, RecordValidationError


def ensure_records(records: Any, name: str = "records") -> Sequence[Mapping[str, Any]]:
    """Check that ``records`` is a list/tuple of mappings.

    Raises:
        InvalidInputError: On any other shape (a dict, a string, a DataFrame...).
    """
    if not isinstance(records, (list, tuple)):
        raise InvalidInputError(
            f"{name} must be a list of mappings, got {type(records).__name__}"
        )
    for i, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise InvalidInputError(
                f"{name}[{i}] must be a mapping, got {type(record).__name__}"
            )
    return records


def validate_records(
    records: Sequence[Mapping[str, Any]], model: type[BaseModel]
) -> None:
    """Validate each record against a pydantic model.

    Collects all errors before raising, for better debugging.

    Raises:
        RecordValidationError: If any record fails validation
    """
    errors: list[dict[str, Any]] = []

    for i, record in enumerate(records):
        try:
            model.model_validate(dict(record))
        except ValidationError as e:
            errors.append({"row": i, "errors": e.errors()})

    if errors:
        raise RecordValidationError(errors, len(records))
