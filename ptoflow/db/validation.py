from datetime import datetime
from typing import Any

from ptoflow.core.errors import RecordValidationError, UnknownCollectionError
from ptoflow.db.schema import SCHEMA


def is_date_string(value: Any) -> bool:
    if not isinstance(value, str) or not value:
        return False
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        datetime.fromisoformat(text)
    except ValueError:
        return False
    return True


def check_field(field: str, type_name: str, value: Any) -> None:
    if type_name in {"string", "text"}:
        if not isinstance(value, str):
            raise RecordValidationError(field, "a string")
    elif type_name == "number":
        # bool is an int subclass but never a valid number here
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise RecordValidationError(field, "a number")
    elif type_name == "boolean":
        if not isinstance(value, bool):
            raise RecordValidationError(field, "a boolean")
    elif type_name == "json":
        if not isinstance(value, (dict, list)):
            raise RecordValidationError(field, "an object or array")
    elif type_name in {"date", "datetime"}:
        if not is_date_string(value):
            raise RecordValidationError(field, "a valid date string")


def validate_against_schema(collection: str, data: dict) -> None:
    """Shallow type check of the declared fields present in ``data``.

    Missing and ``None`` fields are skipped so partial updates validate, and
    undeclared fields pass through. Raises on the first mismatch.
    """
    fields = SCHEMA.get(collection)
    if fields is None:
        raise UnknownCollectionError(collection)
    for field, type_name in fields.items():
        value = data.get(field)
        if value is None:
            continue
        check_field(field, type_name, value)
