from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Tuple

from errors import ValidationError, ValidationFailure
from schemas import (
    PRIORITY_LEVELS,
    PRIORITY_MESSAGE,
    TAGS,
    TAG_MESSAGE,
    TaskPatch,
    normalize_choice,
    parse_payload,
    to_utc,
)


@dataclass(frozen=True)
class PatchOperation:
    """Single replace operation against a stored task"""
    op: str
    path: str
    value: Any


def _title(value):
    if value is None or not value.strip():
        raise ValidationError(ValidationFailure.MISSING_TITLE, "Task must have a title.")
    return value.strip()


def _description(value):
    return value.strip() if value is not None else None


def _is_completed(value):
    if value is None:
        raise ValidationError(
            ValidationFailure.INVALID_PAYLOAD, "isCompleted must be true or false."
        )
    return value


def _priority_level(value):
    normalized = normalize_choice(value, PRIORITY_LEVELS, PRIORITY_MESSAGE)
    if normalized is None:
        raise ValidationError(ValidationFailure.INVALID_ENUM, PRIORITY_MESSAGE)
    return normalized


def _tag(value):
    return normalize_choice(value, TAGS, TAG_MESSAGE)


# Patchable field -> (store path, value check). Order is the order operations are emitted.
PATCHABLE_FIELDS: Dict[str, Tuple[str, Callable[[Any], Any]]] = {
    "title": ("/title", _title),
    "description": ("/description", _description),
    "is_completed": ("/isCompleted", _is_completed),
    "priority_level": ("/priorityLevel", _priority_level),
    "tag": ("/tag", _tag),
    "due_date": ("/dueDate", to_utc),
}

# Store path -> Task attribute, used when applying operations
ATTRIBUTE_BY_PATH = {path: field for field, (path, _) in PATCHABLE_FIELDS.items()}


def build_patch_operations(body: Any) -> List[PatchOperation]:
    """
    Turn a sparse update body into replace operations

    Only whitelisted fields present in the body produce an operation; anything
    else in the body is ignored.

    Args:
        body: Decoded JSON request body

    Returns:
        Replace operations, one per supplied field

    Raises:
        ValidationError: If no recognized field is present or a value is rejected
    """
    patch = parse_payload(TaskPatch, body)

    present = [field for field in PATCHABLE_FIELDS if field in patch.model_fields_set]
    if not present:
        raise ValidationError(
            ValidationFailure.NO_FIELDS, "No valid fields provided for update."
        )

    operations = []
    for field in present:
        path, check = PATCHABLE_FIELDS[field]
        operations.append(PatchOperation("replace", path, check(getattr(patch, field))))
    return operations
