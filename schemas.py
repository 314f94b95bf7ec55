from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, Mapping, Optional, Tuple, Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic import ValidationError as PydanticValidationError

from errors import ValidationError, ValidationFailure

PRIORITY_LEVELS = ("low", "medium", "high")
TAGS = ("personal", "work")

PRIORITY_MESSAGE = "Priority level must be one of: low, medium, high."
TAG_MESSAGE = "Tag must be either 'personal' or 'work'."


def normalize_choice(value: Optional[str], allowed: Tuple[str, ...], message: str) -> Optional[str]:
    """
    Lower-case an enumerated value and check it against its allowed set

    Args:
        value: Raw client value, None or blank means "not supplied"
        allowed: Permitted lower-case values
        message: Explanation returned to the client on rejection

    Returns:
        The lower-cased value, or None when nothing was supplied

    Raises:
        ValidationError: If the value is outside the enumeration
    """
    if value is None or not value.strip():
        return None
    lowered = value.strip().lower()
    if lowered not in allowed:
        raise ValidationError(ValidationFailure.INVALID_ENUM, message)
    return lowered


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert a datetime to aware UTC; naive values are taken as UTC already"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_payload(model, payload: Any):
    """Validate a JSON body against a schema, mapping failures to INVALID_PAYLOAD"""
    if not isinstance(payload, dict):
        raise ValidationError(
            ValidationFailure.INVALID_PAYLOAD, "Request body must be a JSON object."
        )
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        fields = ", ".join(
            str(error["loc"][0]) for error in exc.errors() if error.get("loc")
        )
        raise ValidationError(
            ValidationFailure.INVALID_PAYLOAD, f"Invalid value for: {fields}."
        ) from exc


class Identity(BaseModel):
    """Verified caller, extracted from a bearer token"""
    model_config = ConfigDict(frozen=True)

    email: str
    subject: Optional[str] = None


class TaskCreate(BaseModel):
    """Schema for creating a new task"""
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    is_completed: bool = Field(default=False, alias="isCompleted")
    priority_level: Optional[str] = Field(default=None, alias="priorityLevel")
    tag: Optional[str] = None
    # Accepted only so it can be checked or overwritten, never stored as given
    user_email: Optional[str] = Field(default=None, alias="userEmail")
    due_date: Optional[datetime] = Field(default=None, alias="dueDate")


class TaskPatch(BaseModel):
    """
    Sparse update: a field is part of the patch only if the client sent it.

    Keys outside the aliases below are dropped, so unknown fields are ignored.
    """
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    is_completed: Optional[bool] = Field(default=None, alias="isCompleted")
    priority_level: Optional[str] = Field(default=None, alias="priorityLevel")
    tag: Optional[str] = None
    due_date: Optional[datetime] = Field(default=None, alias="dueDate")


class TaskResponse(BaseModel):
    """Schema for task response"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: Optional[str]
    is_completed: bool = Field(serialization_alias="isCompleted")
    user_email: str = Field(serialization_alias="userEmail")
    priority_level: Optional[str] = Field(serialization_alias="priorityLevel")
    tag: Optional[str]
    created_at: datetime = Field(serialization_alias="createdAt")
    due_date: Optional[datetime] = Field(serialization_alias="dueDate")

    @field_serializer("created_at", "due_date")
    def serialize_utc(self, value: Optional[datetime]) -> Optional[str]:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()


def _priority_clause(value: str, today: date) -> Tuple[str, Any]:
    return "priority_level", normalize_choice(value, PRIORITY_LEVELS, PRIORITY_MESSAGE)


def _status_clause(value: str, today: date) -> Tuple[str, Any]:
    return "is_completed", value.strip().lower() == "completed"


def _due_clause(value: str, today: date) -> Tuple[str, Any]:
    if value.strip().lower() == "tomorrow":
        return "due_on", today + timedelta(days=1)
    return "due_on", today


# Query parameter -> clause builder. Parameters not listed here are ignored.
ALLOWED_FILTERS: Dict[str, Callable[[str, date], Tuple[str, Any]]] = {
    "priority": _priority_clause,
    "status": _status_clause,
    "due": _due_clause,
}


@dataclass(frozen=True)
class TaskFilter:
    """Optional, independent predicates ANDed with the owner clause"""
    priority_level: Optional[str] = None
    is_completed: Optional[bool] = None
    due_on: Optional[date] = None

    @classmethod
    def from_params(cls, params: Mapping[str, Optional[str]], today: Optional[date] = None) -> "TaskFilter":
        """
        Build a filter from raw query parameters

        Args:
            params: Query parameter values by name; None or blank omits the clause
            today: Reference UTC date for the due filter, defaults to now

        Returns:
            TaskFilter with one attribute set per supplied parameter

        Raises:
            ValidationError: If priority is outside its enumeration
        """
        if today is None:
            today = datetime.now(timezone.utc).date()

        clauses = {}
        for name, build in ALLOWED_FILTERS.items():
            value = params.get(name)
            if value is None or not value.strip():
                continue
            field, clause_value = build(value, today)
            clauses[field] = clause_value
        return cls(**clauses)
