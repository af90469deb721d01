"""
Database Schemas

Each Pydantic model describes the documents of one MongoDB collection.
The models are the only validation layer: they coerce compatible values
(numbers and booleans to text, ISO strings to datetimes, a scalar history
to a one-item list) and reject anything that violates a constraint, such
as an enum value outside its allowed set or a NaN/Infinity number.
Timestamps are cut to millisecond precision, which is all BSON keeps.

- Project -> "projects" collection
- Message -> "messages" collection
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from errors import ValidationError


def to_bson_precision(value: datetime) -> datetime:
    """BSON dates keep milliseconds only."""
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def utcnow() -> datetime:
    return to_bson_precision(datetime.now(timezone.utc))


def cast_text(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def is_finite(value: Any) -> bool:
    """False when `value` holds NaN or an infinity anywhere inside it."""
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, list):
        return all(is_finite(item) for item in value)
    if isinstance(value, dict):
        return all(is_finite(item) for item in value.values())
    return True


class DocumentModel(BaseModel):
    # Unknown keys (including "_id") are dropped rather than rejected.
    model_config = ConfigDict(
        extra="ignore",
        coerce_numbers_to_str=True,
        use_enum_values=True,
        allow_inf_nan=False,
    )


class ProjectType(str, Enum):
    TEMPLATE = "Template"
    DASHBOARD = "Dashboard"


class MessageStatus(str, Enum):
    UNREAD = "unread"
    READ = "read"
    RESOLVED = "resolved"


class Project(DocumentModel):
    """
    Projects collection schema
    Collection name: "projects"
    """
    title: Optional[str] = Field(None, description="Project title")
    category: Optional[str] = Field(None, description="Display category")
    image: Optional[str] = Field(None, description="Image URL, path or data URI")
    type: ProjectType = Field(ProjectType.TEMPLATE.value, description="Template | Dashboard")
    language: Optional[str] = Field(None, description="Primary language or framework")
    rating: Optional[float] = Field(None, description="Free-range rating")
    description: Optional[str] = Field(None, description="Long description")
    createdAt: datetime = Field(default_factory=utcnow, description="Creation time")

    @field_validator("title", "category", "image", "language", "description", mode="before")
    @classmethod
    def _cast_text(cls, value: Any) -> Any:
        return cast_text(value)

    @field_validator("rating", mode="before")
    @classmethod
    def _blank_rating(cls, value: Any) -> Any:
        # An empty string clears the rating.
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("createdAt")
    @classmethod
    def _millisecond_precision(cls, value: datetime) -> datetime:
        return to_bson_precision(value)


class Message(DocumentModel):
    """
    Messages collection schema
    Collection name: "messages"
    """
    senderName: Optional[str] = None
    senderEmail: Optional[str] = Field(None, description="Free text, not checked as an address")
    senderPhone: Optional[str] = None
    senderAddress: Optional[str] = None
    subject: Optional[str] = None
    plan: Optional[str] = Field(None, description="Plan the sender asked about")
    body: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow, description="Receipt time")
    status: MessageStatus = Field(MessageStatus.UNREAD.value, description="unread | read | resolved")
    type: str = Field("portal", description="Origin channel")
    history: List[Any] = Field(default_factory=list, description="Unstructured audit trail")

    @field_validator(
        "senderName", "senderEmail", "senderPhone", "senderAddress",
        "subject", "plan", "body", "type",
        mode="before",
    )
    @classmethod
    def _cast_text(cls, value: Any) -> Any:
        return cast_text(value)

    @field_validator("history", mode="before")
    @classmethod
    def _wrap_scalar_history(cls, value: Any) -> Any:
        if value is None or isinstance(value, list):
            return value
        return [value]

    @field_validator("history")
    @classmethod
    def _finite_history(cls, value: List[Any]) -> List[Any]:
        if not is_finite(value):
            raise ValueError("history must not contain NaN or Infinity")
        return value

    @field_validator("timestamp")
    @classmethod
    def _millisecond_precision(cls, value: datetime) -> datetime:
        return to_bson_precision(value)


@dataclass(frozen=True)
class Entity:
    """A document type together with its collection and temporal sort field."""

    name: str
    collection: str
    model: Type[DocumentModel]
    sort_field: str

    def _parse(self, payload: Any) -> DocumentModel:
        if not isinstance(payload, dict):
            raise ValidationError(f"{self.name} payload must be a JSON object")
        try:
            return self.model.model_validate(payload)
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Invalid {self.name.lower()}: {exc.error_count()} field error(s)",
                errors=exc.errors(include_url=False, include_context=False),
            ) from exc

    def validate_new(self, payload: Any) -> Dict[str, Any]:
        """Return the document to insert, with defaults applied."""
        instance = self._parse(payload)
        data = instance.model_dump()
        return {
            key: value
            for key, value in data.items()
            if key in instance.model_fields_set or value is not None
        }

    def validate_patch(self, patch: Any) -> Dict[str, Any]:
        """Return only the supplied fields, coerced. No defaults are applied."""
        instance = self._parse(patch)
        return instance.model_dump(exclude_unset=True)


PROJECT = Entity(name="Project", collection="projects", model=Project, sort_field="createdAt")
MESSAGE = Entity(name="Message", collection="messages", model=Message, sort_field="timestamp")
