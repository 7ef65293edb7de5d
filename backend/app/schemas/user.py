"""
Userbase Backend - User Request/Response Schemas
=================================================

What:  Pydantic models for the User API contract.
How:   `UserFields` holds the entity validation rules and is run by the
       service layer (not by FastAPI) so failures become 400 responses with
       a violation list instead of FastAPI's default 422.
Who:   UserService validates bodies with it; routes use the response models.

Validation rules:
    firstName, lastName, email   isNotEmpty, isString
    age                          isNumber, isInt

Each violation is reported as {"field": <camelCase name>, "constraints":
{<rule>: <message>}}, one entry per violated rule.
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from app.schemas.envelope import Envelope

TEXT_FIELD_LABELS = {
    "first_name": "First name",
    "last_name": "Last name",
    "email": "Email",
}


# ══════════════════════════════════════════════════════════════════════════
# Entity Validation
# ══════════════════════════════════════════════════════════════════════════


class UserFields(BaseModel):
    """
    The client-writable User fields and their rules.

    Keys are camelCase (the API contract). Unknown keys, and the
    server-managed id/createdAt/updatedAt, are ignored. Missing fields are
    validated as empty, so a create without `email` reports isNotEmpty.
    """

    model_config = ConfigDict(alias_generator=to_camel, extra="ignore")

    first_name: str = Field(default=None, validate_default=True)
    last_name: str = Field(default=None, validate_default=True)
    email: str = Field(default=None, validate_default=True)
    age: int = Field(default=None, validate_default=True)

    @field_validator("first_name", "last_name", "email", mode="before")
    @classmethod
    def require_text(cls, v: Any, info: ValidationInfo) -> str:
        label = TEXT_FIELD_LABELS[info.field_name]
        if v is None or (isinstance(v, str) and not v.strip()):
            raise PydanticCustomError("isNotEmpty", "{label} is required", {"label": label})
        if not isinstance(v, str):
            raise PydanticCustomError("isString", "{label} must be a string", {"label": label})
        return v

    @field_validator("age", mode="before")
    @classmethod
    def require_whole_number(cls, v: Any) -> int:
        # bool is an int subclass; JSON true/false is not an age
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
            raise PydanticCustomError("isNumber", "Age must be a number")
        if isinstance(v, float):
            if not v.is_integer():
                raise PydanticCustomError("isInt", "Age must be a whole number")
            return int(v)
        return v

    @classmethod
    def writable_aliases(cls) -> Dict[str, str]:
        """Maps camelCase body key → model attribute name."""
        return {field.alias or name: name for name, field in cls.model_fields.items()}


def violations_from(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    """Flattens a pydantic error into the API's [{field, constraints}] list."""
    violations = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "body"
        violations.append({"field": field, "constraints": {error["type"]: error["msg"]}})
    return violations


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UserResponse(BaseModel):
    """A stored user as returned by every endpoint."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: int = Field(description="Server-assigned identifier")
    first_name: str
    last_name: str
    email: str
    age: int
    created_at: datetime = Field(description="Creation time (UTC ISO 8601)")
    updated_at: datetime = Field(description="Last update time (UTC ISO 8601)")

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """SQLite hands back naive values; they were stored as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class PaginationMeta(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int = Field(description="Total number of users")
    page: int = Field(description="Current page (1-based)")
    page_size: int = Field(description="Requested page size")
    total_pages: int = Field(description="ceil(total / pageSize)")


class UserPageData(BaseModel):
    results: List[UserResponse]
    pagination: PaginationMeta


class UserEnvelope(Envelope):
    data: UserResponse


class UserListEnvelope(Envelope):
    data: UserPageData
