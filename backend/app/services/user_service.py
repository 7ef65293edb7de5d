"""
Userbase Backend - User Service (Request Handling)
===================================================

What:  One coroutine per User endpoint: parse and validate the raw request
       values, call the repository, and shape the envelope payload.
Why:   Keeps routes declarative and makes every status-code decision testable
       without HTTP.
How:   Outcomes are expressed as return values (success) or application
       exceptions (400/404/500), which the global handlers in main.py render.
Who:   Called by the handlers in app/routes/users.py.

Request Flow (PUT /api/users/{id}):
    ┌──────────┐   ┌────────────┐   ┌──────────────┐   ┌────────────┐   ┌─────────┐
    │ parse id │──▶│ load user  │──▶│ merge + rule │──▶│ apply only │──▶│ respond │
    │  (400)   │   │   (404)    │   │ check (400)  │   │ given keys │   │  (200)  │
    └──────────┘   └────────────┘   └──────────────┘   └────────────┘   └─────────┘

Error Handling Strategy:
    Input problems are detected before the repository is touched. Anything
    SQLAlchemy raises is logged with detail and re-raised as DatabaseError,
    whose response carries only the generic "Internal server error".
"""

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

from app.exceptions import DatabaseError, NotFoundError, ValidationError
from app.models.user import User
from app.repositories.user_repository import UserPage, UserRepository
from app.schemas.user import (
    PaginationMeta,
    UserFields,
    UserPageData,
    UserResponse,
    violations_from,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

# users.id is a 32-bit INTEGER column; larger ids cannot exist
MAX_USER_ID = 2**31 - 1
# Keeps (page - 1) * MAX_LIMIT well inside a 64-bit OFFSET
MAX_QUERY_PAGE = 2**31 - 1


def parse_int(raw: Optional[str]) -> Optional[int]:
    """
    Strict integer parsing for path and query values.

    Accepts an optional sign and digits only ("12abc" and "1.5" are rejected).
    Returns None when the value is not an integer.
    """
    if raw is None:
        return None
    text = raw.strip()
    digits = text[1:] if text[:1] in ("+", "-") else text
    if not (digits.isascii() and digits.isdigit()):
        return None
    return int(text)


def parse_user_id(raw: str) -> int:
    """
    Non-integers are a 400. Integers no stored row can have (below 1 or
    beyond the column range) are a 404 without a store round trip.
    """
    user_id = parse_int(raw)
    if user_id is None:
        raise ValidationError(message="Invalid user ID", context={"id": raw})
    if not 1 <= user_id <= MAX_USER_ID:
        raise NotFoundError(resource="User", resource_id=user_id)
    return user_id


def parse_pagination(raw_page: Optional[str], raw_limit: Optional[str]) -> tuple:
    """Resolve page/limit query values; missing or blank means the default."""
    page = DEFAULT_PAGE if raw_page in (None, "") else parse_int(raw_page)
    if page is None or page < 1:
        raise ValidationError(message="Page number must be greater than 0", context={"page": raw_page})

    limit = DEFAULT_LIMIT if raw_limit in (None, "") else parse_int(raw_limit)
    if limit is None or not 1 <= limit <= MAX_LIMIT:
        raise ValidationError(
            message=f"Limit must be between 1 and {MAX_LIMIT}",
            context={"limit": raw_limit},
        )
    return page, limit


def validate_fields(body: Dict[str, Any]) -> UserFields:
    try:
        return UserFields.model_validate(body)
    except PydanticValidationError as e:
        raise ValidationError(message="Validation failed", violations=violations_from(e))


def ensure_object(body: Any) -> Dict[str, Any]:
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError(message="Request body must be a JSON object")
    return body


def to_payload(user: User) -> UserResponse:
    return UserResponse.model_validate(user)


class UserService:
    """
    Request handling for /api/users.

    Stateless apart from the repository it is built around, which is itself
    bound to the current request's session.
    """

    def __init__(self, repository: UserRepository):
        self.repository = repository

    async def list_users(self, raw_page: Optional[str], raw_limit: Optional[str]) -> UserPageData:
        page, limit = parse_pagination(raw_page, raw_limit)
        try:
            if page > MAX_QUERY_PAGE:
                # Far past any real table: only the total is worth asking for
                total = await self.repository.count()
                result = UserPage(items=[], total=total, page=page, limit=limit)
            else:
                result = await self.repository.list_page(page, limit)
        except SQLAlchemyError as e:
            logger.error("Database error listing users: %s", str(e), exc_info=True)
            raise DatabaseError(context={"page": page, "limit": limit})

        return UserPageData(
            results=[to_payload(user) for user in result.items],
            pagination=PaginationMeta(
                total=result.total,
                page=result.page,
                page_size=limit,
                total_pages=result.total_pages,
            ),
        )

    async def get_user(self, raw_id: str) -> UserResponse:
        user_id = parse_user_id(raw_id)
        try:
            user = await self.repository.get(user_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(context={"user_id": user_id})

        if user is None:
            raise NotFoundError(resource="User", resource_id=user_id)
        return to_payload(user)

    async def create_user(self, body: Any) -> UserResponse:
        fields = validate_fields(ensure_object(body))
        try:
            user = await self.repository.create(fields.model_dump())
        except SQLAlchemyError as e:
            logger.error("Database error creating user: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "create"})
        return to_payload(user)

    async def update_user(self, raw_id: str, body: Any) -> UserResponse:
        """
        Partial update: the merged record must satisfy the same rules as a
        create, but only the keys present in the body are written.
        """
        user_id = parse_user_id(raw_id)
        body = ensure_object(body)
        try:
            existing = await self.repository.get(user_id)
            if existing is None:
                raise NotFoundError(resource="User", resource_id=user_id)

            current = to_payload(existing).model_dump(by_alias=True)
            fields = validate_fields({**current, **body})

            aliases = UserFields.writable_aliases()
            changes = {
                aliases[key]: getattr(fields, aliases[key])
                for key in body
                if key in aliases
            }
            user = await self.repository.update(user_id, changes)
        except SQLAlchemyError as e:
            logger.error("Database error updating user %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(context={"user_id": user_id})

        # Deleted between the lookup and the write
        if user is None:
            raise NotFoundError(resource="User", resource_id=user_id)
        return to_payload(user)

    async def delete_user(self, raw_id: str) -> None:
        user_id = parse_user_id(raw_id)
        try:
            removed = await self.repository.delete(user_id)
        except SQLAlchemyError as e:
            logger.error("Database error deleting user %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(context={"user_id": user_id})

        if not removed:
            raise NotFoundError(resource="User", resource_id=user_id)
