"""
Userbase Backend - User Repository
===================================

What:  Store operations for the `users` table.
Who:   Constructed per request by the `get_user_repository` dependency and
       handed to UserService.

Query plans:
    list_page:  SELECT ... ORDER BY created_at DESC, id DESC LIMIT :limit OFFSET :offset
                + SELECT count(id)
    get:        primary key lookup (identity map first)
    delete:     DELETE ... WHERE id = :id, rowcount tells whether a row went away
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User

logger = logging.getLogger(__name__)


@dataclass
class UserPage:
    """One page of users plus the arithmetic the API reports."""

    items: List[User]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)


class UserRepository:
    """CRUD over User rows for a single session (one request)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_page(self, page: int, limit: int) -> UserPage:
        """
        Return the `page`-th block of `limit` users, newest first.

        No clamping happens here: page >= 1 and limit >= 1 are the caller's
        responsibility. id DESC breaks created_at ties so pages never overlap.
        """
        query = (
            select(User)
            .order_by(desc(User.created_at), desc(User.id))
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.session.execute(query)
        items = list(result.scalars().all())

        total = await self.count()

        return UserPage(items=items, total=total, page=page, limit=limit)

    async def count(self) -> int:
        result = await self.session.execute(select(func.count(User.id)))
        return result.scalar() or 0

    async def get(self, user_id: int) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def create(self, fields: Mapping[str, Any]) -> User:
        """Insert a user; id and timestamps are populated after the flush."""
        user = User(**fields)
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        logger.info("User %s created", user.id)
        return user

    async def update(self, user_id: int, fields: Mapping[str, Any]) -> Optional[User]:
        """
        Replace only the supplied fields and refresh updated_at.

        Returns None when no user has this id.
        """
        user = await self.get(user_id)
        if user is None:
            return None

        for name, value in fields.items():
            setattr(user, name, value)
        # Always advance the timestamp, even when no field actually changed
        user.updated_at = datetime.now(timezone.utc)

        await self.session.flush()
        await self.session.refresh(user)
        logger.info("User %s updated (%s)", user_id, ", ".join(sorted(fields)) or "no fields")
        return user

    async def delete(self, user_id: int) -> bool:
        result = await self.session.execute(delete(User).where(User.id == user_id))
        removed = (result.rowcount or 0) > 0
        if removed:
            logger.info("User %s deleted", user_id)
        return removed
