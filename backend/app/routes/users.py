"""
Userbase Backend - User Route Handlers
=======================================

What:  Maps the five /api/users method + path combinations onto UserService.
How:   Path ids and pagination values are received as raw strings so that
       malformed input is answered by the service with a 400 envelope
       rather than FastAPI's automatic 422.

Route Inventory:
    GET    /api/users           list (page, limit)
    GET    /api/users/{id}      fetch one
    POST   /api/users           create          → 201
    PUT    /api/users/{id}      partial update
    DELETE /api/users/{id}      hard delete
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.repositories.user_repository import UserRepository
from app.schemas.envelope import ErrorEnvelope, MessageEnvelope
from app.schemas.user import UserEnvelope, UserListEnvelope
from app.services.user_service import UserService

router = APIRouter(prefix="/api/users", tags=["Users"])

BAD_REQUEST = {400: {"description": "Invalid input", "model": ErrorEnvelope}}
NOT_FOUND = {404: {"description": "User not found", "model": ErrorEnvelope}}
SERVER_ERROR = {500: {"description": "Server error", "model": ErrorEnvelope}}


def get_user_repository(db: AsyncSession = Depends(get_db_session)) -> UserRepository:
    return UserRepository(db)


def get_user_service(
    repository: UserRepository = Depends(get_user_repository),
) -> UserService:
    return UserService(repository)


@router.get(
    "",
    response_model=UserListEnvelope,
    responses={**BAD_REQUEST, **SERVER_ERROR},
    summary="List users, newest first",
)
async def list_users(
    page: Optional[str] = Query(
        default=None,
        description="Page number, 1-based (default 1). A non-integer value is a 400, not the default.",
    ),
    limit: Optional[str] = Query(
        default=None,
        description="Page size, 1-100 (default 10). A non-integer value is a 400, not the default.",
    ),
    service: UserService = Depends(get_user_service),
) -> UserListEnvelope:
    data = await service.list_users(page, limit)
    return UserListEnvelope(message="Users retrieved successfully", data=data)


@router.get(
    "/{user_id}",
    response_model=UserEnvelope,
    responses={**BAD_REQUEST, **NOT_FOUND, **SERVER_ERROR},
    summary="Get a user by ID",
)
async def get_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
) -> UserEnvelope:
    data = await service.get_user(user_id)
    return UserEnvelope(message="User retrieved successfully", data=data)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=UserEnvelope,
    responses={**BAD_REQUEST, **SERVER_ERROR},
    summary="Create a user",
)
async def create_user(
    body: Any = Body(default=None, examples=[{
        "firstName": "Alice",
        "lastName": "Wilson",
        "email": "alice@example.com",
        "age": 28,
    }]),
    service: UserService = Depends(get_user_service),
) -> UserEnvelope:
    data = await service.create_user(body)
    return UserEnvelope(message="User created successfully", data=data)


@router.put(
    "/{user_id}",
    response_model=UserEnvelope,
    responses={**BAD_REQUEST, **NOT_FOUND, **SERVER_ERROR},
    summary="Update some or all fields of a user",
)
async def update_user(
    user_id: str,
    body: Any = Body(default=None),
    service: UserService = Depends(get_user_service),
) -> UserEnvelope:
    data = await service.update_user(user_id, body)
    return UserEnvelope(message="User updated successfully", data=data)


@router.delete(
    "/{user_id}",
    response_model=MessageEnvelope,
    response_model_exclude_none=True,
    responses={**BAD_REQUEST, **NOT_FOUND, **SERVER_ERROR},
    summary="Delete a user",
)
async def delete_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
) -> MessageEnvelope:
    await service.delete_user(user_id)
    return MessageEnvelope(message="User deleted successfully")
