"""Account registration and login endpoints."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from smartfile.api.errors import ConflictError, UnauthorizedError
from smartfile.api.responses import success_response
from smartfile.api.schemas import LoginInput, RegisterInput
from smartfile.persistence.db import get_session
from smartfile.persistence.repositories import UserRepository
from smartfile.persistence.tables import UserTable
from smartfile.security.passwords import hash_password, verify_password
from smartfile.security.tokens import create_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

INVALID_CREDENTIALS = "Invalid email or password"


def _auth_payload(user: UserTable) -> dict[str, object]:
    return {
        "user": {"id": user.id, "name": user.name, "email": user.email},
        "token": create_token(user.id, user.email),
    }


@router.post("/register", status_code=201)
async def register(
    payload: RegisterInput,
    session: AsyncSession = Depends(get_session),
) -> Response:
    """Create an account and return it with an access token."""
    repo = UserRepository(session)
    email = payload.email.lower()

    if await repo.get_by_email(email) is not None:
        raise ConflictError("Email already registered")

    try:
        password_hash = await asyncio.to_thread(hash_password, payload.password)
        user = await repo.create(payload.name, email, password_hash)
        await session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        await session.rollback()
        raise ConflictError("Email already registered")

    logger.info(f"Registered user {user.id}")
    return success_response("User registered successfully", _auth_payload(user), status_code=201)


@router.post("/login")
async def login(
    payload: LoginInput,
    session: AsyncSession = Depends(get_session),
) -> Response:
    """Exchange credentials for an access token."""
    user = await UserRepository(session).get_by_email(payload.email.lower())
    if user is None or not await asyncio.to_thread(
        verify_password, payload.password, user.password_hash
    ):
        raise UnauthorizedError(INVALID_CREDENTIALS)

    return success_response("Login successful", _auth_payload(user))
