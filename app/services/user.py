from typing import Annotated

from fastapi import Depends
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.db import get_db
from app.core.errors import AuthenticationError, ConflictError
from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import User
from app.schemas.auth import TokenResponse, UserCredentials, UserPublic


class UserService:
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db)]) -> None:
        self.db = db

    async def get_user_by_username(self, username: str) -> User | None:
        result = await self.db.exec(select(User).where(User.username == username))
        return result.first()

    async def register(self, credentials: UserCredentials) -> User:
        if await self.get_user_by_username(credentials.username):
            msg = "Username already exists"
            raise ConflictError(msg)

        user = User(
            username=credentials.username, password_hash=hash_password(credentials.password)
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race against another registration with the same name
            await self.db.rollback()
            msg = "Username already exists"
            raise ConflictError(msg) from None
        await self.db.refresh(user)

        logger.info(f"Registered user {user.id} ({user.username})")
        return user

    async def login(self, credentials: UserCredentials) -> TokenResponse:
        user = await self.get_user_by_username(credentials.username)
        if not user or not verify_password(credentials.password, user.password_hash):
            msg = "Invalid credentials"
            raise AuthenticationError(msg)

        return TokenResponse(
            access_token=create_access_token(user_id=user.id, username=user.username),
            user=UserPublic.model_validate(user, from_attributes=True),
        )
