from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.core.security import get_current_user
from app.models.user import User
from app.schemas.auth import TokenResponse, UserCredentials, UserPublic
from app.schemas.common import APIResponse
from app.services.user import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    credentials: UserCredentials, service: Annotated[UserService, Depends()]
) -> APIResponse[UserPublic]:
    user = await service.register(credentials)
    return APIResponse(
        data=UserPublic.model_validate(user, from_attributes=True),
        message="User registered successfully",
    )


@router.post("/login")
async def login(
    credentials: UserCredentials, service: Annotated[UserService, Depends()]
) -> APIResponse[TokenResponse]:
    return APIResponse(data=await service.login(credentials))


@router.get("/me")
async def me(user: Annotated[User, Depends(get_current_user)]) -> APIResponse[UserPublic]:
    return APIResponse(data=UserPublic.model_validate(user, from_attributes=True))
