from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status

from gamearena.api.dependencies import get_settings, get_user_service
from gamearena.core import security
from gamearena.core.config import Settings
from gamearena.schemas import auth_schemas, user_schemas
from gamearena.services.user_service import UserService

router = APIRouter()

@router.post("/register", response_model=user_schemas.UserResponse)
def register(
    registration: user_schemas.UserCreate,
    service: UserService = Depends(get_user_service),
):
    user = service.register(registration)
    return user_schemas.UserResponse(user=user_schemas.UserRead.model_validate(user.model_dump()))

@router.post("/login", response_model=auth_schemas.LoginResponse)
def login(
    credentials: auth_schemas.LoginRequest,
    service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings),
):
    user = service.authenticate(credentials.email, credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = security.create_access_token(
        data={"sub": user.id},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        secret_key=settings.SECRET_KEY,
    )
    return auth_schemas.LoginResponse(
        user=user_schemas.UserRead.model_validate(user.model_dump()),
        access_token=access_token,
    )
