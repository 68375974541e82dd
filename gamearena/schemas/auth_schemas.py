from pydantic import EmailStr, Field

from gamearena.models.common import CamelModel
from gamearena.schemas.user_schemas import UserRead

class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)

class LoginResponse(CamelModel):
    user: UserRead
    access_token: str
    token_type: str = "bearer"
